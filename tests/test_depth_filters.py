"""Tests for the depth filter engine."""

import numpy as np
import pytest

from deepends.core.contracts import FilterKind, FilterParameters
from deepends.core.errors import RenderUnavailable
from deepends.transforms import depth_filters
from deepends.transforms.depth_filters import (
    DepthFilterEngine,
    blur_radius_map,
    clamp_focus,
    focus_mask,
    variable_blur,
)

from conftest import build_sample


@pytest.fixture
def engine():
    return DepthFilterEngine()


def _expected_mask(sample, focus, tolerance=0.175):
    return np.abs(sample.disparity - np.float32(focus)) <= np.float32(tolerance)


# ============================================================
# MASK
# ============================================================

def test_mask_is_binary_rgb(engine, ramp_sample):
    mask = engine.create_mask_image(ramp_sample, 0.5)

    assert mask.shape == ramp_sample.original.shape
    assert mask.dtype == np.uint8
    assert set(np.unique(mask)) <= {0, 255}
    assert np.array_equal(mask[:, :, 0], mask[:, :, 1])
    assert np.array_equal(mask[:, :, 0], mask[:, :, 2])


def test_mask_marks_tolerance_band(engine, ramp_sample):
    mask = engine.create_mask_image(ramp_sample, 0.5)

    expected = _expected_mask(ramp_sample, 0.5)
    np.testing.assert_array_equal(mask[:, :, 0] == 255, expected)
    # ramp spans [0, 1]: the band covers the middle columns only
    assert expected[:, 32].all()
    assert not expected[:, 0].any()
    assert not expected[:, -1].any()


def test_mask_is_idempotent(engine, ramp_sample):
    first = engine.create_mask_image(ramp_sample, 0.37)
    second = engine.create_mask_image(ramp_sample, 0.37)
    np.testing.assert_array_equal(first, second)


def test_mask_flips_only_where_band_edge_crosses_depth(engine, ramp_sample):
    tolerance = engine.parameters.focus_tolerance
    depth = ramp_sample.disparity
    thresholds = np.linspace(0.0, 1.0, 101)

    previous = engine.in_focus_mask(ramp_sample, thresholds[0])
    for t0, t1 in zip(thresholds[:-1], thresholds[1:]):
        current = engine.in_focus_mask(ramp_sample, t1)
        flipped = previous != current

        lower_edge = depth - tolerance
        upper_edge = depth + tolerance
        eps = 1e-5
        crossed = ((lower_edge >= t0 - eps) & (lower_edge <= t1 + eps)) | \
                  ((upper_edge >= t0 - eps) & (upper_edge <= t1 + eps))
        assert not (flipped & ~crossed).any()
        previous = current


def test_focus_is_clamped(engine, ramp_sample):
    np.testing.assert_array_equal(
        engine.create_mask_image(ramp_sample, 1.7),
        engine.create_mask_image(ramp_sample, 1.0),
    )
    np.testing.assert_array_equal(
        engine.create_mask_image(ramp_sample, -3.0),
        engine.create_mask_image(ramp_sample, 0.0),
    )


def test_non_finite_focus_rejected():
    with pytest.raises(ValueError):
        clamp_focus(float("nan"))


def test_low_resolution_disparity_resized_to_photo(engine):
    disparity = np.tile(np.linspace(0.0, 1.0, 16, dtype=np.float32), (12, 1))
    image = np.full((24, 32, 3), 200, dtype=np.uint8)
    sample = build_sample(disparity, image)

    mask = engine.create_mask_image(sample, 0.5)

    assert mask.shape == (24, 32, 3)
    assert mask[:, 16].all()
    assert not mask[:, 0].any()


def test_focus_mask_band():
    depth = np.array([[0.3, 0.45, 0.5, 0.55, 0.7]], dtype=np.float32)
    mask = focus_mask(depth, 0.5, 0.1)
    np.testing.assert_array_equal(mask, [[False, True, True, True, False]])


# ============================================================
# SPOTLIGHT / COLOR HIGHLIGHT
# ============================================================

def test_spotlight_dims_out_of_focus(engine, ramp_sample):
    output = engine.create_spotlight_image(ramp_sample, 0.5)
    in_focus = _expected_mask(ramp_sample, 0.5)
    original = ramp_sample.original.astype(np.int32)

    np.testing.assert_array_equal(output[in_focus], ramp_sample.original[in_focus])

    expected_dim = np.round(original[~in_focus] / 32.0)
    assert np.abs(output[~in_focus].astype(np.int32) - expected_dim).max() <= 1


def test_spotlight_exposure_configurable(ramp_sample):
    engine = DepthFilterEngine(FilterParameters(spotlight_exposure_ev=-1.0))
    output = engine.create_spotlight_image(ramp_sample, 0.0)
    out_of_focus = ~_expected_mask(ramp_sample, 0.0)

    expected = np.round(ramp_sample.original[out_of_focus].astype(np.float32) / 2.0)
    assert np.abs(output[out_of_focus].astype(np.int32) - expected).max() <= 1


def test_color_highlight_grays_out_of_focus(engine, ramp_sample):
    output = engine.create_color_highlight(ramp_sample, 0.2)
    in_focus = _expected_mask(ramp_sample, 0.2)

    np.testing.assert_array_equal(output[in_focus], ramp_sample.original[in_focus])

    gray = output[~in_focus].astype(np.int32)
    assert np.abs(gray[:, 0] - gray[:, 1]).max() <= 1
    assert np.abs(gray[:, 1] - gray[:, 2]).max() <= 1


# ============================================================
# FOCAL BLUR
# ============================================================

def test_blur_radius_zero_at_focus_and_non_decreasing():
    depth = np.linspace(0.0, 1.0, 201, dtype=np.float32)[np.newaxis, :]
    focus = 0.4
    radius = blur_radius_map(depth, focus, max_radius=12.0, falloff=0.3)

    assert radius[0, 80] == 0.0  # depth 0.4

    distance = np.abs(depth - focus).ravel()
    order = np.argsort(distance, kind="stable")
    assert (np.diff(radius.ravel()[order]) >= 0).all()
    assert radius.max() == pytest.approx(12.0)


def test_focal_blur_keeps_focus_plane_sharp(engine):
    disparity = np.tile(np.linspace(0.0, 1.0, 64, dtype=np.float32), (64, 1))
    disparity[:, 20:28] = 0.5
    sample = build_sample(disparity)

    output = engine.create_focal_blur(sample, 0.5)

    np.testing.assert_array_equal(output[:, 20:28], sample.original[:, 20:28])
    # far from focus the noise texture is smoothed away
    assert output[:, -6:].std() < sample.original[:, -6:].std()


def test_focal_blur_without_radius_is_identity(ramp_sample):
    engine = DepthFilterEngine(FilterParameters(max_blur_radius=0.0))
    output = engine.create_focal_blur(ramp_sample, 0.0)
    np.testing.assert_array_equal(output, ramp_sample.original)


def test_variable_blur_preserves_flat_image():
    image = np.full((32, 32, 3), 0.25, dtype=np.float32)
    radius = np.tile(np.linspace(0.0, 10.0, 32, dtype=np.float32), (32, 1))

    blurred = variable_blur(image, radius, max_radius=10.0, levels=5)

    np.testing.assert_allclose(blurred, image, atol=1e-5)


# ============================================================
# DISPATCH AND FAILURES
# ============================================================

@pytest.mark.parametrize("kind, method", [
    (FilterKind.SPOTLIGHT, "create_spotlight_image"),
    (FilterKind.COLOR_HIGHLIGHT, "create_color_highlight"),
    (FilterKind.FOCAL_BLUR, "create_focal_blur"),
])
def test_apply_filter_dispatches_by_kind(engine, ramp_sample, kind, method):
    np.testing.assert_array_equal(
        engine.apply_filter(kind, ramp_sample, 0.6),
        getattr(engine, method)(ramp_sample, 0.6),
    )


def test_render_failure_raises_render_unavailable(engine, ramp_sample, monkeypatch):
    def exhausted(*args, **kwargs):
        raise MemoryError("out of memory")

    monkeypatch.setattr(depth_filters, "variable_blur", exhausted)

    with pytest.raises(RenderUnavailable):
        engine.create_focal_blur(ramp_sample, 0.5)


@pytest.mark.parametrize("kwargs", [
    {"focus_tolerance": -0.1},
    {"focus_tolerance": 1.5},
    {"max_blur_radius": -1.0},
    {"blur_falloff": 0.0},
    {"blur_levels": 1},
])
def test_invalid_filter_parameters(kwargs):
    with pytest.raises(ValueError):
        FilterParameters(**kwargs)
