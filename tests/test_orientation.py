"""Tests for the orientation table and pixel corrections."""

import numpy as np
import pytest
from PIL import Image

from deepends.core.orientation import Orientation


# Pillow's transposes for each EXIF orientation (as in ImageOps.exif_transpose)
PIL_TRANSPOSES = {
    Orientation.UP_MIRRORED: Image.Transpose.FLIP_LEFT_RIGHT,
    Orientation.DOWN: Image.Transpose.ROTATE_180,
    Orientation.DOWN_MIRRORED: Image.Transpose.FLIP_TOP_BOTTOM,
    Orientation.LEFT_MIRRORED: Image.Transpose.TRANSPOSE,
    Orientation.RIGHT: Image.Transpose.ROTATE_270,
    Orientation.RIGHT_MIRRORED: Image.Transpose.TRANSVERSE,
    Orientation.LEFT: Image.Transpose.ROTATE_90,
}


def _labelled(h=3, w=5):
    """Array whose every pixel is unique."""
    values = np.arange(h * w * 3, dtype=np.uint8).reshape(h, w, 3)
    return values


def test_eight_orientations_map_to_exif_values():
    assert [o.exif_value for o in Orientation] == list(range(1, 9))
    for value in range(1, 9):
        assert Orientation.from_exif(value).exif_value == value


@pytest.mark.parametrize("value", [None, 0, 9, -1, "up"])
def test_unrecognized_exif_values(value):
    assert Orientation.from_exif(value) is None


def test_up_is_identity():
    pixels = _labelled()
    assert Orientation.UP.apply(pixels) is pixels


@pytest.mark.parametrize("orientation", list(PIL_TRANSPOSES))
def test_correction_matches_exif_transpose(orientation):
    pixels = _labelled()
    expected = np.asarray(Image.fromarray(pixels).transpose(PIL_TRANSPOSES[orientation]))

    np.testing.assert_array_equal(orientation.apply(pixels), expected)


@pytest.mark.parametrize("orientation", list(Orientation))
def test_single_channel_follows_color(orientation):
    pixels = _labelled()
    channel = np.ascontiguousarray(pixels[:, :, 0])

    np.testing.assert_array_equal(orientation.apply(channel), orientation.apply(pixels)[:, :, 0])


def test_swaps_axes_for_quarter_turns():
    pixels = _labelled(h=3, w=5)
    for orientation in Orientation:
        out = orientation.apply(pixels)
        if orientation.swaps_axes:
            assert out.shape[:2] == (5, 3)
        else:
            assert out.shape[:2] == (3, 5)


def test_corrected_arrays_are_contiguous():
    out = Orientation.RIGHT_MIRRORED.apply(_labelled())
    assert out.flags["C_CONTIGUOUS"]
