"""Shared fixtures: synthetic depth samples on disk and in memory."""

from pathlib import Path

import numpy as np
import pytest

from deepends.core.contracts import DepthSample
from deepends.core.orientation import Orientation
from deepends.depth.sample_loader import (
    DepthSampleLoader,
    disparity_to_image,
    write_depth_sample,
)


def make_photo(h: int = 48, w: int = 64, seed: int = 0) -> np.ndarray:
    """Smooth color photo with some texture."""
    rng = np.random.default_rng(seed)
    yy, xx = np.mgrid[0:h, 0:w]
    photo = np.stack(
        [xx * 255 // max(w - 1, 1), yy * 255 // max(h - 1, 1), np.full_like(xx, 128)],
        axis=-1,
    ).astype(np.int32)
    photo += rng.integers(-20, 20, size=photo.shape)
    return np.clip(photo, 0, 255).astype(np.uint8)


def make_ramp(h: int = 48, w: int = 64) -> np.ndarray:
    """Horizontal disparity ramp, 0 on the left to 255 on the right."""
    return np.tile(np.linspace(0, 255, w).round().astype(np.uint8), (h, 1))


def build_sample(
    disparity: np.ndarray,
    image: np.ndarray = None,
    source: str = "synthetic.jpg",
) -> DepthSample:
    """In-memory sample with exact (uncompressed) disparity values."""
    disparity = np.asarray(disparity, dtype=np.float32)
    if image is None:
        rng = np.random.default_rng(1)
        h, w = disparity.shape
        image = rng.integers(0, 256, size=(h, w, 3)).astype(np.uint8)
    return DepthSample(
        source=Path(source),
        original=image,
        depth_image=disparity_to_image(disparity),
        disparity=disparity,
        filter_image=image.astype(np.float32) / 255.0,
    )


@pytest.fixture
def loader():
    return DepthSampleLoader()


@pytest.fixture
def sample_path(tmp_path):
    return write_depth_sample(tmp_path / "ramp.jpg", make_photo(), make_ramp(), Orientation.UP)


@pytest.fixture
def loaded_sample(loader, sample_path):
    return loader.load(sample_path)


@pytest.fixture
def ramp_sample():
    """64 x 64 sample whose disparity rises from 0 (left) to 1 (right)."""
    ramp = np.tile(np.linspace(0.0, 1.0, 64, dtype=np.float32), (64, 1))
    return build_sample(ramp)
