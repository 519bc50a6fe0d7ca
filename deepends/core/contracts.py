"""
Core data contracts for Deepends.

All components exchange these types. Samples are immutable after
construction and every render is a pure function of:
- DepthSample
- ImageMode
- FilterKind
- focus threshold
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
import numpy as np
from numpy.typing import NDArray

from deepends.core.orientation import Orientation


# ============================================================
# ENUMERATIONS
# ============================================================

class ImageMode(Enum):
    """Display modes, in selector order."""
    ORIGINAL = 0
    DEPTH = 1
    MASK = 2
    FILTERED = 3

    @property
    def shows_focus_slider(self) -> bool:
        """Focus only affects modes that threshold the depth map."""
        return self in (ImageMode.MASK, ImageMode.FILTERED)

    @property
    def shows_filter_selector(self) -> bool:
        return self is ImageMode.FILTERED

    @property
    def label(self) -> str:
        return self.name.capitalize()


class FilterKind(Enum):
    """Depth-guided filters available in FILTERED mode."""
    SPOTLIGHT = 0
    COLOR_HIGHLIGHT = 1
    FOCAL_BLUR = 2

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()


# ============================================================
# CORE DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class DepthSample:
    """
    A loaded photograph with its disparity map.

    All arrays share the display orientation of the photo:
    - original: H x W x 3 uint8 RGB, as displayed
    - depth_image: H' x W' x 3 uint8, grayscale visualization of disparity
    - disparity: H' x W' float32, min-max normalized to [0, 1]
    - filter_image: H x W x 3 float32 RGB in [0, 1]

    The disparity map may have a lower resolution than the photo
    (H' x W' vs H x W) but always describes the same framing.
    """
    source: Path
    original: NDArray[np.uint8]
    depth_image: NDArray[np.uint8]
    disparity: NDArray[np.float32]
    filter_image: NDArray[np.float32]
    orientation: Orientation = Orientation.UP

    def __post_init__(self):
        # read-only views; the caller's arrays stay writable
        for name in ("original", "depth_image", "disparity", "filter_image"):
            view = np.asarray(getattr(self, name)).view()
            view.setflags(write=False)
            object.__setattr__(self, name, view)

    @property
    def name(self) -> str:
        return self.source.name

    @property
    def size(self) -> tuple[int, int]:
        """(width, height) of the displayed photo."""
        h, w = self.original.shape[:2]
        return (w, h)


@dataclass(frozen=True)
class FilterParameters:
    """
    Tunable constants of the depth filter engine.

    focus_tolerance: half-width of the in-focus band around the threshold
    spotlight_exposure_ev: exposure change (stops) for out-of-focus pixels
    max_blur_radius: blur radius in pixels at or beyond blur_falloff
    blur_falloff: |disparity - focus| distance reaching max_blur_radius
    blur_levels: number of discrete blur radii blended (including zero)
    """
    focus_tolerance: float = 0.175
    spotlight_exposure_ev: float = -5.0
    max_blur_radius: float = 15.0
    blur_falloff: float = 0.3
    blur_levels: int = 6

    def __post_init__(self):
        if not 0.0 <= self.focus_tolerance <= 1.0:
            raise ValueError(f"focus_tolerance must be in [0, 1], got {self.focus_tolerance}")
        if self.max_blur_radius < 0:
            raise ValueError(f"max_blur_radius must be >= 0, got {self.max_blur_radius}")
        if self.blur_falloff <= 0:
            raise ValueError(f"blur_falloff must be > 0, got {self.blur_falloff}")
        if self.blur_levels < 2:
            raise ValueError(f"blur_levels must be >= 2, got {self.blur_levels}")

    @property
    def spotlight_gain(self) -> float:
        return float(2.0 ** self.spotlight_exposure_ev)
