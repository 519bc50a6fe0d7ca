"""
Image orientation.

Eight orientations: four rotations, each mirrored or not. Values follow
the EXIF orientation tag (0x0112), so a tag read from a file maps
directly onto a member.

The correction table gives, for each stored orientation, the pixel
operation that brings the stored layout to the displayed layout:
an optional horizontal mirror followed by k quarter turns
counter-clockwise.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple
import numpy as np
from numpy.typing import NDArray


EXIF_ORIENTATION_TAG = 0x0112


class Orientation(Enum):
    """Stored orientation of an image, valued by EXIF tag."""
    UP = 1
    UP_MIRRORED = 2
    DOWN = 3
    DOWN_MIRRORED = 4
    LEFT_MIRRORED = 5
    RIGHT = 6
    RIGHT_MIRRORED = 7
    LEFT = 8

    @classmethod
    def from_exif(cls, value: Optional[int]) -> Optional[Orientation]:
        """Map an EXIF tag value to an orientation, None if unrecognized."""
        if value is None:
            return None
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return None

    @property
    def exif_value(self) -> int:
        return self.value

    @property
    def correction(self) -> Tuple[int, bool]:
        """(quarter turns counter-clockwise, mirror first)."""
        return _CORRECTIONS[self]

    @property
    def swaps_axes(self) -> bool:
        """True when the displayed image is transposed relative to storage."""
        return self.correction[0] % 2 == 1

    def apply(self, pixels: NDArray) -> NDArray:
        """
        Re-lay stored pixels in display orientation.

        Works on H x W and H x W x C arrays. The result is a contiguous
        copy for every orientation other than UP.
        """
        quarter_turns, mirrored = _CORRECTIONS[self]
        if quarter_turns == 0 and not mirrored:
            return pixels
        if mirrored:
            pixels = np.fliplr(pixels)
        if quarter_turns:
            pixels = np.rot90(pixels, k=quarter_turns)
        return np.ascontiguousarray(pixels)


# stored orientation -> (quarter turns ccw, mirror first)
_CORRECTIONS: Dict[Orientation, Tuple[int, bool]] = {
    Orientation.UP: (0, False),
    Orientation.UP_MIRRORED: (0, True),
    Orientation.DOWN: (2, False),
    Orientation.DOWN_MIRRORED: (2, True),
    Orientation.LEFT_MIRRORED: (1, True),
    Orientation.RIGHT: (3, False),
    Orientation.RIGHT_MIRRORED: (3, True),
    Orientation.LEFT: (1, False),
}
