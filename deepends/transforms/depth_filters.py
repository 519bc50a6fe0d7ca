"""
Depth Filter Engine.

Operations (all driven by a focus threshold on normalized disparity):
- Focus mask (binary)
- Spotlight (dim out-of-focus pixels)
- Color highlight (grayscale out-of-focus pixels)
- Focal blur (blur radius grows with distance from focus)

All operations are:
- Stateless between calls
- Pixel-aligned with the sample's disparity map
- Hard-edged (masks are not feathered)
"""

from __future__ import annotations

from typing import Callable, Optional
import numpy as np
from numpy.typing import NDArray
import cv2
from loguru import logger

from deepends.core.contracts import DepthSample, FilterKind, FilterParameters
from deepends.core.errors import RenderUnavailable


class DepthFilterEngine:
    """
    Depth-guided filter engine.

    Holds only its FilterParameters; every call is an independent,
    pure function of (sample, focus). Not safe to share across threads
    without external locking.
    """

    def __init__(self, parameters: Optional[FilterParameters] = None):
        """
        Initialize filter engine.

        Args:
            parameters: Filter constants (tolerance, exposure, blur)
        """
        self.parameters = parameters or FilterParameters()

    def in_focus_mask(self, sample: DepthSample, focus: float) -> NDArray[np.bool_]:
        """Boolean in-focus mask at photo resolution."""
        disparity = resize_disparity(sample.disparity, sample.filter_image.shape[:2])
        return focus_mask(disparity, clamp_focus(focus), self.parameters.focus_tolerance)

    def create_mask_image(self, sample: DepthSample, focus: float) -> NDArray[np.uint8]:
        """White where in focus, black elsewhere."""
        return self._run("mask", self._mask, sample, focus)

    def create_spotlight_image(self, sample: DepthSample, focus: float) -> NDArray[np.uint8]:
        """In-focus pixels at full brightness over a darkened copy."""
        return self._run("spotlight", self._spotlight, sample, focus)

    def create_color_highlight(self, sample: DepthSample, focus: float) -> NDArray[np.uint8]:
        """In-focus pixels in color over a grayscale copy."""
        return self._run("color highlight", self._color_highlight, sample, focus)

    def create_focal_blur(self, sample: DepthSample, focus: float) -> NDArray[np.uint8]:
        """Blur that grows with |disparity - focus|; sharp at the focus."""
        return self._run("focal blur", self._focal_blur, sample, focus)

    def apply_filter(
        self,
        kind: FilterKind,
        sample: DepthSample,
        focus: float,
    ) -> NDArray[np.uint8]:
        """
        Apply a filter by kind.

        Raises:
            RenderUnavailable: the compositing pipeline failed
        """
        if kind is FilterKind.SPOTLIGHT:
            return self.create_spotlight_image(sample, focus)
        if kind is FilterKind.COLOR_HIGHLIGHT:
            return self.create_color_highlight(sample, focus)
        if kind is FilterKind.FOCAL_BLUR:
            return self.create_focal_blur(sample, focus)
        raise ValueError(f"Unsupported filter kind: {kind}")

    # --------------------------------------------------------
    # Composition
    # --------------------------------------------------------

    def _run(
        self,
        name: str,
        render_fn: Callable[[DepthSample, float], NDArray[np.uint8]],
        sample: DepthSample,
        focus: float,
    ) -> NDArray[np.uint8]:
        focus = clamp_focus(focus)
        try:
            output = render_fn(sample, focus)
        except (cv2.error, MemoryError) as e:
            logger.error(f"{name} render failed for {sample.name}: {e}")
            raise RenderUnavailable(f"{name} render failed: {e}") from e

        logger.debug(f"Rendered {name} for {sample.name} at focus {focus:.3f}")
        return output

    def _mask(self, sample: DepthSample, focus: float) -> NDArray[np.uint8]:
        mask = self.in_focus_mask(sample, focus)
        gray = np.where(mask, 255, 0).astype(np.uint8)
        return cv2.cvtColor(gray, cv2.COLOR_GRAY2RGB)

    def _spotlight(self, sample: DepthSample, focus: float) -> NDArray[np.uint8]:
        image = sample.filter_image
        darkened = image * self.parameters.spotlight_gain
        return to_uint8(blend_with_mask(image, darkened, self.in_focus_mask(sample, focus)))

    def _color_highlight(self, sample: DepthSample, focus: float) -> NDArray[np.uint8]:
        image = sample.filter_image
        gray = cv2.cvtColor(cv2.cvtColor(image, cv2.COLOR_RGB2GRAY), cv2.COLOR_GRAY2RGB)
        return to_uint8(blend_with_mask(image, gray, self.in_focus_mask(sample, focus)))

    def _focal_blur(self, sample: DepthSample, focus: float) -> NDArray[np.uint8]:
        params = self.parameters
        disparity = resize_disparity(sample.disparity, sample.filter_image.shape[:2])
        radius = blur_radius_map(disparity, focus, params.max_blur_radius, params.blur_falloff)
        blurred = variable_blur(
            sample.filter_image, radius, params.max_blur_radius, params.blur_levels
        )
        return to_uint8(blurred)


# ============================================================
# ARRAY OPERATIONS
# ============================================================

def clamp_focus(focus: float) -> float:
    """Clamp a focus threshold to [0, 1]."""
    focus = float(focus)
    if not np.isfinite(focus):
        raise ValueError(f"Focus threshold must be finite, got {focus}")
    return min(max(focus, 0.0), 1.0)


def resize_disparity(
    disparity: NDArray[np.float32],
    shape: tuple[int, int],
) -> NDArray[np.float32]:
    """Resample disparity to an (H, W) image shape."""
    h, w = shape
    if disparity.shape == (h, w):
        return disparity
    resized = cv2.resize(disparity, (w, h), interpolation=cv2.INTER_LINEAR)
    return np.clip(resized, 0.0, 1.0)


def focus_mask(
    disparity: NDArray[np.float32],
    focus: float,
    tolerance: float,
) -> NDArray[np.bool_]:
    """True where disparity lies within tolerance of the focus threshold."""
    return np.abs(disparity - np.float32(focus)) <= np.float32(tolerance)


def blend_with_mask(
    foreground: NDArray[np.float32],
    background: NDArray[np.float32],
    mask: NDArray,
) -> NDArray[np.float32]:
    """Foreground where mask is 1, background where it is 0."""
    mask_3d = mask.astype(np.float32)[:, :, np.newaxis]
    return foreground * mask_3d + background * (1.0 - mask_3d)


def blur_radius_map(
    disparity: NDArray[np.float32],
    focus: float,
    max_radius: float,
    falloff: float,
) -> NDArray[np.float32]:
    """
    Per-pixel blur radius.

    Zero where disparity equals focus, rising linearly with
    |disparity - focus| and saturating at max_radius from falloff on.
    """
    distance = np.abs(disparity - np.float32(focus))
    return (max_radius * np.clip(distance / falloff, 0.0, 1.0)).astype(np.float32)


def variable_blur(
    image: NDArray[np.float32],
    radius_map: NDArray[np.float32],
    max_radius: float,
    levels: int,
) -> NDArray[np.float32]:
    """
    Spatially varying Gaussian blur.

    Blurs the image at `levels` radii spaced evenly over [0, max_radius]
    and blends each pixel between the two levels bracketing its radius.
    Radius zero reproduces the input pixel exactly.
    """
    if max_radius <= 0:
        return image.astype(np.float32, copy=True)

    position = radius_map * ((levels - 1) / max_radius)
    result = np.zeros(image.shape, dtype=np.float32)

    for level in range(levels):
        weight = np.clip(1.0 - np.abs(position - level), 0.0, 1.0)
        if not weight.any():
            continue

        if level == 0:
            layer = image
        else:
            sigma = max_radius * level / (levels - 1)
            layer = cv2.GaussianBlur(image, (0, 0), sigmaX=sigma, sigmaY=sigma)

        result += layer * weight[:, :, np.newaxis]

    return result


def to_uint8(image: NDArray[np.float32]) -> NDArray[np.uint8]:
    """Convert a [0, 1] float image to uint8."""
    return np.clip(np.round(image * 255.0), 0, 255).astype(np.uint8)
