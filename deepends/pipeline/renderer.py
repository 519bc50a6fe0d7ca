"""
Renderer.

Maps (sample, mode, filter, focus) to a display image. The mapping
is a pure function; the only failure is RenderUnavailable from the
filter engine, which is reported as "no image".
"""

from __future__ import annotations

from typing import Optional
import numpy as np
from numpy.typing import NDArray

from deepends.core.contracts import DepthSample, FilterKind, ImageMode
from deepends.core.errors import RenderUnavailable
from deepends.transforms.depth_filters import DepthFilterEngine


def render(
    sample: DepthSample,
    mode: ImageMode,
    filter_kind: FilterKind,
    focus: float,
    engine: DepthFilterEngine,
) -> Optional[NDArray[np.uint8]]:
    """
    Render a sample for display.

    Args:
        sample: Loaded sample
        mode: Display mode
        filter_kind: Filter used in FILTERED mode, ignored otherwise
        focus: Focus threshold in [0, 1], ignored for ORIGINAL and DEPTH
        engine: Filter engine

    Returns:
        RGB uint8 image, or None when rendering is unavailable
    """
    if mode is ImageMode.ORIGINAL:
        return sample.original
    if mode is ImageMode.DEPTH:
        return sample.depth_image

    # the engine logs its own failures
    try:
        if mode is ImageMode.MASK:
            return engine.create_mask_image(sample, focus)
        return engine.apply_filter(filter_kind, sample, focus)
    except RenderUnavailable:
        return None
