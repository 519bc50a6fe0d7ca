"""
Depth Filter Module.

Responsibilities:
- Focus masks from disparity thresholds
- Mask-confined compositing (spotlight, color highlight)
- Depth-driven variable blur
"""

from .depth_filters import DepthFilterEngine
