"""
Core contracts for Deepends.

Render flow (per UI event):
1. Load sample once per selection (decode, extract disparity, orient)
2. Read explicit view state (mode, filter, focus)
3. Dispatch to the depth filter engine
4. Hand the resulting RGB frame to the display surface
"""

from .orientation import Orientation
from .contracts import (
    ImageMode,
    FilterKind,
    DepthSample,
    FilterParameters,
)
from .errors import (
    DeependsError,
    DecodeFailure,
    BaseImageUnreadable,
    NoDepthData,
    UnknownOrientation,
    RenderUnavailable,
)
