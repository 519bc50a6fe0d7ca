"""
Error taxonomy.

Loader-time failures (fatal to one sample, never to the application):
- BaseImageUnreadable
- NoDepthData
- UnknownOrientation

Render-time failure (non-fatal, previous frame is kept):
- RenderUnavailable
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class DeependsError(Exception):
    """Base class for all Deepends errors."""


class DecodeFailure(DeependsError):
    """A sample could not be constructed from its source file."""

    reason = "decode failure"

    def __init__(self, source: Union[str, Path], detail: Optional[str] = None):
        self.source = Path(source)
        self.detail = detail
        message = f"{self.source.name}: {self.reason}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class BaseImageUnreadable(DecodeFailure):
    reason = "base image unreadable"


class NoDepthData(DecodeFailure):
    """The container has no usable auxiliary disparity image."""
    reason = "no depth data"


class UnknownOrientation(DecodeFailure):
    reason = "unknown orientation"


class RenderUnavailable(DeependsError):
    """The compositing pipeline could not produce an image."""
