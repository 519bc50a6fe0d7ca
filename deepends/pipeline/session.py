"""
Viewer Session.

Turns UI events into render calls. The only view state is explicit:
mode, filter kind and focus. Each event updates that state and
re-renders; when a render yields no image, the previous frame stays
on display.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Union
import numpy as np
from numpy.typing import NDArray
from loguru import logger

from deepends.core.contracts import DepthSample, FilterKind, ImageMode
from deepends.pipeline.navigator import SampleNavigator
from deepends.pipeline.renderer import render
from deepends.transforms.depth_filters import DepthFilterEngine, clamp_focus


# ============================================================
# EVENTS
# ============================================================

@dataclass(frozen=True)
class AdvanceSample:
    """Tap: show the next sample."""


@dataclass(frozen=True)
class SelectMode:
    mode: ImageMode


@dataclass(frozen=True)
class SelectFilter:
    kind: FilterKind


@dataclass(frozen=True)
class SetFocus:
    focus: float


ViewerEvent = Union[AdvanceSample, SelectMode, SelectFilter, SetFocus]


@dataclass(frozen=True)
class ViewState:
    """Explicit view parameters of a render."""
    mode: ImageMode = ImageMode.ORIGINAL
    filter_kind: FilterKind = FilterKind.SPOTLIGHT
    focus: float = 0.5

    @property
    def shows_focus_slider(self) -> bool:
        return self.mode.shows_focus_slider

    @property
    def shows_filter_selector(self) -> bool:
        return self.mode.shows_filter_selector


class ViewerSession:
    """
    Event-driven viewer state.

    Usage:
        session = ViewerSession(navigator)
        frame = session.handle(AdvanceSample())
        frame = session.handle(SelectMode(ImageMode.MASK))
    """

    def __init__(
        self,
        navigator: SampleNavigator,
        engine: Optional[DepthFilterEngine] = None,
        initial_state: Optional[ViewState] = None,
    ):
        """
        Initialize session.

        Args:
            navigator: Sample navigator
            engine: Filter engine (default parameters if None)
            initial_state: Starting view state, applied to the first sample
        """
        self.navigator = navigator
        self.engine = engine or DepthFilterEngine()
        self._state = initial_state or ViewState()
        self._frame: Optional[NDArray[np.uint8]] = None

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def sample(self) -> Optional[DepthSample]:
        return self.navigator.current

    @property
    def frame(self) -> Optional[NDArray[np.uint8]]:
        """Frame currently on display."""
        return self._frame

    def handle(self, event: ViewerEvent) -> Optional[NDArray[np.uint8]]:
        """
        Apply an event and re-render.

        Returns:
            The frame to display (unchanged if the render failed)
        """
        if isinstance(event, AdvanceSample):
            first = self.navigator.current is None
            if self.navigator.advance() and not first:
                # the first sample keeps the initial mode, later ones open on the photo
                self._state = replace(self._state, mode=ImageMode.ORIGINAL)
        elif isinstance(event, SelectMode):
            self._state = replace(self._state, mode=event.mode)
        elif isinstance(event, SelectFilter):
            self._state = replace(self._state, filter_kind=event.kind)
        elif isinstance(event, SetFocus):
            self._state = replace(self._state, focus=clamp_focus(event.focus))
        else:
            logger.warning(f"Unsupported viewer event: {event!r}")
            return self._frame

        return self.refresh()

    def refresh(self) -> Optional[NDArray[np.uint8]]:
        """Re-render the current sample with the current state."""
        sample = self.navigator.current
        if sample is None:
            return self._frame

        state = self._state
        frame = render(sample, state.mode, state.filter_kind, state.focus, self.engine)
        if frame is not None:
            self._frame = frame
        return self._frame
