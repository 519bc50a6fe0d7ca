"""
Viewer Pipeline Module.

Connects sample navigation, view state and rendering.
"""

from .renderer import render
from .navigator import SampleNavigator
from .session import (
    ViewerSession,
    ViewState,
    AdvanceSample,
    SelectMode,
    SelectFilter,
    SetFocus,
)
