"""
Deepends - Depth-Guided Photo Filters

Loads photographs that carry an embedded disparity map and renders them
in one of four display modes:

1. Original photo
2. Visualized depth (normalized disparity)
3. Binary focus mask for a chosen focus threshold
4. Depth-guided filter (spotlight, color highlight, focal blur)

Every render is a pure function of (sample, mode, filter, focus).
"""

__version__ = "0.1.0"
__author__ = "Deepends Team"
