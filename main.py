#!/usr/bin/env python3
"""
Deepends - Depth-Guided Photo Filters

Viewer for photos with embedded disparity maps.

Usage:
    python main.py [--config CONFIG_PATH] [--samples DIRECTORY]

Controls:
    Click / SPACE / N  - Next sample
    1 2 3 4            - Original, Depth, Mask, Filtered
    S C B              - Spotlight, Color highlight, Focal blur
    Focus trackbar     - Focus threshold (Mask and Filtered modes)
    Q / ESC            - Quit
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np
from loguru import logger

from deepends.config import DeependsConfig, ViewerSettings, load_config
from deepends.core.contracts import DepthSample, FilterKind, ImageMode
from deepends.depth.sample_loader import DepthSampleLoader
from deepends.pipeline.navigator import SampleNavigator
from deepends.pipeline.session import (
    AdvanceSample,
    SelectFilter,
    SelectMode,
    SetFocus,
    ViewerEvent,
    ViewerSession,
    ViewState,
)
from deepends.transforms.depth_filters import DepthFilterEngine


FOCUS_TRACKBAR = "Focus"
FOCUS_STEPS = 100


# ============================================================
# LOGGING CONFIGURATION
# ============================================================

def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """Configure logging."""
    logger.remove()  # Remove default handler

    # Console output with colors
    logger.add(
        sys.stderr,
        level=log_level,
        format="<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{module}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>",
        colorize=True,
    )

    # File output
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {module}:{line} | {message}",
            rotation="10 MB",
            retention="7 days",
        )


# ============================================================
# KEYBOARD INPUT HANDLER
# ============================================================

KEY_EVENTS = {
    ord(' '): AdvanceSample(),
    ord('n'): AdvanceSample(),
    ord('1'): SelectMode(ImageMode.ORIGINAL),
    ord('2'): SelectMode(ImageMode.DEPTH),
    ord('3'): SelectMode(ImageMode.MASK),
    ord('4'): SelectMode(ImageMode.FILTERED),
    ord('s'): SelectFilter(FilterKind.SPOTLIGHT),
    ord('c'): SelectFilter(FilterKind.COLOR_HIGHLIGHT),
    ord('b'): SelectFilter(FilterKind.FOCAL_BLUR),
}

QUIT_KEYS = {ord('q'), 27}  # 27 = ESC


class KeyboardHandler:
    """Maps key codes from cv2.waitKey to viewer events."""

    def __init__(self):
        self._quit_requested = False

    def on_key(self, key: int) -> Optional[ViewerEvent]:
        """Handle a key code; -1 (no key) is ignored."""
        if key < 0:
            return None
        key = ord(chr(key & 0xFF).lower())
        if key in QUIT_KEYS:
            self._quit_requested = True
            return None
        return KEY_EVENTS.get(key)

    @property
    def quit_requested(self) -> bool:
        return self._quit_requested


# ============================================================
# OUTPUT RENDERER
# ============================================================

class OutputRenderer:
    """Renders frames to an OpenCV window with the focus trackbar."""

    def __init__(self, settings: ViewerSettings, on_event):
        self.settings = settings
        self.window_name = settings.window_name
        self._on_event = on_event

        cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)
        cv2.createTrackbar(
            FOCUS_TRACKBAR,
            self.window_name,
            int(round(settings.initial_focus * FOCUS_STEPS)),
            FOCUS_STEPS,
            self._on_trackbar,
        )
        cv2.setMouseCallback(self.window_name, self._on_mouse)

    def _on_trackbar(self, position: int):
        self._on_event(SetFocus(position / FOCUS_STEPS))

    def _on_mouse(self, event, x, y, flags, param):
        # a tap advances to the next sample
        if event == cv2.EVENT_LBUTTONUP:
            self._on_event(AdvanceSample())

    def render(
        self,
        frame: Optional[np.ndarray],
        state: ViewState,
        sample: Optional[DepthSample],
    ):
        """Render frame with overlay information."""
        if frame is None:
            display_frame = np.zeros((240, 480, 3), dtype=np.uint8)
            cv2.putText(
                display_frame, "No sample loaded", (20, 120),
                cv2.FONT_HERSHEY_SIMPLEX, 0.7, (200, 200, 200), 1
            )
        else:
            display_frame = self._fit(cv2.cvtColor(frame, cv2.COLOR_RGB2BGR))

        if self.settings.show_overlay and sample is not None:
            self._draw_info_overlay(display_frame, state, sample)

        cv2.imshow(self.window_name, display_frame)

    def _fit(self, frame: np.ndarray) -> np.ndarray:
        h, w = frame.shape[:2]
        max_w = self.settings.max_display_width
        if max_w <= 0 or w <= max_w:
            return frame
        scale = max_w / w
        return cv2.resize(frame, (max_w, int(h * scale)), interpolation=cv2.INTER_AREA)

    def _draw_info_overlay(self, frame: np.ndarray, state: ViewState, sample: DepthSample):
        """Draw sample name and visible controls."""
        h, w = frame.shape[:2]

        lines = [sample.name, f"Mode: {state.mode.label}"]
        if state.shows_filter_selector:
            lines.append(f"Filter: {state.filter_kind.label}")
        if state.shows_focus_slider:
            lines.append(f"Focus: {state.focus:.2f}")

        overlay = frame.copy()
        cv2.rectangle(overlay, (10, 10), (300, 20 + 22 * len(lines)), (0, 0, 0), -1)
        cv2.addWeighted(overlay, 0.6, frame, 0.4, 0, frame)

        for i, text in enumerate(lines):
            cv2.putText(
                frame, text, (20, 32 + 22 * i),
                cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 255, 0), 1
            )

        help_text = "Click/SPACE:Next  1-4:Mode  S/C/B:Filter  Q:Quit"
        cv2.putText(
            frame, help_text, (10, h - 10),
            cv2.FONT_HERSHEY_SIMPLEX, 0.5, (200, 200, 200), 1
        )

    def close(self):
        """Close the renderer."""
        cv2.destroyAllWindows()


# ============================================================
# MAIN APPLICATION
# ============================================================

class DepthViewerApp:
    """Main application class."""

    def __init__(self, config: DeependsConfig):
        self.config = config

        loader = DepthSampleLoader(config.sample_extensions)
        sources = loader.discover(config.samples_directory)

        viewer = config.viewer
        self.session = ViewerSession(
            SampleNavigator(sources, loader),
            DepthFilterEngine(config.filters),
            ViewState(
                mode=viewer.initial_mode,
                filter_kind=viewer.initial_filter,
                focus=viewer.initial_focus,
            ),
        )
        self.keyboard_handler = KeyboardHandler()
        self._pending: List[ViewerEvent] = []
        self.renderer = OutputRenderer(viewer, on_event=self._pending.append)

    def run(self):
        """Run the main application loop."""
        logger.info("Starting Deepends viewer")
        logger.info("Click or press SPACE for the next sample, Q to quit")

        self._pending.append(AdvanceSample())

        try:
            while not self.keyboard_handler.quit_requested:
                if self._pending:
                    events = list(self._pending)
                    self._pending.clear()
                    for event in events:
                        self.session.handle(event)
                    self.renderer.render(
                        self.session.frame, self.session.state, self.session.sample
                    )

                # Handle OpenCV window events
                event = self.keyboard_handler.on_key(cv2.waitKey(30))
                if event is not None:
                    self._pending.append(event)

        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        finally:
            self.renderer.close()
            logger.info("Viewer stopped")


# ============================================================
# ENTRY POINT
# ============================================================

def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Deepends - depth-guided photo filters",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to configuration file",
    )

    parser.add_argument(
        "--samples", "-s",
        type=str,
        default=None,
        help="Directory of sample photos (overrides config)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from config, INFO)",
    )

    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Log file path (default: from config, logs/deepends.log)",
    )

    args = parser.parse_args()

    config = load_config(args.config)
    if args.samples:
        config.samples_directory = Path(args.samples)

    # Setup logging
    setup_logging(args.log_level or config.log_level, args.log_file or config.log_file)

    # Create and run viewer
    app = DepthViewerApp(config)
    app.run()


if __name__ == "__main__":
    main()
