"""
Configuration for Deepends.

Settings come from a YAML file (config/settings.yaml by default) with
sections:
- samples: where to find sample files
- filters: depth filter constants
- viewer: window and initial view state
- logging: level and log file

Missing files or keys fall back to the dataclass defaults below.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union
import yaml
from loguru import logger

from deepends.core.contracts import FilterKind, FilterParameters, ImageMode


DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "settings.yaml"


@dataclass
class ViewerSettings:
    """
    Settings for the OpenCV viewer.

    Attributes:
        window_name: Title of the display window
        max_display_width: Frames wider than this are scaled down for display
        initial_focus: Focus threshold at startup
        initial_filter: Filter selected at startup
        show_overlay: Draw mode/filter/focus text on the frame
    """
    window_name: str = "Deepends"
    max_display_width: int = 1280
    initial_focus: float = 0.5
    initial_filter: FilterKind = FilterKind.SPOTLIGHT
    initial_mode: ImageMode = ImageMode.ORIGINAL
    show_overlay: bool = True


@dataclass
class DeependsConfig:
    """Top-level configuration."""
    samples_directory: Path = Path("samples")
    sample_extensions: Tuple[str, ...] = (".jpg", ".jpeg", ".mpo")
    filters: FilterParameters = field(default_factory=FilterParameters)
    viewer: ViewerSettings = field(default_factory=ViewerSettings)
    log_level: str = "INFO"
    log_file: Optional[str] = "logs/deepends.log"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> DeependsConfig:
        """Build a config from parsed YAML, keeping defaults for missing keys."""
        data = data or {}
        defaults = cls()
        samples = data.get('samples', {}) or {}
        filters = data.get('filters', {}) or {}
        viewer = data.get('viewer', {}) or {}
        logging_cfg = data.get('logging', {}) or {}

        default_filters = defaults.filters
        default_viewer = defaults.viewer

        return cls(
            samples_directory=Path(samples.get('directory', defaults.samples_directory)),
            sample_extensions=tuple(samples.get('extensions', defaults.sample_extensions)),
            filters=FilterParameters(
                focus_tolerance=float(filters.get('focus_tolerance', default_filters.focus_tolerance)),
                spotlight_exposure_ev=float(
                    filters.get('spotlight_exposure_ev', default_filters.spotlight_exposure_ev)
                ),
                max_blur_radius=float(filters.get('max_blur_radius', default_filters.max_blur_radius)),
                blur_falloff=float(filters.get('blur_falloff', default_filters.blur_falloff)),
                blur_levels=int(filters.get('blur_levels', default_filters.blur_levels)),
            ),
            viewer=ViewerSettings(
                window_name=str(viewer.get('window_name', default_viewer.window_name)),
                max_display_width=int(viewer.get('max_display_width', default_viewer.max_display_width)),
                initial_focus=float(viewer.get('initial_focus', default_viewer.initial_focus)),
                initial_filter=_parse_enum(
                    FilterKind, viewer.get('initial_filter'), default_viewer.initial_filter
                ),
                initial_mode=_parse_enum(
                    ImageMode, viewer.get('initial_mode'), default_viewer.initial_mode
                ),
                show_overlay=bool(viewer.get('show_overlay', default_viewer.show_overlay)),
            ),
            log_level=str(logging_cfg.get('level', defaults.log_level)).upper(),
            log_file=logging_cfg.get('file', defaults.log_file),
        )


def _parse_enum(enum_cls, value, default):
    """Accept enum names in any case ("focal_blur", "FOCAL_BLUR")."""
    if value is None:
        return default
    try:
        return enum_cls[str(value).strip().upper()]
    except KeyError:
        logger.warning(f"Unknown {enum_cls.__name__} '{value}', using {default.name}")
        return default


def load_config(config_path: Optional[Union[str, Path]] = None) -> DeependsConfig:
    """
    Load configuration from file.

    Args:
        config_path: YAML file; the default location is tried if None
            or missing

    Returns:
        Parsed configuration (defaults if no file was found)
    """
    if config_path and Path(config_path).exists():
        with open(config_path) as f:
            return DeependsConfig.from_dict(yaml.safe_load(f))

    if config_path:
        logger.warning(f"Config file not found: {config_path}")

    if DEFAULT_CONFIG_PATH.exists():
        with open(DEFAULT_CONFIG_PATH) as f:
            return DeependsConfig.from_dict(yaml.safe_load(f))

    return DeependsConfig()
