"""Configuration paths and analysis defaults for localdoc."""

from __future__ import annotations

import os
from pathlib import Path

from .config_manager import AnalysisSettings, load_settings

BASE_DIR = Path(os.environ.get("LOCALDOC_HOME", str(Path.home() / ".localdoc"))).expanduser()
DOCPACKS_DIR = BASE_DIR / "docpacks"
CONFIG_FILE = BASE_DIR / "config.toml"
DOCPACK_SUFFIX = ".docpack"

# Defaults used by the engines when a caller does not override them
_defaults = AnalysisSettings()
HEAVY_MUTATION_THRESHOLD = _defaults.heavy_mutation_threshold
PROJECTION_WIDTH = _defaults.projection_width
PROJECTION_HEIGHT = _defaults.projection_height
INTENSITY_BUCKETS = _defaults.intensity_buckets
DISPLAY_LIMIT = _defaults.display_limit


def current_settings() -> AnalysisSettings:
    """Settings from ``config.toml`` (set via `localdoc config set`)."""
    return load_settings(CONFIG_FILE)
