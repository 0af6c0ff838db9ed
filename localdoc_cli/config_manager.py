"""Analysis settings stored in the ``[analysis]`` table of a TOML file."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Tuple

import toml

logger = logging.getLogger(__name__)


@dataclass
class AnalysisSettings:
    """Tunable thresholds used by the diff and map engines."""

    heavy_mutation_threshold: int = 3
    projection_width: int = 60
    projection_height: int = 15
    # Upper bounds of the 1-5, 6-10 and 11-20 edge buckets; above the last is ">20".
    intensity_buckets: Tuple[int, int, int] = (5, 10, 20)
    display_limit: int = 10


SETTING_NAMES = tuple(f.name for f in fields(AnalysisSettings))


def _coerce(name: str, value: Any) -> Any:
    if name == "intensity_buckets":
        buckets = tuple(int(v) for v in value)
        if len(buckets) != 3 or not 0 < buckets[0] < buckets[1] < buckets[2]:
            raise ValueError("intensity_buckets must be three strictly ascending positive integers")
        return buckets
    number = int(value)
    if number < 1:
        raise ValueError(f"{name} must be a positive integer")
    return number


def settings_from_dict(data: Dict[str, Any]) -> AnalysisSettings:
    """Build settings from a mapping, skipping unknown or invalid entries."""
    values: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in SETTING_NAMES:
            logger.warning("Ignoring unknown analysis setting '%s'", key)
            continue
        try:
            values[key] = _coerce(key, value)
        except (TypeError, ValueError) as exc:
            logger.warning("Ignoring invalid value for '%s': %s", key, exc)
    return AnalysisSettings(**values)


def load_settings(config_file: Path) -> AnalysisSettings:
    """Load analysis settings from a TOML file.

    Returns:
        Settings from the ``[analysis]`` table. Falls back to defaults when
        the file is missing or cannot be parsed.
    """
    if not config_file.exists():
        return AnalysisSettings()

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Could not read %s, using default settings: %s", config_file, exc)
        return AnalysisSettings()

    section = data.get("analysis", {})
    if not isinstance(section, dict):
        logger.warning("Ignoring non-table [analysis] entry in %s, using default settings", config_file)
        return AnalysisSettings()
    return settings_from_dict(section)


def save_settings(settings: AnalysisSettings, config_file: Path) -> None:
    """Write settings into the ``[analysis]`` table, keeping other tables."""
    data: Dict[str, Any] = {}
    if config_file.exists():
        try:
            data = toml.loads(config_file.read_text(encoding="utf-8"))
        except toml.TomlDecodeError as exc:
            logger.warning("Overwriting unreadable config %s: %s", config_file, exc)

    payload = asdict(settings)
    payload["intensity_buckets"] = list(settings.intensity_buckets)
    data["analysis"] = payload

    config_file.parent.mkdir(parents=True, exist_ok=True)
    with open(config_file, "w", encoding="utf-8") as f:
        toml.dump(data, f)


def update_setting(config_file: Path, key: str, raw_value: str) -> AnalysisSettings:
    """Set one setting from its command-line text form and persist it."""
    if key not in SETTING_NAMES:
        raise KeyError(key)

    value: Any = raw_value
    if key == "intensity_buckets":
        value = [part.strip() for part in raw_value.split(",")]

    current = asdict(load_settings(config_file))
    current[key] = _coerce(key, value)
    settings = AnalysisSettings(**current)
    save_settings(settings, config_file)
    return settings
