"""Tests for analysis settings persistence."""

import logging
from pathlib import Path

import pytest
import toml

from localdoc_cli.config_manager import (
    AnalysisSettings,
    load_settings,
    save_settings,
    settings_from_dict,
    update_setting,
)


class TestLoadSettings:
    """Tests for load_settings and settings_from_dict."""

    def test_defaults_when_missing(self, tmp_path: Path):
        settings = load_settings(tmp_path / "config.toml")

        assert settings == AnalysisSettings()
        assert settings.heavy_mutation_threshold == 3
        assert (settings.projection_width, settings.projection_height) == (60, 15)
        assert settings.intensity_buckets == (5, 10, 20)

    def test_reads_analysis_table(self, tmp_path: Path):
        config_file = tmp_path / "config.toml"
        config_file.write_text(
            "[analysis]\nheavy_mutation_threshold = 5\nintensity_buckets = [2, 4, 8]\n\n[other]\nkey = 1\n"
        )

        settings = load_settings(config_file)

        assert settings.heavy_mutation_threshold == 5
        assert settings.intensity_buckets == (2, 4, 8)
        assert settings.projection_width == 60

    def test_unreadable_file_falls_back(self, tmp_path: Path, caplog):
        config_file = tmp_path / "config.toml"
        config_file.write_text("[analysis\nbroken")

        with caplog.at_level(logging.WARNING, logger="localdoc_cli.config_manager"):
            settings = load_settings(config_file)

        assert settings == AnalysisSettings()
        assert "default settings" in caplog.text

    def test_unknown_and_invalid_values_skipped(self, caplog):
        with caplog.at_level(logging.WARNING, logger="localdoc_cli.config_manager"):
            settings = settings_from_dict(
                {"mystery": 1, "projection_width": 0, "intensity_buckets": [9, 3, 1], "display_limit": 4}
            )

        assert settings.projection_width == 60
        assert settings.intensity_buckets == (5, 10, 20)
        assert settings.display_limit == 4
        assert "mystery" in caplog.text

    def test_non_table_analysis_entry_falls_back(self, tmp_path: Path, caplog):
        config_file = tmp_path / "config.toml"
        config_file.write_text("analysis = 3\n")

        with caplog.at_level(logging.WARNING, logger="localdoc_cli.config_manager"):
            settings = load_settings(config_file)

        assert settings == AnalysisSettings()
        assert "non-table" in caplog.text

    @pytest.mark.parametrize(
        "buckets",
        [[-1, 0, 0], [0, 5, 10], [5, 5, 10], [5, 10, 10], [5, 10], [1, 2, 3, 4], "5,10,20", 7],
    )
    def test_bad_intensity_buckets_rejected(self, buckets):
        settings = settings_from_dict({"intensity_buckets": buckets})

        assert settings.intensity_buckets == (5, 10, 20)


class TestSaveSettings:
    """Tests for save_settings and update_setting."""

    def test_save_keeps_other_tables(self, tmp_path: Path):
        config_file = tmp_path / "config.toml"
        config_file.write_text('[llm]\nprovider = "ollama"\n')

        save_settings(AnalysisSettings(display_limit=25), config_file)

        data = toml.loads(config_file.read_text())
        assert data["llm"]["provider"] == "ollama"
        assert data["analysis"]["display_limit"] == 25
        assert load_settings(config_file).display_limit == 25

    def test_update_setting(self, tmp_path: Path):
        config_file = tmp_path / "nested" / "config.toml"

        update_setting(config_file, "intensity_buckets", "3, 6, 12")
        settings = update_setting(config_file, "projection_height", "20")

        assert settings.intensity_buckets == (3, 6, 12)
        assert settings.projection_height == 20
        assert load_settings(config_file) == settings

    def test_update_unknown_key(self, tmp_path: Path):
        with pytest.raises(KeyError):
            update_setting(tmp_path / "config.toml", "nope", "1")

    def test_update_invalid_value(self, tmp_path: Path):
        with pytest.raises(ValueError):
            update_setting(tmp_path / "config.toml", "display_limit", "lots")

    def test_update_rejects_unordered_buckets(self, tmp_path: Path):
        with pytest.raises(ValueError):
            update_setting(tmp_path / "config.toml", "intensity_buckets", "10,5,20")
