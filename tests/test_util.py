"""
Tests for utility modules.
"""

import json
import logging

import pytest

from migration_mapper.util.config import DEFAULT_WEIGHTS, EngineSettings
from migration_mapper.util.files import ensure_dir, write_json, write_text
from migration_mapper.util.logging import setup_logging
from migration_mapper.util.progress import show_summary, track_progress


class TestFileUtils:
    """Tests for file utilities."""

    def test_ensure_dir_creates_directory(self, tmp_path):
        """Test creating a new directory."""
        new_dir = tmp_path / "new" / "nested" / "dir"

        result = ensure_dir(new_dir)

        assert result == new_dir
        assert new_dir.is_dir()

    def test_ensure_dir_existing(self, tmp_path):
        """Test that an existing directory is left alone."""
        assert ensure_dir(tmp_path) == tmp_path

    def test_write_text_creates_parents(self, tmp_path):
        """Test writing a file into a missing directory."""
        target = tmp_path / "reports" / "progress.html"

        write_text(target, "<html></html>")

        assert target.read_text() == "<html></html>"

    def test_write_json(self, tmp_path):
        target = tmp_path / "exports" / "export.json"

        write_json(target, {"total": 3, "items": ["a"]})

        assert json.loads(target.read_text()) == {"total": 3, "items": ["a"]}
        assert target.read_text().endswith("\n")


class TestEngineSettings:
    """Tests for configuration parsing."""

    def test_defaults(self):
        settings = EngineSettings.from_config(None)

        assert settings.bulk.warning_threshold == 25
        assert settings.bulk.max_selections == 50
        assert settings.scoring.weights == DEFAULT_WEIGHTS
        assert settings.pagination.default_page_size == 50
        assert settings.log_level == "WARNING"

    def test_overrides(self):
        settings = EngineSettings.from_config(
            {
                "suggestions": {"min_confidence": 40, "weights": {"tags": 5}},
                "pagination": {"default_page_size": 10},
                "logging": {"level": "DEBUG"},
            }
        )

        assert settings.scoring.min_confidence == 40
        assert settings.scoring.weights["tags"] == 5
        assert settings.scoring.weights["name"] == 20
        assert settings.pagination.default_page_size == 10
        assert settings.pagination.max_page_size == 250
        assert settings.log_level == "DEBUG"

    def test_default_weights_not_shared(self):
        settings = EngineSettings()
        settings.scoring.weights["tags"] = 0

        assert DEFAULT_WEIGHTS["tags"] == 20


class TestLogging:
    """Tests for logging setup."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_level_applied(self):
        logger = setup_logging("debug")

        assert logger.name == "migration_mapper"
        assert logging.getLogger().level == logging.DEBUG

    def test_handlers_not_stacked(self):
        setup_logging("INFO")
        setup_logging("WARNING")

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        setup_logging("chatty")

        assert logging.getLogger().level == logging.INFO


class TestProgress:
    """Tests for rich progress helpers."""

    def test_track_progress_callback(self):
        seen = []

        with track_progress("Categorizing", total=2) as advance:
            for item in ("a", "b"):
                advance(item)
                seen.append(item)

        assert seen == ["a", "b"]

    def test_show_summary(self, capsys):
        show_summary("Categories", {"Legacy": 2, "Modern": 1})

        output = capsys.readouterr().out
        assert "Categories" in output
        assert "Legacy" in output
