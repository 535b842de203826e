"""
Unit tests for workspace functionality.
"""

import pytest
import yaml

from migration_mapper.exceptions import InvalidConfigError, WorkspaceNotFoundError
from migration_mapper.store import WorkspaceStore
from migration_mapper.util.config import EngineSettings
from migration_mapper.workspace import Workspace


def test_workspace_initialization(temp_workspace):
    """Test workspace is initialized with correct structure"""
    workspace = temp_workspace

    assert workspace.root.exists()
    for dir_name in ("inventory", "state", "exports", "reports"):
        assert (workspace.root / dir_name).is_dir()

    assert workspace.config_file.exists()


def test_workspace_load_config(temp_workspace):
    """Test loading workspace configuration"""
    config = temp_workspace.load_config()

    assert config["bulk"] == {"warning_threshold": 25, "max_selections": 50}
    assert config["suggestions"]["weights"]["resource_type"] == 50
    assert config["pagination"]["max_page_size"] == 250


def test_workspace_settings_defaults(temp_workspace):
    """Test default config produces default engine settings"""
    assert temp_workspace.settings() == EngineSettings()


def test_workspace_config_is_cached(temp_workspace):
    """Test config is read once and then served from cache"""
    first = temp_workspace.load_config()
    temp_workspace.config_file.write_text("bulk: {max_selections: 10}\n")

    assert temp_workspace.load_config() is first


def test_workspace_custom_config(temp_workspace):
    """Test custom values are picked up and missing keys fall back to defaults"""
    temp_workspace.config_file.write_text(
        yaml.dump({"bulk": {"max_selections": 10}, "suggestions": {"weights": {"region": 30}}})
    )

    settings = temp_workspace.settings()

    assert settings.bulk.max_selections == 10
    assert settings.bulk.warning_threshold == 25
    assert settings.scoring.weights["region"] == 30
    assert settings.scoring.weights["resource_type"] == 50


def test_workspace_invalid_config(temp_workspace):
    """Test schema violations raise InvalidConfigError with the failing path"""
    temp_workspace.config_file.write_text("bulk: {max_selections: zero}\n")

    with pytest.raises(InvalidConfigError) as exc_info:
        temp_workspace.load_config()

    assert "bulk.max_selections" in str(exc_info.value)


def test_workspace_unknown_key(temp_workspace):
    """Test unknown top-level keys are rejected"""
    temp_workspace.config_file.write_text("llm: {provider: mock}\n")

    with pytest.raises(InvalidConfigError):
        temp_workspace.load_config()


def test_workspace_empty_config(temp_workspace):
    """Test an empty config file is reported"""
    temp_workspace.config_file.write_text("")

    with pytest.raises(InvalidConfigError, match="empty"):
        temp_workspace.load_config()


def test_workspace_not_found(tmp_path):
    """Test opening a directory without a config file"""
    workspace = Workspace(tmp_path)

    with pytest.raises(WorkspaceNotFoundError):
        workspace.load_config()
    with pytest.raises(WorkspaceNotFoundError):
        workspace.store()


def test_workspace_store(temp_workspace):
    """Test the workspace store lives under state/"""
    store = temp_workspace.store()

    assert isinstance(store, WorkspaceStore)
    assert store.state_dir == temp_workspace.root / "state"
