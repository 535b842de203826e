"""
Workspace management for migration-mapper.
"""

import json
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validate

from migration_mapper.exceptions import InvalidConfigError, WorkspaceNotFoundError
from migration_mapper.store.workspace import WorkspaceStore
from migration_mapper.util.config import EngineSettings

SCHEMA_DIR = Path(__file__).parent / "schema"


class Workspace:
    """Manages the migration-mapper workspace structure and configuration."""

    REQUIRED_DIRS = [
        "inventory",
        "state",
        "exports",
        "reports",
    ]

    DEFAULT_CONFIG = {
        "bulk": {
            "warning_threshold": 25,
            "max_selections": 50,
        },
        "suggestions": {
            "min_confidence": 0,
            "weights": {
                "resource_type": 50,
                "tags": 20,
                "name": 20,
                "region": 10,
            },
        },
        "pagination": {
            "default_page_size": 50,
            "max_page_size": 250,
        },
        "logging": {
            "level": "WARNING",
        },
    }

    def __init__(self, root: Path):
        self.root = Path(root)
        self.config_file = self.root / "migration-mapper.yaml"
        self._config_cache: dict[str, Any] | None = None

    def initialize(self) -> None:
        """Initialize workspace directory structure and config."""
        for dir_path in self.REQUIRED_DIRS:
            (self.root / dir_path).mkdir(parents=True, exist_ok=True)

        with open(self.config_file, "w") as f:
            yaml.dump(self.DEFAULT_CONFIG, f, default_flow_style=False, sort_keys=False)

    def ensure_exists(self) -> None:
        """Raise WorkspaceNotFoundError unless this directory holds a workspace."""
        if not self.config_file.exists():
            raise WorkspaceNotFoundError(str(self.root))

    def load_config(self) -> dict[str, Any]:
        """Load and validate workspace configuration (cached after the first load)."""
        if self._config_cache is not None:
            return self._config_cache

        self.ensure_exists()

        try:
            with open(self.config_file) as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise InvalidConfigError(f"YAML parse error: {e}") from e

        if config is None:
            raise InvalidConfigError(f"Config file is empty: {self.config_file}")

        if not isinstance(config, dict):
            raise InvalidConfigError(f"expected dict, got {type(config).__name__}")

        self._validate_config_schema(config)

        self._config_cache = config

        return config

    def settings(self) -> EngineSettings:
        """Return typed engine settings for this workspace."""
        return EngineSettings.from_config(self.load_config())

    def store(self) -> WorkspaceStore:
        """Return the YAML-backed store for this workspace."""
        self.ensure_exists()
        return WorkspaceStore(self.root / "state")

    def _validate_config_schema(self, config: dict) -> None:
        """Validate config against JSON schema."""
        schema_file = SCHEMA_DIR / "config.schema.json"
        if not schema_file.exists():
            raise FileNotFoundError(
                f"Configuration schema file not found: {schema_file}\n"
                f"This indicates an incomplete installation. Please reinstall migration-mapper:\n"
                f"  pip install --force-reinstall migration-mapper"
            )

        schema = json.loads(schema_file.read_text())
        try:
            validate(instance=config, schema=schema)
        except ValidationError as e:
            raise InvalidConfigError(
                f"{e.message} (path: {'.'.join(str(p) for p in e.path) or '<root>'})"
            ) from e
