"""
Custom exceptions for migration-mapper with helpful error messages.

Every engine error carries a machine-readable ``kind`` alongside the
human-readable message so API layers can branch on it without string matching.
"""

from typing import Any


class MigrationMapperError(Exception):
    """Base exception for migration-mapper errors."""

    kind = "error"

    def __init__(self, message: str, suggestion: str = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.message)

    def __str__(self):
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Return a structured representation for API responses and exports."""
        data = {"kind": self.kind, "message": self.message}
        if self.suggestion:
            data["suggestion"] = self.suggestion
        return data


class ValidationError(MigrationMapperError):
    """Malformed input: bad enum value, empty source list, direction/category mismatch."""

    kind = "validation_error"


class ConfirmationRequiredError(ValidationError):
    """A destructive bulk call was issued without explicit confirmation."""

    def __init__(self, operation: str, count: int, warning: Any = None):
        message = f"{operation} affects {count} item(s) and requires confirmation."
        if warning is not None:
            message = f"{warning.message}. {message}"
        suggestion = (
            "Repeat the call with confirmed=True, or pass --yes on the command line."
        )
        super().__init__(message, suggestion)
        self.operation = operation
        self.count = count
        self.warning = warning

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["count"] = self.count
        if self.warning is not None:
            data["warning"] = self.warning.to_dict()
        return data


class NotFoundError(MigrationMapperError):
    """Unknown resource or mapping id."""

    kind = "not_found"

    def __init__(self, entity: str, entity_id: str):
        message = f"{entity} not found: {entity_id}"
        if entity == "Resource":
            suggestion = (
                "Check the resource id or re-import the inventory:\n"
                "  migration-mapper import --file <inventory.json>"
            )
        else:
            suggestion = "List existing mappings with:\n  migration-mapper map list"
        super().__init__(message, suggestion)
        self.entity = entity
        self.entity_id = entity_id

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["id"] = self.entity_id
        return data


class ConflictError(MigrationMapperError):
    """Optimistic-concurrency version mismatch on a mapping group."""

    kind = "conflict"

    def __init__(self, group_id: str, expected: str | None, actual: str | None):
        message = (
            f"Mapping {group_id} was modified concurrently "
            f"(expected updated_at {expected}, found {actual})"
        )
        suggestion = "Re-read the mapping and retry with its current updated_at value."
        super().__init__(message, suggestion)
        self.group_id = group_id
        self.expected = expected
        self.actual = actual


class InvalidTransitionError(MigrationMapperError):
    """Illegal migration status move."""

    kind = "invalid_transition"

    def __init__(self, from_status: str, to_status: str, allowed: list[str] = None):
        message = f"Invalid migration status transition: {from_status} -> {to_status}"
        if allowed:
            suggestion = f"From {from_status} the allowed statuses are: {', '.join(allowed)}"
        else:
            suggestion = f"{from_status} is a terminal status and cannot change."
        super().__init__(message, suggestion)
        self.from_status = from_status
        self.to_status = to_status

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["from"] = self.from_status
        data["to"] = self.to_status
        return data


class LimitExceededError(MigrationMapperError):
    """Bulk selection larger than the configured hard cap."""

    kind = "limit_exceeded"

    def __init__(self, size: int, limit: int):
        message = f"Bulk selection of {size} items exceeds the limit of {limit}"
        suggestion = (
            "Split the selection into smaller batches, or raise bulk.max_selections\n"
            "in migration-mapper.yaml if larger batches are intended."
        )
        super().__init__(message, suggestion)
        self.size = size
        self.limit = limit


class WorkspaceError(MigrationMapperError):
    """Errors related to workspace management."""

    pass


class WorkspaceNotFoundError(WorkspaceError):
    """Workspace not found or not initialized."""

    def __init__(self, path: str = None):
        message = "Not in a migration-mapper workspace."
        if path:
            message = f"No migration-mapper workspace found at: {path}"

        suggestion = (
            "Initialize a new workspace with:\n"
            "  migration-mapper init <workspace-dir>\n\n"
            "Or navigate to an existing workspace directory."
        )
        super().__init__(message, suggestion)


class ConfigurationError(MigrationMapperError):
    """Configuration file errors."""

    pass


class InvalidConfigError(ConfigurationError):
    """Configuration file is invalid."""

    def __init__(self, error_details: str):
        message = f"Invalid configuration file: {error_details}"

        suggestion = (
            "Fix the migration-mapper.yaml file.\n"
            "You can regenerate the default configuration:\n"
            "  mv migration-mapper.yaml migration-mapper.yaml.backup\n"
            "  migration-mapper init .\n\n"
            "Then merge your settings back from the backup."
        )
        super().__init__(message, suggestion)


class InventoryError(MigrationMapperError):
    """Inventory file could not be read or failed validation."""

    def __init__(self, file_path: str, error_details: str):
        message = f"Invalid inventory file {file_path}: {error_details}"
        suggestion = (
            "The inventory must be a JSON or YAML list of resources (or an object with a\n"
            "'resources' list). Each resource needs resource_id, resource_type and region."
        )
        super().__init__(message, suggestion)


def format_error_for_cli(error: Exception) -> str:
    """
    Format an exception for CLI display with helpful information.

    Args:
        error: The exception to format

    Returns:
        Formatted error message string
    """
    if isinstance(error, MigrationMapperError):
        output = f"[red]Error:[/red] {error.message}"
        if error.suggestion:
            output += f"\n\n[yellow]{error.suggestion}[/yellow]"
        return output
    else:
        return f"[red]Error:[/red] {str(error)}"
