"""
Pytest configuration and shared fixtures.
"""

import tempfile
from pathlib import Path

import pytest

from migration_mapper.models import Category, Resource
from migration_mapper.service import MigrationService
from migration_mapper.store import MemoryStore
from migration_mapper.workspace import Workspace


@pytest.fixture
def temp_workspace():
    """Create a temporary workspace for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        workspace_path = Path(tmpdir)
        workspace = Workspace(workspace_path)
        workspace.initialize()
        yield workspace
        # Cleanup happens automatically when context exits


@pytest.fixture
def resources():
    """Return a small mixed inventory: two legacy, two modern, one unreviewed."""
    return [
        Resource(
            resource_id="i-legacy-web",
            resource_type="ec2-instance",
            region="us-east-1",
            name="legacy-web-server",
            category=Category.OLD,
            tags={"app": "web", "env": "prod"},
        ),
        Resource(
            resource_id="db-legacy",
            resource_type="rds-instance",
            region="us-east-1",
            name="orders-db",
            category=Category.OLD,
            tags={"app": "orders"},
        ),
        Resource(
            resource_id="i-new-web",
            resource_type="ec2-instance",
            region="us-east-1",
            name="web-server-v2",
            category=Category.NEW,
            tags={"app": "web", "env": "prod"},
        ),
        Resource(
            resource_id="db-aurora",
            resource_type="rds-instance",
            region="us-west-2",
            name="orders-aurora",
            category=Category.NEW,
            tags={"app": "orders"},
        ),
        Resource(
            resource_id="bucket-logs",
            resource_type="s3-bucket",
            region="us-east-1",
            name="access-logs",
        ),
    ]


@pytest.fixture
def store(resources):
    """Return a MemoryStore seeded with the sample inventory."""
    return MemoryStore(resources)


@pytest.fixture
def service(store):
    """Return a MigrationService over the seeded store with default settings."""
    return MigrationService(store)


@pytest.fixture
def web_mapping(service):
    """Create and return the legacy web -> new web replacement group."""
    return service.create_mapping(
        ["i-legacy-web"], ["i-new-web"], "replacement", "old_to_new", notes="lift and shift"
    )
