"""
Tests for resource collectors.
"""

import json

import pytest
import yaml

from migration_mapper.collectors import InventoryFileCollector, StaticCollector
from migration_mapper.engine.query import FilterCriteria
from migration_mapper.exceptions import InventoryError, NotFoundError
from migration_mapper.models import Category

INVENTORY = [
    {
        "resource_id": "i-0abc",
        "resource_type": "ec2-instance",
        "region": "us-east-1",
        "name": "web-01",
        "tags": {"env": "prod", "replicas": 2},
        "account_id": "123456789012",
    },
    {
        "resource_id": "fn-1",
        "resource_type": "lambda-function",
        "region": "eu-west-1",
        "category": "new",
    },
]


class TestInventoryFileCollector:
    """Tests for InventoryFileCollector."""

    def test_json_list(self, tmp_path):
        path = tmp_path / "inventory.json"
        path.write_text(json.dumps(INVENTORY))

        resources = InventoryFileCollector(path).list_resources()

        assert [r.resource_id for r in resources] == ["i-0abc", "fn-1"]
        assert resources[0].category is Category.UNCATEGORIZED
        assert resources[0].tags == {"env": "prod", "replicas": "2"}
        assert resources[0].account_id == "123456789012"
        assert resources[1].category is Category.NEW

    def test_yaml_object_with_resources_key(self, tmp_path):
        path = tmp_path / "inventory.yaml"
        path.write_text(yaml.dump({"resources": INVENTORY}))

        resources = InventoryFileCollector(path).list_resources()

        assert len(resources) == 2

    def test_filter(self, tmp_path):
        path = tmp_path / "inventory.json"
        path.write_text(json.dumps(INVENTORY))

        resources = InventoryFileCollector(path).list_resources(FilterCriteria(region="eu-west-1"))

        assert [r.resource_id for r in resources] == ["fn-1"]

    def test_resource_by_id(self, tmp_path):
        path = tmp_path / "inventory.json"
        path.write_text(json.dumps(INVENTORY))
        collector = InventoryFileCollector(path)

        assert collector.resource_by_id("fn-1").resource_type == "lambda-function"
        with pytest.raises(NotFoundError):
            collector.resource_by_id("missing")

    def test_duplicate_records_skipped(self, tmp_path, caplog):
        path = tmp_path / "inventory.json"
        path.write_text(json.dumps([INVENTORY[0], INVENTORY[0]]))

        with caplog.at_level("WARNING"):
            resources = InventoryFileCollector(path).list_resources()

        assert len(resources) == 1
        assert "duplicate" in caplog.text

    def test_missing_required_field(self, tmp_path):
        path = tmp_path / "inventory.json"
        path.write_text(json.dumps([{"resource_id": "x", "region": "us-east-1"}]))

        with pytest.raises(InventoryError, match="resource_type"):
            InventoryFileCollector(path).list_resources()

    def test_invalid_category(self, tmp_path):
        path = tmp_path / "inventory.json"
        record = dict(INVENTORY[1], category="legacy")
        path.write_text(json.dumps([record]))

        with pytest.raises(InventoryError):
            InventoryFileCollector(path).list_resources()

    def test_parse_error(self, tmp_path):
        path = tmp_path / "inventory.json"
        path.write_text("{not json")

        with pytest.raises(InventoryError, match="parse error"):
            InventoryFileCollector(path).list_resources()

    def test_missing_file(self, tmp_path):
        with pytest.raises(InventoryError, match="not found"):
            InventoryFileCollector(tmp_path / "nope.json").list_resources()

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "inventory.yaml"
        path.write_text("")

        assert InventoryFileCollector(path).list_resources() == []


class TestStaticCollector:
    """Tests for StaticCollector."""

    def test_returns_copy_of_list(self, resources):
        collector = StaticCollector(resources)

        listed = collector.list_resources()
        listed.clear()

        assert len(collector.list_resources()) == len(resources)

    def test_repr(self, resources):
        assert repr(StaticCollector(resources, name="fixture")) == "<StaticCollector(name='fixture')>"
