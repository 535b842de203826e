"""
Tests for HTML progress report generation.
"""

from migration_mapper.report.progress import (
    build_report_context,
    generate_progress_report,
    render_report_template,
)


class TestBuildReportContext:
    """Tests for build_report_context."""

    def test_context_sections(self, service, web_mapping):
        context = build_report_context(service)

        assert context["overview"]["total_mappings"] == 1
        assert context["categories"]["old"] == 2
        assert [row["key"] for row in context["by_priority"]] == ["critical", "high", "medium", "low"]
        assert context["upcoming_migrations"][0]["id"] == web_mapping.id

    def test_migration_plan_counts(self, service, web_mapping):
        service.create_mapping(["db-legacy"], ["db-aurora"], category="migrate_terraform")

        context = build_report_context(service)

        rows = {row["key"]: row for row in context["by_mapping_category"]}
        assert rows["migrate_terraform"] == {
            "key": "migrate_terraform",
            "label": "Migrate to Terraform",
            "count": 1,
        }
        assert rows["undecided"]["count"] == 1

    def test_confidence_band_added(self, service):
        service.create_mapping(["db-legacy"], ["db-aurora"], confidence=85)

        context = build_report_context(service)

        assert context["upcoming_migrations"][0]["band"] == "high"


class TestRender:
    """Tests for template rendering."""

    def test_generate_writes_file(self, service, web_mapping, tmp_path):
        report_file = generate_progress_report(service, tmp_path / "reports")

        html = report_file.read_text()
        assert report_file.name == "progress.html"
        assert "Migration Progress" in html
        assert web_mapping.id in html
        assert "i-legacy-web" in html
        assert "By migration plan" in html
        assert "Migrate to Terraform" in html

    def test_notes_are_escaped(self, service, tmp_path):
        service.create_mapping(["db-legacy"], ["db-aurora"], notes="<script>alert(1)</script>")

        html = render_report_template(build_report_context(service))

        assert "<script>alert(1)</script>" not in html
        assert "&lt;script&gt;" in html

    def test_empty_inventory(self, tmp_path):
        from migration_mapper.service import MigrationService
        from migration_mapper.store import MemoryStore

        html = render_report_template(build_report_context(MigrationService(MemoryStore())))

        assert "None" in html
