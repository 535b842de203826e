"""
HTML migration progress report.

Renders a static, self-contained HTML page from MigrationService.statistics()
so progress can be shared without access to the workspace.
"""

import logging
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader

from migration_mapper.engine.scoring import confidence_band
from migration_mapper.models import (
    MappingCategory,
    MappingType,
    MigrationPriority,
    MigrationStatus,
)
from migration_mapper.models.base import format_timestamp, utc_now
from migration_mapper.service import MigrationService
from migration_mapper.util.files import write_text

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"


def generate_progress_report(service: MigrationService, output_path: Path) -> Path:
    """
    Generate the HTML progress report.

    Args:
        service: Service bound to the workspace store
        output_path: Directory to write into (created if missing)

    Returns:
        Path to the generated progress.html

    Example:
        >>> ws = Workspace(Path("my-workspace"))
        >>> service = MigrationService(ws.store(), ws.settings())
        >>> generate_progress_report(service, ws.root / "reports")
        PosixPath('my-workspace/reports/progress.html')
    """
    context = build_report_context(service)
    html_content = render_report_template(context)

    report_file = Path(output_path) / "progress.html"
    write_text(report_file, html_content)
    logger.info(f"Wrote progress report to {report_file}")
    return report_file


def build_report_context(service: MigrationService) -> dict[str, Any]:
    """
    Build data context for the report template.

    Args:
        service: Service to read statistics from

    Returns:
        Template context dict
    """
    stats = service.statistics()

    def labelled(counts: dict[str, int], enum_cls) -> list[dict[str, Any]]:
        return [
            {
                "key": member.value,
                "label": getattr(member, "label", None) or _title(member.value),
                "count": counts[member.value],
            }
            for member in enum_cls
        ]

    for section in ("recent_migrations", "upcoming_migrations"):
        for group in stats[section]:
            confidence = group["confidence"]
            group["band"] = confidence_band(confidence) if confidence is not None else None

    return {
        "generated_at": format_timestamp(utc_now()),
        "overview": stats["overview"],
        "categories": stats["categories"],
        "by_status": labelled(stats["by_status"], MigrationStatus),
        "by_mapping_type": labelled(stats["by_mapping_type"], MappingType),
        "by_priority": labelled(stats["by_priority"], MigrationPriority),
        "by_mapping_category": labelled(stats["by_mapping_category"], MappingCategory),
        "recent_migrations": stats["recent_migrations"],
        "upcoming_migrations": stats["upcoming_migrations"],
    }


def render_report_template(context: dict[str, Any]) -> str:
    """
    Render HTML template with report context.

    Args:
        context: Report data dict

    Returns:
        Rendered HTML string
    """
    env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)), autoescape=True)
    template = env.get_template("progress.html.j2")
    return template.render(**context)


def _title(value: str) -> str:
    return value.replace("_", " ").title()
