"""Render an AnalysisReport as markdown and write it into the repository."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from ..config import TOOL_DIR
from ..models import AnalysisReport, CheckStatus

TEMPLATE_NAME = "latest.md.j2"
REPORT_FILENAME = "latest.md"
ISSUE_LIMIT = 20
DUPLICATE_LIMIT = 10

_STATUS_ICONS = {
    CheckStatus.PASS: "✅",
    CheckStatus.WARN: "⚠️",
    CheckStatus.FAIL: "❌",
}


def _create_env() -> Environment:
    loader = FileSystemLoader(str(Path(__file__).with_name("templates")))
    env = Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)
    env.filters["icon"] = lambda status: _STATUS_ICONS[CheckStatus(status)]
    return env


_ENV = _create_env()


def render_markdown(report: AnalysisReport) -> str:
    """Pure rendering; the same report always yields the same text."""
    template = _ENV.get_template(TEMPLATE_NAME)
    text = template.render(
        report=report,
        generated=_format_timestamp(report.timestamp),
        limit=ISSUE_LIMIT,
        duplicate_limit=DUPLICATE_LIMIT,
    )
    return text.rstrip("\n") + "\n"


def write_markdown_report(report: AnalysisReport, tool_dir: str = TOOL_DIR) -> Path:
    """Write ``<repo>/<tool_dir>/reports/latest.md`` and return its path."""
    reports_dir = Path(report.repo_path) / tool_dir / "reports"
    reports_dir.mkdir(parents=True, exist_ok=True)
    target = reports_dir / REPORT_FILENAME
    target.write_text(render_markdown(report), encoding="utf-8")
    return target


def _format_timestamp(timestamp: str) -> str:
    try:
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return timestamp
    return parsed.strftime("%Y-%m-%d %H:%M")


__all__ = ["render_markdown", "write_markdown_report"]
