"""Markdown rendering of a completed lead report."""

import re
from typing import Any

from backend.app.core.config import SECTION_KEYS
from backend.app.models.report import Report

SECTION_TITLES = {
    "overview": "Overview",
    "company": "Company Analysis",
    "meeting": "Meeting Preparation",
    "interactions": "Interaction Guidance",
    "competitors": "Competitive Landscape",
    "techStack": "Technology Stack",
    "news": "Industry Trends",
    "nextSteps": "Next Steps",
    "strategicBrief": "Strategic Brief",
}

MEETING_FIELDS = (
    ("name", "Meeting"),
    ("date", "Date"),
    ("time", "Time"),
    ("timezone", "Timezone"),
    ("platform", "Platform"),
    ("link", "Link"),
    ("location", "Location"),
    ("objective", "Objective"),
    ("problem_pitch", "Problem Pitch"),
)

# Flags stored alongside section content that are not meant for readers
_HIDDEN_KEYS = {"insufficient_data", "isGeneralInsight", "message", "error"}


def _label(key: str) -> str:
    """camelCase key -> Title Case label."""
    words = re.sub(r"(?<!^)(?=[A-Z])", " ", key).replace("_", " ")
    return words[:1].upper() + words[1:]


def _item_text(item: Any) -> str:
    if isinstance(item, dict):
        text = item.get("description") or item.get("name") or item.get("title") or ""
        extras = [f"{_label(k)}: {v}" for k, v in item.items() if k in ("rationale", "priority") and v]
        if extras:
            text = f"{text} ({'; '.join(extras)})" if text else "; ".join(extras)
        return text or ", ".join(f"{_label(k)}: {v}" for k, v in item.items())
    return str(item)


def render_section(section: str, content: Any) -> list[str]:
    """Markdown lines for one section's stored content."""
    lines = [f"### {SECTION_TITLES.get(section, _label(section))}", ""]
    if isinstance(content, str):
        lines += [content, ""]
        return lines
    if not isinstance(content, dict):
        return lines + [str(content), ""]
    if content.get("insufficient_data"):
        return lines + ["*Insufficient data to generate this section.*", ""]

    for key, value in content.items():
        if key in _HIDDEN_KEYS or value in (None, "", [], {}):
            continue
        if isinstance(value, list):
            lines.append(f"**{_label(key)}:**")
            lines += [f"- {_item_text(item)}" for item in value]
            lines.append("")
        elif isinstance(value, dict):
            lines.append(f"**{_label(key)}:**")
            lines += [f"- **{_label(k)}:** {_item_text(v)}" for k, v in value.items()]
            lines.append("")
        else:
            lines += [f"**{_label(key)}:** {value}", ""]

    if content.get("isGeneralInsight"):
        lines += ["> Based on general industry knowledge rather than company-specific data.", ""]
    return lines


def render_report_markdown(report: Report) -> str:
    """
    Build the downloadable Markdown document for a report.

    Combines the narrative report, meeting details, AI section insights,
    company news and notes.
    """
    lead = report.lead_data or {}
    lines: list[str] = []

    if report.report_markdown:
        lines += [report.report_markdown.strip(), ""]
    else:
        lines += [f"# {lead.get('name') or report.email}", ""]

    lines += [
        "---",
        "",
        f"**Project:** {report.project}",
        f"**Report Owner:** {report.report_owner_name}",
        f"**Lead Status:** {_label(report.lead_status)}",
        "",
    ]

    meeting = report.meeting_details or {}
    meeting_lines = [f"- **{label}:** {meeting[key]}" for key, label in MEETING_FIELDS if meeting.get(key)]
    if meeting_lines:
        lines += ["## Meeting Details", ""] + meeting_lines + [""]

    sections = report.section_content or {}
    if sections:
        lines += ["## AI Insights", ""]
        for key in SECTION_KEYS:
            if key in sections:
                lines += render_section(key, sections[key])

    articles = (report.company_news or {}).get("articles") or []
    if articles:
        lines += ["## Recent Company News", ""]
        for article in articles:
            source = article.get("source") or "Unknown"
            lines.append(f"- **{article.get('title') or 'Untitled'}** ({source})")
            if article.get("url"):
                lines.append(f"  {article['url']}")
        lines.append("")

    notes = report.notes or []
    if notes:
        lines += ["## Notes", ""]
        lines += [f"- {note.get('content', '')}" for note in notes if isinstance(note, dict)]
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"
