"""PDF generation service using ReportLab."""

import logging
from io import BytesIO
import re

from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

logger = logging.getLogger(__name__)

_BOLD = re.compile(r"\*\*(.*?)\*\*")
_ITALIC = re.compile(r"(?<!\*)\*(?!\*)([^*]+)\*(?!\*)")
_TABLE_SEPARATOR = re.compile(r"\|[\s\-:|]+\|")
_NUMBERED = re.compile(r"^\d+\. ")


class PDFGenerator:
    """Generate PDF lead reports from Markdown content."""

    def __init__(self, font_name: str = "Helvetica", bold_font_name: str = "Helvetica-Bold"):
        self.font = font_name
        self.bold_font = bold_font_name
        self._styles = self._build_styles()

    def _build_styles(self) -> dict[str, ParagraphStyle]:
        styles = getSampleStyleSheet()
        body = ParagraphStyle(
            "LeadBody",
            parent=styles["BodyText"],
            fontName=self.font,
            fontSize=10.5,
            leading=15,
            alignment=TA_LEFT,
        )
        return {
            "title": ParagraphStyle(
                "LeadTitle",
                parent=styles["Heading1"],
                fontName=self.bold_font,
                fontSize=22,
                textColor=colors.HexColor("#1e293b"),
                spaceAfter=6,
            ),
            "h2": ParagraphStyle(
                "LeadHeading2",
                parent=styles["Heading2"],
                fontName=self.bold_font,
                fontSize=14,
                textColor=colors.HexColor("#2563eb"),
                spaceBefore=4,
                spaceAfter=10,
            ),
            "h3": ParagraphStyle(
                "LeadHeading3",
                parent=styles["Heading3"],
                fontName=self.bold_font,
                fontSize=12,
                textColor=colors.HexColor("#334155"),
                spaceBefore=12,
                spaceAfter=6,
            ),
            "h4": ParagraphStyle(
                "LeadHeading4",
                parent=styles["Heading4"],
                fontName=self.bold_font,
                fontSize=10.5,
                spaceBefore=8,
                spaceAfter=4,
            ),
            "body": body,
            "bullet": ParagraphStyle("LeadBullet", parent=body, leftIndent=14, bulletIndent=4),
            "quote": ParagraphStyle(
                "LeadQuote",
                parent=body,
                leftIndent=14,
                textColor=colors.HexColor("#555555"),
                backColor=colors.HexColor("#f7f7f7"),
                borderPadding=6,
            ),
        }

    def markdown_to_pdf(self, markdown_content: str, title: str | None = None) -> bytes:
        """
        Convert Markdown content to PDF.

        Args:
            markdown_content: Markdown-formatted report content
            title: Document metadata title

        Returns:
            PDF file as bytes
        """
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=2*cm,
            leftMargin=2*cm,
            topMargin=2*cm,
            bottomMargin=2*cm,
            title=title or "Lead Report",
        )
        story = self._build_story(markdown_content)
        if not story:
            story.append(Paragraph("No report content available.", self._styles["body"]))

        logger.info("[PDF] Building PDF document")
        doc.build(story)
        pdf_bytes = buffer.getvalue()
        buffer.close()
        logger.info(f"[PDF] PDF generated successfully ({len(pdf_bytes)} bytes)")
        return pdf_bytes

    def _build_story(self, markdown_content: str) -> list:
        styles = self._styles
        story = []
        lines = markdown_content.split("\n")
        i = 0
        while i < len(lines):
            line = lines[i].strip()

            if not line:
                i += 1
                continue

            if line.startswith("# "):
                story.append(Paragraph(self._inline(line[2:]), styles["title"]))
            elif line.startswith("## "):
                story.append(Paragraph(self._inline(line[3:]), styles["h2"]))
            elif line.startswith("### "):
                story.append(Paragraph(self._inline(line[4:]), styles["h3"]))
            elif line.startswith("#### "):
                story.append(Paragraph(self._inline(line[5:]), styles["h4"]))
            elif line.startswith("---"):
                story.append(HRFlowable(width="100%", thickness=0.5, color=colors.grey))
                story.append(Spacer(1, 6))
            elif line.startswith("|"):
                table_lines = []
                while i < len(lines) and lines[i].strip().startswith("|"):
                    table_lines.append(lines[i].strip())
                    i += 1
                self._append_table(story, table_lines)
                continue
            elif line.startswith("> "):
                story.append(Paragraph(self._inline(line[2:]), styles["quote"]))
                story.append(Spacer(1, 4))
            elif line.startswith(("- ", "* ")):
                story.append(Paragraph(self._inline(line[2:]), styles["bullet"], bulletText="•"))
            elif _NUMBERED.match(line):
                story.append(Paragraph(self._inline(line), styles["bullet"]))
            else:
                story.append(Paragraph(self._inline(line), styles["body"]))
                story.append(Spacer(1, 4))
            i += 1
        return story

    def _append_table(self, story: list, table_lines: list[str]) -> None:
        table_data = []
        for table_line in table_lines:
            if _TABLE_SEPARATOR.fullmatch(table_line):
                continue
            cells = [cell.strip() for cell in table_line.split("|")[1:-1]]
            table_data.append([Paragraph(self._inline(cell), self._styles["body"]) for cell in cells])

        if not table_data:
            return
        table = Table(table_data, hAlign="LEFT")
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#e2e8f0")),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
        ]))
        story.append(table)
        story.append(Spacer(1, 10))

    def _inline(self, text: str) -> str:
        text = self._escape_html(text)
        text = _BOLD.sub(r"<b>\1</b>", text)
        return _ITALIC.sub(r"<i>\1</i>", text)

    def _escape_html(self, text: str) -> str:
        """Escape markup characters and drop glyphs the base fonts cannot draw."""
        # Base-14 fonts only cover Latin-1
        text = text.encode("latin-1", "ignore").decode("latin-1")
        text = text.replace("&", "&amp;")
        text = text.replace("<", "&lt;")
        text = text.replace(">", "&gt;")
        return text.strip()
