"""
Proposal export to DOCX (python-docx) and PDF (reportlab).

Both formats render the same ordered section list; structured values
(lists, nested objects) are flattened to readable text first.
"""

import io
import re
from datetime import datetime, timezone
from typing import Any
from xml.sax.saxutils import escape

from docx import Document as DocxDocument
from docx.enum.text import WD_ALIGN_PARAGRAPH
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

# Brand palette
PRIMARY_COLOR = colors.HexColor("#4A5859")
ACCENT_COLOR = colors.HexColor("#B8A88A")
TABLE_ALT_COLOR = colors.HexColor("#F5F5F5")

SECTIONS = [
    ("executiveSummary", "Executive Summary"),
    ("introduction", "Introduction"),
    ("valueProposition", "Value Proposition"),
    ("technicalApproach", "Technical Approach"),
    ("qualifications", "Qualifications"),
    ("projectTimeline", "Project Timeline"),
    ("timeline", "Project Timeline"),
    ("investmentEstimate", "Investment Estimate"),
    ("pricing", "Pricing"),
    ("riskManagement", "Risk Management"),
    ("references", "References"),
    ("questionsForClient", "Questions for Client"),
    ("conclusion", "Conclusion"),
]

_CAMEL_BOUNDARY = re.compile(r"([A-Z])")


def _label(key: str) -> str:
    """`lowCost` -> `Low Cost`."""
    spaced = _CAMEL_BOUNDARY.sub(r" \1", key)
    return spaced[:1].upper() + spaced[1:]


def value_to_text(value: Any) -> str:
    """Flatten strings, lists and nested dicts into paragraphs separated by blank lines."""
    if value is None or value == "" or value == [] or value == {}:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        lines = []
        for item in value:
            if isinstance(item, dict):
                lines.append("\n".join(f"{_label(k)}: {v}" for k, v in item.items()))
            else:
                lines.append(f"• {item}")
        return "\n".join(lines)
    if isinstance(value, dict):
        parts = []
        for key, val in value.items():
            if isinstance(val, (list, dict)):
                parts.append(f"{_label(key)}:\n{value_to_text(val)}")
            else:
                parts.append(f"{_label(key)}: {val}")
        return "\n\n".join(parts)
    return str(value)


def proposal_sections(content: dict) -> list[tuple[str, str]]:
    """Ordered (title, text) pairs, skipping empty sections and duplicate titles."""
    seen: set[str] = set()
    sections = []
    for key, title in SECTIONS:
        text = value_to_text(content.get(key))
        if not text or title in seen:
            continue
        seen.add(title)
        sections.append((title, text))
    for extra in content.get("sections") or []:
        if isinstance(extra, dict) and extra.get("title") and extra.get("content"):
            sections.append((str(extra["title"]), value_to_text(extra["content"])))
    return sections


def _resource_rows(content: dict) -> list[list[str]]:
    rows = []
    for resource in content.get("resources") or []:
        if not isinstance(resource, dict):
            continue
        rows.append(
            [
                str(resource.get("role", "")),
                str(resource.get("hours", "")),
                f"${resource.get('lowRate', 0)} - ${resource.get('highRate', 0)}",
            ]
        )
    return rows


def _export_date() -> str:
    return datetime.now(timezone.utc).strftime("%B %d, %Y")


# =============================================================================
# DOCX
# =============================================================================

def generate_docx(title: str, content: dict, company_name: str | None = None) -> bytes:
    document = DocxDocument()
    heading = document.add_heading(title, level=0)
    heading.alignment = WD_ALIGN_PARAGRAPH.CENTER
    if company_name:
        prepared = document.add_paragraph(f"Prepared by: {company_name}")
        prepared.alignment = WD_ALIGN_PARAGRAPH.CENTER
    dated = document.add_paragraph(f"Date: {_export_date()}")
    dated.alignment = WD_ALIGN_PARAGRAPH.CENTER

    for section_title, text in proposal_sections(content):
        document.add_heading(section_title, level=1)
        for para in text.split("\n\n"):
            para = para.strip()
            if not para:
                continue
            if para.startswith("• "):
                for line in para.splitlines():
                    document.add_paragraph(line.lstrip("• ").strip(), style="List Bullet")
            else:
                document.add_paragraph(para)

    rows = _resource_rows(content)
    if rows:
        document.add_heading("Resources", level=1)
        table = document.add_table(rows=1, cols=3)
        table.style = "Table Grid"
        for cell, label in zip(table.rows[0].cells, ("Role", "Hours", "Rate Range")):
            cell.text = label
        for row in rows:
            cells = table.add_row().cells
            for cell, value in zip(cells, row):
                cell.text = value

    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


# =============================================================================
# PDF
# =============================================================================

def generate_pdf(title: str, content: dict, company_name: str | None = None) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=letter,
        rightMargin=50,
        leftMargin=50,
        topMargin=50,
        bottomMargin=50,
        title=title,
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "ProposalTitle",
        parent=styles["Title"],
        fontSize=22,
        spaceAfter=12,
        textColor=PRIMARY_COLOR,
    )
    heading_style = ParagraphStyle(
        "ProposalHeading",
        parent=styles["Heading2"],
        fontSize=14,
        spaceBefore=14,
        spaceAfter=8,
        textColor=PRIMARY_COLOR,
    )
    meta_style = ParagraphStyle(
        "ProposalMeta",
        parent=styles["Normal"],
        alignment=1,
        textColor=colors.HexColor("#666666"),
    )
    body_style = ParagraphStyle("ProposalBody", parent=styles["Normal"], fontSize=10, leading=14)

    elements = [Paragraph(escape(title), title_style)]
    if company_name:
        elements.append(Paragraph(f"Prepared by: {escape(company_name)}", meta_style))
    elements.append(Paragraph(f"Date: {_export_date()}", meta_style))
    elements.append(Spacer(1, 20))

    for section_title, text in proposal_sections(content):
        elements.append(Paragraph(escape(section_title), heading_style))
        for para in text.split("\n\n"):
            para = para.strip()
            if para:
                elements.append(Paragraph(escape(para).replace("\n", "<br/>"), body_style))
                elements.append(Spacer(1, 6))

    rows = _resource_rows(content)
    if rows:
        elements.append(Paragraph("Resources", heading_style))
        table = Table([["Role", "Hours", "Rate Range"]] + rows, colWidths=[3 * inch, 1 * inch, 2 * inch])
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), PRIMARY_COLOR),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 9),
                    ("GRID", (0, 0), (-1, -1), 0.5, ACCENT_COLOR),
                    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, TABLE_ALT_COLOR]),
                    ("TOPPADDING", (0, 0), (-1, -1), 5),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
                ]
            )
        )
        elements.append(table)

    doc.build(elements)
    return buffer.getvalue()
