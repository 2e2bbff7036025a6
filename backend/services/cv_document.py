"""Harvard-style CV rendering to DOCX with python-docx."""

import io
from datetime import datetime

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_TAB_ALIGNMENT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches, Pt

from models.schemas.cv import CV

FONT_NAME = "Liberation Sans"
FONT_SIZE = Pt(11)
ENTRY_INDENT = Pt(12)

_DATE_FORMATS = ("%B %Y", "%b %Y", "%Y-%m-%d", "%Y-%m", "%m/%Y", "%Y")


def format_date(value: str) -> str:
    """Render a date as "Month YYYY"; "present" and unparsable text pass through."""
    stripped = value.strip()
    if stripped.lower() == "present":
        return "Present"
    for fmt in _DATE_FORMATS:
        try:
            parsed = datetime.strptime(stripped, fmt)
        except ValueError:
            continue
        return parsed.strftime("%Y") if fmt == "%Y" else parsed.strftime("%B %Y")
    return stripped


def _bottom_rule(paragraph) -> None:
    p_pr = paragraph._p.get_or_add_pPr()
    borders = OxmlElement("w:pBdr")
    bottom = OxmlElement("w:bottom")
    bottom.set(qn("w:val"), "single")
    bottom.set(qn("w:sz"), "6")
    bottom.set(qn("w:space"), "1")
    bottom.set(qn("w:color"), "999999")
    borders.append(bottom)
    p_pr.append(borders)


def _heading(doc, text: str) -> None:
    paragraph = doc.add_paragraph()
    paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
    paragraph.paragraph_format.space_after = Pt(18)
    paragraph.add_run(text).bold = True


def _split_line(doc, left: str, right: str, text_width, space_after: Pt) -> None:
    """Bold text on the left, plain text against the right margin."""
    paragraph = doc.add_paragraph()
    paragraph.paragraph_format.left_indent = ENTRY_INDENT
    paragraph.paragraph_format.space_after = space_after
    paragraph.paragraph_format.tab_stops.add_tab_stop(text_width, WD_TAB_ALIGNMENT.RIGHT)
    paragraph.add_run(left).bold = True
    paragraph.add_run(f"\t{right}")


def _labeled_line(doc, label: str, text: str) -> None:
    paragraph = doc.add_paragraph()
    paragraph.paragraph_format.left_indent = ENTRY_INDENT
    paragraph.paragraph_format.space_after = Pt(12)
    paragraph.add_run(f"{label}: ").bold = True
    paragraph.add_run(text)


def build_document(cv: CV):
    doc = Document()
    section = doc.sections[0]
    for side in ("top_margin", "right_margin", "bottom_margin", "left_margin"):
        setattr(section, side, Inches(1))
    text_width = section.page_width - section.left_margin - section.right_margin - ENTRY_INDENT

    normal = doc.styles["Normal"]
    normal.font.name = FONT_NAME
    normal.font.size = FONT_SIZE

    name = doc.add_paragraph()
    name.alignment = WD_ALIGN_PARAGRAPH.CENTER
    name.paragraph_format.space_after = Pt(12)
    name.add_run(cv.name).bold = True
    _bottom_rule(name)

    for parts, space_after in (
        ((cv.location, cv.contact.email, cv.contact.mobile), Pt(6)),
        ((cv.contact.github, cv.contact.linkedin), Pt(24)),
    ):
        line = doc.add_paragraph(" • ".join(part for part in parts if part))
        line.alignment = WD_ALIGN_PARAGRAPH.CENTER
        line.paragraph_format.space_after = space_after

    _heading(doc, "Education")
    for edu in cv.education:
        _split_line(doc, edu.institution, edu.period, text_width, Pt(6))
        degree = doc.add_paragraph(f"{edu.degree} in {edu.field}" if edu.field else edu.degree)
        degree.paragraph_format.left_indent = ENTRY_INDENT
        degree.paragraph_format.space_after = Pt(12)

    _heading(doc, "Experience")
    for exp in cv.experience:
        _split_line(doc, exp.company, exp.location, text_width, Pt(3))
        dates = f"{format_date(exp.start_date)} – {format_date(exp.end_date)}"
        _split_line(doc, exp.position, dates, text_width, Pt(9))
        for item in exp.description or []:
            bullet = doc.add_paragraph(item, style="List Bullet")
            bullet.paragraph_format.space_after = Pt(6)

    _heading(doc, "Skills & Interest")
    _labeled_line(doc, "Technical", ", ".join(cv.skills.main_skills))
    _labeled_line(
        doc,
        "Languages",
        ", ".join(f"{lang.name} ({lang.level})" for lang in cv.skills.languages),
    )
    return doc


def render_harvard_cv(cv: CV) -> bytes:
    """Render the CV as a .docx file and return its bytes."""
    buffer = io.BytesIO()
    build_document(cv).save(buffer)
    return buffer.getvalue()
