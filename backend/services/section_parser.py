"""LinkedIn resume section segmentation by ordered heading anchors."""

import re
from dataclasses import dataclass, field

from services.errors import AnchorNotFound, UnsupportedLocale
from services.language_detector import Locale

# LinkedIn page footers: "Page 1 of 3" (EN export) / "Página 1 de 3" (ES export)
PAGE_FOOTER_RE = re.compile(r"(?:page|página)\s+\d+\s+(?:of|de)\s+\d+", re.IGNORECASE)
EXTRA_NEWLINES_RE = re.compile(r"\n{3,}")

# Section headings in the order LinkedIn's PDF export emits them.
# Matching is literal and case-sensitive.
SECTION_ANCHORS: dict[Locale, list[tuple[str, str]]] = {
    Locale.EN: [
        ("skills", "Top Skills"),
        ("summary", "Summary"),
        ("experience", "Experience"),
        ("education", "Education"),
    ],
    Locale.ES: [
        ("skills", "Aptitudes principales"),
        ("summary", "Extracto"),
        ("experience", "Experiencia"),
        ("education", "Educación"),
    ],
}

CONTACT_ANCHORS: dict[Locale, str] = {
    Locale.EN: "Contact",
    Locale.ES: "Contactar",
}

SECTION_NAMES = ("header", "contact", "skills", "summary", "experience", "education")


@dataclass(frozen=True)
class AnchorHit:
    section: str
    keyword: str
    index: int

    @property
    def found(self) -> bool:
        return self.index >= 0


@dataclass(frozen=True)
class SectionSet:
    locale: Locale
    text: str
    header: str = ""
    contact: str = ""
    skills: str = ""
    summary: str = ""
    experience: str = ""
    education: str = ""
    boundaries: tuple[int, ...] = field(default_factory=tuple)

    def items(self) -> list[tuple[str, str]]:
        """(name, content) pairs in prompt order; the contact block replaces the header."""
        return [(name, getattr(self, name)) for name in SECTION_NAMES if name != "header"]


def clean_text(text: str) -> str:
    """Drop page footers and collapse runs of blank lines."""
    text = PAGE_FOOTER_RE.sub("", text)
    return EXTRA_NEWLINES_RE.sub("\n", text)


def scan_anchors(text: str, locale: Locale) -> list[AnchorHit]:
    """Locate each anchor's first occurrence after the previous anchor.

    Absent anchors are reported with index -1 and stop the forward scan
    position from advancing.
    """
    hits: list[AnchorHit] = []
    position = 0
    for section, keyword in SECTION_ANCHORS[locale]:
        index = text.find(keyword, position)
        hits.append(AnchorHit(section, keyword, index))
        if index >= 0:
            position = index + len(keyword)
    return hits


def segment(text: str, locale: Locale) -> SectionSet:
    """Slice resume text into named sections.

    Raises UnsupportedLocale for an undetected language and AnchorNotFound
    when a heading (or the contact keyword in the header) is missing.
    """
    if not locale.is_supported:
        raise UnsupportedLocale(f"cannot segment resume with locale {locale.value!r}")

    cleaned = clean_text(text)
    hits = scan_anchors(cleaned, locale)
    for hit in hits:
        if not hit.found:
            raise AnchorNotFound(hit.keyword, hit.section)

    boundaries = (0, *(hit.index for hit in hits), len(cleaned))
    slices = {
        name: cleaned[start:end]
        for name, start, end in zip(
            ["header", *(hit.section for hit in hits)], boundaries, boundaries[1:]
        )
    }

    header = slices["header"]
    contact_keyword = CONTACT_ANCHORS[locale]
    contact_index = header.find(contact_keyword)
    if contact_index < 0:
        raise AnchorNotFound(contact_keyword, "contact")

    return SectionSet(
        locale=locale,
        text=cleaned,
        header=header.strip(),
        contact=header[contact_index:].strip(),
        skills=slices["skills"].strip(),
        summary=slices["summary"].strip(),
        experience=slices["experience"].strip(),
        education=slices["education"].strip(),
        boundaries=boundaries,
    )
