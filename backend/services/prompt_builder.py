"""Prompt template for the Gemini CV extraction call."""

from services.errors import UnsupportedLocale
from services.language_detector import Locale
from services.section_parser import SectionSet

CV_SCHEMA_DESCRIPTION = """{
  "name": "string",
  "title": "string",
  "location": "string",
  "summary": "string",
  "contact": {
    "github": "string",
    "mobile": "string",
    "email": "string (valid email address)",
    "linkedin": "string"
  },
  "skills": {
    "mainSkills": ["string"],
    "languages": [{"name": "string", "level": "string"}]
  },
  "experience": [
    {
      "company": "string",
      "position": "string",
      "startDate": "string",
      "endDate": "string",
      "duration": "string",
      "location": "string",
      "description": ["string"]
    }
  ],
  "education": [
    {
      "institution": "string",
      "degree": "string",
      "field": "string",
      "period": "string"
    }
  ]
}"""

# Section labels use the resume's own heading words
SECTION_LABELS: dict[Locale, dict[str, str]] = {
    Locale.EN: {
        "contact": "CONTACT",
        "skills": "TOP SKILLS",
        "summary": "SUMMARY",
        "experience": "EXPERIENCE",
        "education": "EDUCATION",
    },
    Locale.ES: {
        "contact": "CONTACTAR",
        "skills": "APTITUDES PRINCIPALES",
        "summary": "EXTRACTO",
        "experience": "EXPERIENCIA",
        "education": "EDUCACIÓN",
    },
}

INSTRUCTIONS = """INSTRUCTIONS:
- Extract every field of the schema from the resume sections above.
- The name, headline title and location appear near the top skills and languages block, before the summary.
- List experience entries in the same order as the resume (most recent first); one entry per position.
- Put each bullet or sentence of a position's description as a separate string in "description".
- If a field is missing, use an empty string "" or an empty array [].
- Make sure "contact.email" is a valid email address.
- Normalize dates to "Month YYYY" (e.g. "January 2020"), or "Present" for ongoing positions.
- Respond with ONLY valid JSON matching the schema: no markdown, no code fences, no extra text."""

TRANSLATION_INSTRUCTION = (
    "- The resume is written in Spanish. Translate all extracted values to English, "
    "keeping proper nouns (people, companies, institutions) unchanged."
)


def build_extraction_prompt(sections: SectionSet, locale: Locale | None = None) -> str:
    """Compose the structured-extraction request for one resume.

    ``locale`` picks the section labels and whether a translation line is
    added; it defaults to the locale the sections were segmented with.
    """
    if locale is None:
        locale = sections.locale
    if locale not in SECTION_LABELS:
        raise UnsupportedLocale(f"no prompt labels for locale {locale.value!r}")
    labels = SECTION_LABELS[locale]
    body = "\n\n".join(
        f"{labels[name]}:\n---\n{content}\n---" for name, content in sections.items()
    )

    instructions = INSTRUCTIONS
    if locale is not Locale.EN:
        instructions = f"{instructions}\n{TRANSLATION_INSTRUCTION}"

    return f"""You are an expert resume parser. Extract structured data from this LinkedIn resume.

Return a JSON object with exactly this structure:
{CV_SCHEMA_DESCRIPTION}

RESUME SECTIONS:

{body}

{instructions}"""
