"""Heuristic resume language detection from LinkedIn section keywords."""

from enum import Enum


class Locale(str, Enum):
    EN = "en"
    ES = "es"
    UNDETECTED = "undetected"

    @property
    def is_supported(self) -> bool:
        return self is not Locale.UNDETECTED


# Every keyword of a set must appear (lower-cased substring match)
REQUIRED_KEYWORDS: dict[Locale, tuple[str, ...]] = {
    Locale.ES: ("contactar", "extracto", "experiencia", "educación"),
    Locale.EN: ("contact", "summary", "experience", "education"),
}

# ES first: Spanish exports also contain "contact" as part of "contactar"
DETECTION_ORDER = (Locale.ES, Locale.EN)


def detect(text: str) -> Locale:
    """Classify resume text as EN, ES or UNDETECTED.

    Matching is byte-exact after lower-casing: no accent folding, so a
    resume whose "educación" was extracted with a decomposed accent will
    not be recognized as Spanish.
    """
    lowered = text.lower()
    for locale in DETECTION_ORDER:
        if all(keyword in lowered for keyword in REQUIRED_KEYWORDS[locale]):
            return locale
    return Locale.UNDETECTED
