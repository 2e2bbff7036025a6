import io
import re

import pdfplumber

LINKEDIN_PROFILE_RE = re.compile(r"linkedin\.com/in/", re.IGNORECASE)


def extract_text(pdf_bytes: bytes) -> str:
    """Extract all text from a PDF file."""
    with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
        pages = [page.extract_text() or "" for page in pdf.pages]
    return "\n".join(pages).strip()


def is_linkedin_resume(text: str) -> bool:
    """LinkedIn exports always print the profile URL in the contact block."""
    return bool(LINKEDIN_PROFILE_RE.search(text))
