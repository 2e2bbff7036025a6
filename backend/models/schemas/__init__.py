"""Pydantic contracts for the extracted CV record."""

from models.schemas.cv import CV, Contact, Education, Experience, Language, Skills

__all__ = [
    "CV",
    "Contact",
    "Education",
    "Experience",
    "Language",
    "Skills",
]
