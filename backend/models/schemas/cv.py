"""Validated CV record extracted from a LinkedIn resume.

JSON keys are camelCase (``mainSkills``, ``startDate``) to match what the
extraction prompt asks the model for; Python attributes stay snake_case.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, EmailStr, StringConstraints
from pydantic.alias_generators import to_camel


class _CVModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Contact(_CVModel):
    github: str
    mobile: str
    email: EmailStr
    linkedin: str


class Language(_CVModel):
    name: str
    level: str


class Skills(_CVModel):
    main_skills: list[str]
    languages: list[Language]


class Experience(_CVModel):
    """A single position; order follows the resume (most recent first)."""
    company: str
    position: str
    start_date: str
    end_date: str
    duration: str
    location: str
    description: list[str] | None = None


class Education(_CVModel):
    institution: str
    degree: str
    field: str
    period: str


class CV(_CVModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    title: str
    location: str
    summary: str
    contact: Contact
    skills: Skills
    experience: list[Experience]
    education: list[Education]
