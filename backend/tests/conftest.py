"""Shared test configuration, sample LinkedIn exports and pipeline fakes."""

import copy
import json

import pytest
from limits.storage import MemoryStorage

from services.pipeline.orchestrator import CVPipeline
from services.progress import ProgressBroker
from services.rate_limiter import RateLimiter

EN_RESUME = """Contact
jane.doe@gmail.com
www.linkedin.com/in/janedoe (LinkedIn)
github.com/janedoe
Top Skills
Python
FastAPI
PostgreSQL
Languages
Spanish (Professional Working)
Jane Doe
Senior Backend Engineer at Acme
Madrid, Community of Madrid, Spain
Summary
Backend engineer building data-heavy web services.
Experience
Acme Corp
Senior Backend Engineer
January 2021 - Present (3 years 2 months)
Madrid, Spain
Designed the billing platform.
Page 1 of 2




Education
Universidad Politécnica de Madrid
Bachelor of Engineering, Computer Science · (2012 - 2016)
Page 2 of 2"""

ES_RESUME = """Contactar
juan.perez@gmail.com
www.linkedin.com/in/juanperez (LinkedIn)
Aptitudes principales
Java
Spring Boot
Idiomas
Inglés (Full Professional)
Juan Pérez
Ingeniero de software
Barcelona, Cataluña, España
Extracto
Ingeniero con foco en sistemas distribuidos.
Experiencia
Globex
Ingeniero de software
marzo de 2019 - Present (5 años)
Barcelona
Educación
Universitat de Barcelona
Grado, Informática · (2014 - 2018)
Página 1 de 1"""

VALID_CV = {
    "name": "Jane Doe",
    "title": "Senior Backend Engineer",
    "location": "Madrid, Spain",
    "summary": "Backend engineer building data-heavy web services.",
    "contact": {
        "github": "github.com/janedoe",
        "mobile": "",
        "email": "jane.doe@gmail.com",
        "linkedin": "www.linkedin.com/in/janedoe",
    },
    "skills": {
        "mainSkills": ["Python", "FastAPI", "PostgreSQL"],
        "languages": [{"name": "Spanish", "level": "Professional Working"}],
    },
    "experience": [
        {
            "company": "Acme Corp",
            "position": "Senior Backend Engineer",
            "startDate": "January 2021",
            "endDate": "Present",
            "duration": "3 years 2 months",
            "location": "Madrid, Spain",
            "description": ["Designed the billing platform."],
        }
    ],
    "education": [
        {
            "institution": "Universidad Politécnica de Madrid",
            "degree": "Bachelor of Engineering",
            "field": "Computer Science",
            "period": "2012 - 2016",
        }
    ],
}


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: waits for a rate limit window to elapse"
    )


@pytest.fixture
def en_resume() -> str:
    return EN_RESUME


@pytest.fixture
def es_resume() -> str:
    return ES_RESUME


@pytest.fixture
def cv_data() -> dict:
    return copy.deepcopy(VALID_CV)


@pytest.fixture
def make_pipeline():
    """Build a CVPipeline with fake PDF extraction and model reply."""

    def _make(
        text: str = EN_RESUME,
        reply: str | None = None,
        limit: int = 3,
        window_seconds: int = 3600,
        generate=None,
    ) -> CVPipeline:
        model_reply = reply if reply is not None else json.dumps(VALID_CV)

        async def fake_generate(prompt: str) -> str:
            return model_reply

        return CVPipeline(
            rate_limiter=RateLimiter(limit, window_seconds, storage=MemoryStorage()),
            extract_text=lambda pdf_bytes: text,
            generate=generate or fake_generate,
            broker=ProgressBroker(),
        )

    return _make
