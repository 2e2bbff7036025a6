"""Pipeline orchestrator: one LinkedIn PDF upload in, one validated CV out.

Flow:
    client_id + pdf bytes
      ├─ RateLimiter.check_and_consume(client_id)   → RateDecision (worker thread, 429 if denied)
      ├─ input checks (present, PDF MIME, size)
      ├─ extract_text(pdf_bytes)                      → raw text (worker thread)
      ├─ is_linkedin_resume(raw text)                 (400 if not)
      ├─ detect(raw text)                             → Locale
      ├─ segment(raw text, locale)                    → SectionSet
      ├─ build_extraction_prompt(sections, locale)    → prompt
      ├─ generate(prompt)                             → model reply
      ├─ strip_code_fences(reply)
      └─ parse_and_validate(reply)                    → CV

Every failure surfaces as a PipelineError carrying its HTTP status; anything
unexpected is logged with the stage it happened in and reported as a 500.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

from models.schemas.cv import CV
from services import gemini_client, pdf_parser
from services.errors import (
    FileTooLarge,
    InvalidFileType,
    MissingPDF,
    NotLinkedInResume,
    PipelineError,
    RateLimitExceeded,
    TextExtractionError,
    UnsupportedLocale,
)
from services.language_detector import detect
from services.progress import ProgressBroker
from services.prompt_builder import build_extraction_prompt
from services.rate_limiter import RateDecision, RateLimiter
from services.response_parser import parse_and_validate, strip_code_fences
from services.section_parser import segment

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPES = frozenset({"application/pdf", "application/x-pdf"})

TextExtractor = Callable[[bytes], str]
ReplyGenerator = Callable[[str], Awaitable[str]]


class Stage(str, Enum):
    RECEIVED = "received"
    RATE_CHECKED = "rate_checked"
    TEXT_EXTRACTED = "text_extracted"
    LANGUAGE_DETECTED = "language_detected"
    SEGMENTED = "segmented"
    PROMPT_BUILT = "prompt_built"
    MODEL_CALLED = "model_called"
    SANITIZED = "sanitized"
    VALIDATED = "validated"
    DONE = "done"
    FAILED = "failed"


# Progress text emitted when entering each stage's work
STAGE_MESSAGES: dict[Stage, str] = {
    Stage.RECEIVED: "Checking request limits",
    Stage.RATE_CHECKED: "Extracting text from PDF",
    Stage.TEXT_EXTRACTED: "Detecting resume language",
    Stage.LANGUAGE_DETECTED: "Splitting resume into sections",
    Stage.SEGMENTED: "Preparing extraction request",
    Stage.PROMPT_BUILT: "Extracting CV data with AI",
    Stage.MODEL_CALLED: "Cleaning AI response",
    Stage.SANITIZED: "Validating CV data",
    Stage.VALIDATED: "Finalizing",
    Stage.DONE: "Done",
}


@dataclass(frozen=True)
class PipelineResult:
    cv: CV
    raw_text: str
    rate: RateDecision


class CVPipeline:
    """Runs the upload-to-CV state machine, one call per upload."""

    def __init__(
        self,
        rate_limiter: RateLimiter,
        extract_text: TextExtractor = pdf_parser.extract_text,
        generate: ReplyGenerator = gemini_client.generate_text,
        broker: ProgressBroker | None = None,
        max_upload_bytes: int = 5 * 1024 * 1024,
    ) -> None:
        self.rate_limiter = rate_limiter
        self.extract_text = extract_text
        self.generate = generate
        self.broker = broker or ProgressBroker()
        self.max_upload_bytes = max_upload_bytes

    def _advance(self, client_id: str, stage: Stage) -> Stage:
        logger.debug("Pipeline stage: %s", stage.value)
        message = STAGE_MESSAGES.get(stage)
        if message:
            self.broker.publish(client_id, message)
        return stage

    def _check_input(self, pdf_bytes: bytes | None, content_type: str | None) -> bytes:
        if not pdf_bytes:
            raise MissingPDF()
        if (content_type or "").split(";")[0].strip().lower() not in PDF_CONTENT_TYPES:
            raise InvalidFileType(f"unexpected content type {content_type!r}")
        if len(pdf_bytes) > self.max_upload_bytes:
            raise FileTooLarge(f"{len(pdf_bytes)} bytes exceeds {self.max_upload_bytes}")
        return pdf_bytes

    async def _extract(self, pdf_bytes: bytes) -> str:
        try:
            text = await asyncio.to_thread(self.extract_text, pdf_bytes)
        except Exception as e:
            raise TextExtractionError(f"could not read PDF: {e}") from e
        if not text or not text.strip():
            raise TextExtractionError("no text could be extracted from PDF")
        return text

    async def run(
        self,
        client_id: str,
        pdf_bytes: bytes | None,
        content_type: str | None = "application/pdf",
    ) -> PipelineResult:
        stage = self._advance(client_id, Stage.RECEIVED)
        try:
            decision = await asyncio.to_thread(self.rate_limiter.check_and_consume, client_id)
            if not decision.allowed:
                raise RateLimitExceeded(decision)
            stage = self._advance(client_id, Stage.RATE_CHECKED)

            pdf_bytes = self._check_input(pdf_bytes, content_type)
            raw_text = await self._extract(pdf_bytes)
            if not pdf_parser.is_linkedin_resume(raw_text):
                raise NotLinkedInResume("no linkedin.com/in/ profile URL in text")
            stage = self._advance(client_id, Stage.TEXT_EXTRACTED)

            locale = detect(raw_text)
            if not locale.is_supported:
                raise UnsupportedLocale("resume language not detected")
            logger.info("Detected resume locale: %s", locale.value)
            stage = self._advance(client_id, Stage.LANGUAGE_DETECTED)

            sections = segment(raw_text, locale)
            stage = self._advance(client_id, Stage.SEGMENTED)

            prompt = build_extraction_prompt(sections, locale)
            stage = self._advance(client_id, Stage.PROMPT_BUILT)

            reply = await self.generate(prompt)
            stage = self._advance(client_id, Stage.MODEL_CALLED)

            cleaned = strip_code_fences(reply)
            stage = self._advance(client_id, Stage.SANITIZED)

            cv = parse_and_validate(cleaned)
            stage = self._advance(client_id, Stage.VALIDATED)
        except PipelineError as e:
            self._fail(client_id, stage, e)
            raise
        except Exception as e:
            logger.exception("Unexpected failure at stage %s", stage.value)
            error = PipelineError(f"unexpected error at {stage.value}: {e}")
            self._fail(client_id, stage, error)
            raise error from e

        self._advance(client_id, Stage.DONE)
        logger.info(
            "Extracted CV for %s: %d experience, %d education entries",
            client_id, len(cv.experience), len(cv.education),
        )
        return PipelineResult(cv=cv, raw_text=raw_text, rate=decision)

    def _fail(self, client_id: str, stage: Stage, error: PipelineError) -> None:
        if error.status_code >= 500:
            logger.error("Pipeline failed at %s: %s", stage.value, error.detail)
        else:
            logger.warning("Upload rejected at %s: %s", stage.value, error.detail)
        if isinstance(error, UnsupportedLocale):
            self.broker.publish(client_id, "Cannot format data: unsupported resume language")
        else:
            self.broker.publish(client_id, f"Failed: {error.public_message}")
        logger.debug("Pipeline stage: %s", Stage.FAILED.value)
