"""Typed failures raised by the CV extraction pipeline.

Every error carries the HTTP status and the short message shown to the
caller. Internal details (offending model output, missing anchors, field
paths) stay on the exception for logging and are never sent to clients.
"""


class PipelineError(Exception):
    """Base class for all pipeline failures."""

    status_code: int = 500
    public_message: str = "Failed to process PDF"

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.public_message)
        self.detail = detail or self.public_message


class MissingPDF(PipelineError):
    status_code = 400
    public_message = "No PDF file provided"


class InvalidFileType(PipelineError):
    status_code = 400
    public_message = "File must be a PDF"


class FileTooLarge(PipelineError):
    status_code = 400
    public_message = "File too large"


class NotLinkedInResume(PipelineError):
    status_code = 400
    public_message = "Not a LinkedIn resume"


class RateLimitExceeded(PipelineError):
    status_code = 429
    public_message = "Too many requests"

    def __init__(self, decision) -> None:
        super().__init__(f"rate limit exceeded for {decision.client_id}")
        self.decision = decision


class TextExtractionError(PipelineError):
    """The PDF could not be turned into text, or yielded none."""


class UnsupportedLocale(PipelineError):
    """The resume language is neither of the supported vocabularies."""


class AnchorNotFound(PipelineError):
    """A section heading required for segmentation is missing."""

    def __init__(self, anchor: str, section: str) -> None:
        super().__init__(f"anchor {anchor!r} for section {section!r} not found")
        self.anchor = anchor
        self.section = section


class ModelCallError(PipelineError):
    """The language model call failed or timed out."""


class LLMConfigurationError(ModelCallError):
    """The language model provider is not configured (no API key)."""


class MalformedOutput(PipelineError):
    """The model reply is not parseable as a JSON object."""

    def __init__(self, detail: str, raw_text: str) -> None:
        super().__init__(detail)
        self.raw_text = raw_text


class SchemaViolation(PipelineError):
    """The model reply parsed but does not match the CV schema."""

    def __init__(self, field_path: str, errors: list[dict] | None = None) -> None:
        super().__init__(f"schema violation at {field_path!r}")
        self.field_path = field_path
        self.errors = errors or []
