"""Shared dependencies for API routes."""

from config import settings
from services.pipeline.orchestrator import CVPipeline
from services.rate_limiter import RateLimiter

_pipeline: CVPipeline | None = None


def get_pipeline() -> CVPipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = CVPipeline(
            rate_limiter=RateLimiter(
                limit=settings.rate_limit_requests,
                window_seconds=settings.rate_limit_window_seconds,
                storage_uri=settings.rate_limit_storage_uri,
            ),
            max_upload_bytes=settings.max_upload_size_mb * 1024 * 1024,
        )
    return _pipeline
