import asyncio
import logging

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import JSONResponse, Response, StreamingResponse

from api.dependencies import get_pipeline
from config import settings
from models.responses import ErrorResponse, HealthResponse, UploadResponse
from models.schemas.cv import CV
from services.cv_document import render_harvard_cv
from services.errors import PipelineError
from services.pipeline.orchestrator import CVPipeline
from services.rate_limiter import client_identifier

logger = logging.getLogger(__name__)

router = APIRouter()

KEEPALIVE_SECONDS = 15.0
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def error_response(error: PipelineError) -> JSONResponse:
    headers = None
    decision = getattr(error, "decision", None)
    if decision is not None:
        headers = decision.headers()
    return JSONResponse(
        status_code=error.status_code,
        content={"error": error.public_message},
        headers=headers,
    )


@router.get("/health", response_model=HealthResponse)
async def health(pipeline: CVPipeline = Depends(get_pipeline)):
    limiter = pipeline.rate_limiter
    return HealthResponse(
        gemini_configured=bool(settings.gemini_api_key),
        rate_limit_backend=limiter.storage_uri if limiter.configured else "disabled",
    )


@router.post(
    "/api/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def upload(
    request: Request,
    response: Response,
    pdf: UploadFile | None = File(None),
    pipeline: CVPipeline = Depends(get_pipeline),
):
    pdf_bytes = await pdf.read() if pdf is not None else None
    content_type = pdf.content_type if pdf is not None else None

    result = await pipeline.run(
        client_id=client_identifier(request),
        pdf_bytes=pdf_bytes,
        content_type=content_type,
    )
    response.headers.update(result.rate.headers())
    return UploadResponse(data=result.cv, raw_text=result.raw_text)


@router.get("/events")
async def events(request: Request, pipeline: CVPipeline = Depends(get_pipeline)):
    """Server-sent stream of progress messages for this client's uploads."""
    client_id = client_identifier(request)

    async def stream():
        async with pipeline.broker.subscribe(client_id) as queue:
            while not await request.is_disconnected():
                try:
                    message = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield f"data: {message}\n\n"

    return StreamingResponse(
        stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post("/api/cv/docx")
async def download_docx(cv: CV):
    content = render_harvard_cv(cv)
    return Response(
        content=content,
        media_type=DOCX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="harvard-cv.docx"'},
    )
