from pydantic import BaseModel, ConfigDict, Field

from models.schemas.cv import CV


class UploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: CV
    raw_text: str = Field(alias="rawText")


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str = "ok"
    gemini_configured: bool = False
    rate_limit_backend: str = ""
