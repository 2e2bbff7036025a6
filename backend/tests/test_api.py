import asyncio
import io
import json

import pytest
from docx import Document
from fastapi.testclient import TestClient

import api.router as api_router
from api.dependencies import get_pipeline
from api.router import events
from main import app

PDF_FILE = ("resume.pdf", b"%PDF-1.4 fake", "application/pdf")


@pytest.fixture
def client_for(make_pipeline):
    """TestClient whose upload pipeline uses fake extraction and model reply."""

    def _client(**pipeline_kwargs) -> TestClient:
        pipeline = make_pipeline(**pipeline_kwargs)
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        return TestClient(app)

    yield _client
    app.dependency_overrides.clear()


def test_health(client_for):
    response = client_for().get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["rate_limit_backend"] == "memory://"


def test_upload_success(client_for, en_resume):
    response = client_for().post("/api/upload", files={"pdf": PDF_FILE})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["rawText"] == en_resume
    assert len(body["data"]["experience"]) == 1
    assert body["data"]["contact"]["email"] == "jane.doe@gmail.com"
    assert body["data"]["skills"]["mainSkills"] == ["Python", "FastAPI", "PostgreSQL"]
    assert body["data"]["experience"][0]["startDate"] == "January 2021"
    assert response.headers["X-RateLimit-Limit"] == "3"
    assert response.headers["X-RateLimit-Remaining"] == "2"


def test_upload_without_pdf(client_for):
    response = client_for().post("/api/upload", data={"other": "field"})
    assert response.status_code == 400
    assert response.json() == {"error": "No PDF file provided"}


def test_upload_rejects_non_pdf(client_for):
    response = client_for().post(
        "/api/upload", files={"pdf": ("resume.txt", b"not a pdf", "text/plain")}
    )
    assert response.status_code == 400
    assert response.json() == {"error": "File must be a PDF"}


def test_upload_not_linkedin(client_for):
    text = "Contact\njane@gmail.com\nSummary\nExperience\nEducation"
    response = client_for(text=text).post("/api/upload", files={"pdf": PDF_FILE})
    assert response.status_code == 400
    assert response.json() == {"error": "Not a LinkedIn resume"}


def test_upload_rate_limited_on_fourth_request(client_for):
    client = client_for()
    headers = {"X-Forwarded-For": "203.0.113.7"}
    for _ in range(3):
        assert client.post("/api/upload", files={"pdf": PDF_FILE}, headers=headers).status_code == 200
    response = client.post("/api/upload", files={"pdf": PDF_FILE}, headers=headers)
    assert response.status_code == 429
    assert response.json() == {"error": "Too many requests"}
    assert "Retry-After" in response.headers
    # another client is unaffected
    other = client.post("/api/upload", files={"pdf": PDF_FILE}, headers={"X-Forwarded-For": "198.51.100.1"})
    assert other.status_code == 200


def test_upload_malformed_model_reply(client_for):
    response = client_for(reply="not json at all").post("/api/upload", files={"pdf": PDF_FILE})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to process PDF"}


def test_upload_unsupported_language(client_for):
    text = "Kontakt\nlinkedin.com/in/max\nBerufserfahrung"
    response = client_for(text=text).post("/api/upload", files={"pdf": PDF_FILE})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to process PDF"}


def test_docx_download(client_for, cv_data):
    response = client_for().post("/api/cv/docx", json=cv_data)
    assert response.status_code == 200
    assert "harvard-cv.docx" in response.headers["content-disposition"]
    doc = Document(io.BytesIO(response.content))
    texts = [p.text for p in doc.paragraphs]
    assert "Jane Doe" in texts
    assert "Experience" in texts
    assert "Designed the billing platform." in texts


def test_docx_rejects_invalid_cv(client_for, cv_data):
    cv_data["contact"]["email"] = "nope"
    response = client_for().post("/api/cv/docx", content=json.dumps(cv_data),
                                 headers={"Content-Type": "application/json"})
    assert response.status_code == 422
    assert response.json() == {"error": "Invalid CV data", "field": "contact.email"}


class StreamRequest:
    """Just enough of a request to drive the /events stream directly."""

    def __init__(self, client_ip: str):
        self.headers = {"x-forwarded-for": client_ip}
        self.disconnected = False

    async def is_disconnected(self) -> bool:
        return self.disconnected


async def wait_for_listeners(broker, count: int) -> None:
    for _ in range(100):
        if broker.listener_count == count:
            return
        await asyncio.sleep(0.01)
    raise AssertionError(f"expected {count} listeners, have {broker.listener_count}")


class TestEventStream:
    @pytest.mark.asyncio
    async def test_frames_only_this_clients_progress(self, make_pipeline):
        pipeline = make_pipeline()
        request = StreamRequest("203.0.113.7")
        response = await events(request, pipeline)
        assert response.media_type == "text/event-stream"
        assert response.headers["cache-control"] == "no-cache"

        body = response.body_iterator
        chunk = asyncio.ensure_future(body.__anext__())
        await wait_for_listeners(pipeline.broker, 1)
        pipeline.broker.publish("198.51.100.1", "Validating CV data")
        pipeline.broker.publish("203.0.113.7", "Extracting text from PDF")
        assert await chunk == "data: Extracting text from PDF\n\n"

        request.disconnected = True
        with pytest.raises(StopAsyncIteration):
            await body.__anext__()
        assert pipeline.broker.listener_count == 0

    @pytest.mark.asyncio
    async def test_keep_alive_comment_when_idle(self, make_pipeline, monkeypatch):
        monkeypatch.setattr(api_router, "KEEPALIVE_SECONDS", 0.01)
        pipeline = make_pipeline()
        response = await events(StreamRequest("203.0.113.7"), pipeline)

        body = response.body_iterator
        assert await body.__anext__() == ": keep-alive\n\n"
        assert pipeline.broker.listener_count == 1
        await body.aclose()
        assert pipeline.broker.listener_count == 0

    @pytest.mark.asyncio
    async def test_upload_progress_reaches_uploading_client(self, make_pipeline):
        pipeline = make_pipeline()
        request = StreamRequest("203.0.113.7")
        body = (await events(request, pipeline)).body_iterator

        first = asyncio.ensure_future(body.__anext__())
        await wait_for_listeners(pipeline.broker, 1)
        await pipeline.run("203.0.113.7", PDF_FILE[1])
        assert await first == "data: Checking request limits\n\n"
        await body.aclose()
        assert pipeline.broker.listener_count == 0
