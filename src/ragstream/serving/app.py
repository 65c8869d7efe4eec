"""FastAPI application exposing ingestion and chat as a REST API.

Endpoints are plain ``def`` functions, so FastAPI runs each request (and
each streamed response) on its own worker thread; blocking remote calls
only hold up the request that made them.
"""

from __future__ import annotations

import logging
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse

from ragstream.config import configure_logging
from ragstream.errors import (
    ChatError,
    ChatErrorKind,
    ConfigurationError,
    IngestionError,
    RagError,
    StorageError,
    ValidationError,
)
from ragstream.ingestion.loader import extract_text
from ragstream.serving.dependencies import Services, get_services
from ragstream.serving.schemas import (
    ChatRequest,
    ChatResponse,
    IngestRequest,
    IngestResponse,
    ResetResponse,
)
from ragstream.serving.sse import sse_frames

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging()
    yield


app = FastAPI(
    title="ragstream API",
    version="0.1.0",
    description="Document ingestion and retrieval-augmented streaming chat.",
    lifespan=lifespan,
)


# ── Error mapping ─────────────────────────────────────────────────────


def _status_for(exc: RagError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, ConfigurationError):
        return 500
    if isinstance(exc, StorageError):
        return 503
    if isinstance(exc, ChatError):
        return 503 if exc.kind is ChatErrorKind.STORAGE_FAILED else 502
    return 500


@app.exception_handler(RagError)
async def rag_error_handler(request: Request, exc: RagError) -> JSONResponse:
    status = _status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"error": str(exc)})


# ── Routes ────────────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.post("/api/ingest", response_model=IngestResponse)
def ingest(request: IngestRequest, services: Services = Depends(get_services)) -> IngestResponse:
    """Ingest pre-extracted document text."""
    report = services.pipeline.ingest(request.text)
    return IngestResponse(**report.to_response())


@app.post("/api/upload", response_model=IngestResponse)
def upload(
    document: UploadFile | None = File(None),
    services: Services = Depends(get_services),
) -> IngestResponse:
    """Extract text from an uploaded PDF and ingest it."""
    suffix = Path(document.filename or "").suffix.lower() if document is not None else ""
    if suffix != ".pdf":
        raise ValidationError("Please upload a PDF document.")

    with tempfile.NamedTemporaryFile(suffix=suffix) as tmp:
        tmp.write(document.file.read())
        tmp.flush()
        try:
            text = extract_text(tmp.name)
        except Exception as exc:
            raise IngestionError(f"Could not read the PDF: {exc}") from exc

    report = services.pipeline.ingest(text)
    return IngestResponse(**report.to_response())


@app.post("/api/chat", response_model=None)
def chat(request: ChatRequest, services: Services = Depends(get_services)) -> ChatResponse | StreamingResponse:
    """Answer a question, streamed as Server-Sent Events unless ``stream`` is false."""
    if not request.stream:
        result = services.orchestrator.answer(request.session_id, request.question)
        return ChatResponse(**result.to_response())

    events = services.orchestrator.answer_stream(request.session_id, request.question)
    return StreamingResponse(sse_frames(events), media_type="text/event-stream", headers=SSE_HEADERS)


@app.delete("/api/chat/{session_id}", response_model=ResetResponse)
def reset(session_id: str, services: Services = Depends(get_services)) -> ResetResponse:
    """Forget a session's history."""
    return ResetResponse(existed=services.sessions.delete(session_id))
