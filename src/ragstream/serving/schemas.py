"""Request / response bodies for the HTTP API (camelCase on the wire)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class IngestRequest(_CamelModel):
    """Pre-extracted plain text of one document."""

    text: str | None = None


class IngestResponse(_CamelModel):
    chunks_saved: int = Field(alias="chunksSaved")
    chunks_total: int = Field(alias="chunksTotal")
    failed_chunks: int = Field(alias="failedChunks")


class ChatRequest(_CamelModel):
    """Incoming question from the user."""

    question: str | None = None
    session_id: str | None = Field(default=None, alias="sessionId")
    stream: bool = True


class ChatResponse(_CamelModel):
    session_id: str = Field(alias="sessionId")
    answer: str


class ResetResponse(_CamelModel):
    existed: bool
