"""Shared domain models used across the system."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Union

from pydantic import BaseModel, ConfigDict, Field


class DocumentRecord(BaseModel):
    """One stored file. Immutable once inserted."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    content_hash: str
    storage_key: str
    original_name: str = ""
    description: str = ""
    sender_id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class DocumentPayload(BaseModel):
    """A file attached to an inbound message."""

    data: bytes
    file_name: str = ""
    mime_type: str


class InboundMessage(BaseModel):
    """One event delivered by the transport."""

    sender_id: str
    text: str = ""
    document: DocumentPayload | None = None


class TextReply(BaseModel):
    text: str


class DocumentReply(BaseModel):
    data: bytes
    file_name: str
    mime_type: str


Reply = Union[TextReply, DocumentReply]
