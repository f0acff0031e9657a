"""Errors raised by the stores, the ingestion pipeline and the retrieval engine."""

from __future__ import annotations


class LectureBotError(Exception):
    """Base class for every recoverable error in lecturebot."""


class DuplicateDocument(LectureBotError):
    """A document with the same content hash is already stored."""

    def __init__(self, content_hash: str):
        super().__init__(f"Document already stored: {content_hash}")
        self.content_hash = content_hash


class StorageFailed(LectureBotError):
    """The blob store or the metadata repository failed."""


class NotFound(LectureBotError):
    """A record points at a blob that no longer exists."""

    def __init__(self, key: str):
        super().__init__(f"Blob not found: {key}")
        self.key = key


class InvalidSelection(LectureBotError):
    """A disambiguation reply is not a valid 1-based index."""


class NoPendingUpload(LectureBotError):
    """finalize() was called for a sender with no buffered upload."""

    def __init__(self, sender_id: str):
        super().__init__(f"No pending upload for {sender_id}")
        self.sender_id = sender_id
