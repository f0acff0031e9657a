"""Ingestion pipeline — fingerprint → duplicate check → buffer → describe → store."""

from __future__ import annotations

import hashlib
import logging
import time
import uuid
from datetime import datetime, timezone
from pathlib import PurePath

from lecturebot.bot.session import AwaitingDescription, SessionStore
from lecturebot.errors import DuplicateDocument, NoPendingUpload, StorageFailed
from lecturebot.models import DocumentPayload, DocumentRecord
from lecturebot.stores.blobstore import BlobStore
from lecturebot.stores.docstore import DocStore

log = logging.getLogger(__name__)


def content_hash(data: bytes) -> str:
    """SHA-256 hex digest of raw file bytes."""
    return hashlib.sha256(data).hexdigest()


class IngestionPipeline:
    """Two-step upload: ``receive`` buffers the file, ``finalize`` persists it.

    Nothing is written to storage until the sender supplies a description,
    so abandoned uploads leave no orphan blobs behind.
    """

    def __init__(
        self,
        sessions: SessionStore,
        docstore: DocStore,
        blobstore: BlobStore,
        *,
        content_type: str = "application/pdf",
        default_file_name: str = "lecture",
        file_extension: str = ".pdf",
    ):
        self.sessions = sessions
        self.docstore = docstore
        self.blobstore = blobstore
        self.content_type = content_type
        self.default_file_name = default_file_name
        self.file_extension = file_extension

    async def receive(self, sender_id: str, payload: DocumentPayload) -> AwaitingDescription:
        """Fingerprint *payload* and buffer it for *sender_id*.

        Replaces any earlier unfinished upload from the same sender.

        Raises:
            DuplicateDocument: the content is already stored.
            StorageFailed: the duplicate check could not be performed.
        """
        digest = content_hash(payload.data)

        # Best-effort only: the unique index on content_hash is the real guard.
        if self.docstore.get_by_hash(digest) is not None:
            log.info("Duplicate upload from %s: %s", sender_id, digest[:12])
            raise DuplicateDocument(digest)

        pending = AwaitingDescription(
            data=payload.data,
            content_hash=digest,
            original_name=payload.file_name,
        )
        self.sessions.set(sender_id, pending)
        log.info(
            "Buffered %s from %s (%d bytes)",
            payload.file_name or "<unnamed>", sender_id, len(payload.data),
        )
        return pending

    async def finalize(self, sender_id: str, description: str) -> DocumentRecord:
        """Persist the sender's buffered upload with *description*.

        The buffer is discarded whatever the outcome; after a failure the
        sender has to upload the file again.

        Raises:
            NoPendingUpload: nothing is buffered for *sender_id*.
            DuplicateDocument: the same content was stored in the meantime.
            StorageFailed: the blob write or the metadata insert failed.
        """
        pending = self.sessions.get(sender_id)
        if not isinstance(pending, AwaitingDescription):
            raise NoPendingUpload(sender_id)
        self.sessions.clear_if(sender_id, pending)

        key = self.storage_key(pending.original_name)
        self.blobstore.put(key, pending.data, self.content_type)

        record = DocumentRecord(
            content_hash=pending.content_hash,
            storage_key=key,
            original_name=pending.original_name,
            description=description.strip(),
            sender_id=sender_id,
            created_at=datetime.now(timezone.utc),
        )
        try:
            record = self.docstore.insert(record)
        except (DuplicateDocument, StorageFailed):
            self._discard_blob(key)
            raise

        log.info("Stored %s as %s (id=%s)", record.original_name or key, key, record.id)
        return record

    def storage_key(self, original_name: str) -> str:
        """Build a unique, flat blob key from a timestamp and the file name."""
        name = PurePath(original_name.replace("\\", "/")).name.strip() or self.default_file_name
        if not name.lower().endswith(self.file_extension):
            name += self.file_extension
        return f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}_{name}"

    def _discard_blob(self, key: str) -> None:
        try:
            self.blobstore.delete(key)
        except StorageFailed:
            log.exception("Could not remove orphan blob %s", key)
