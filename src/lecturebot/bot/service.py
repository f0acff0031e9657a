"""Wires stores, session state and the workflow components together."""

from __future__ import annotations

from lecturebot.bot.router import ConversationRouter
from lecturebot.bot.session import SessionStore
from lecturebot.config import Settings, get_settings
from lecturebot.ingest.pipeline import IngestionPipeline
from lecturebot.models import InboundMessage, Reply
from lecturebot.retrieval.engine import RetrievalEngine
from lecturebot.stores.blobstore import BlobStore
from lecturebot.stores.docstore import DocStore


class LectureBot:
    """One bot instance: shared stores plus the per-sender router."""

    def __init__(self, settings: Settings | None = None):
        settings = settings or get_settings()
        self.settings = settings
        self.docstore = DocStore(settings.docstore.path)
        self.blobstore = BlobStore(settings.blobstore.path)
        self.sessions = SessionStore()
        self.pipeline = IngestionPipeline(
            self.sessions,
            self.docstore,
            self.blobstore,
            content_type=settings.bot.accepted_mime_type,
            default_file_name=settings.ingest.default_file_name,
            file_extension=settings.ingest.file_extension,
        )
        self.engine = RetrievalEngine(self.docstore, self.blobstore)
        self.router = ConversationRouter(
            self.sessions,
            self.pipeline,
            self.engine,
            bot=settings.bot,
            messages=settings.messages,
        )

    async def handle(self, message: InboundMessage) -> list[Reply]:
        return await self.router.handle(message)

    def close(self) -> None:
        self.docstore.close()

    def __enter__(self) -> LectureBot:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
