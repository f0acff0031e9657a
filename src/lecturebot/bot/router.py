"""Conversation router — decides what an inbound message means for its sender.

Dispatch order, first match wins:

1. awaiting a description and the text is not blank → finalize the upload
2. awaiting a selection → resolve the numbered choice
3. greeting → welcome text
4. accepted document attached → buffer the upload
5. command prefix (``send ...``) → keyword search
6. anything else → ignored
"""

from __future__ import annotations

import logging

from lecturebot.bot.session import AwaitingDescription, AwaitingSelection, SessionStore
from lecturebot.config import BotConfig, MessagesConfig
from lecturebot.errors import (
    DuplicateDocument,
    InvalidSelection,
    NoPendingUpload,
    NotFound,
    StorageFailed,
)
from lecturebot.ingest.pipeline import IngestionPipeline
from lecturebot.models import DocumentRecord, DocumentReply, InboundMessage, Reply, TextReply
from lecturebot.retrieval.engine import Ambiguous, NoMatch, RetrievalEngine, SingleMatch

log = logging.getLogger(__name__)


def parse_selection(text: str, count: int) -> int:
    """Turn a 1-based reply into a 0-based index into *count* candidates."""
    raw = text.strip()
    if not raw.isdecimal():
        raise InvalidSelection(f"Not a number: {raw!r}")
    number = int(raw)
    if not 1 <= number <= count:
        raise InvalidSelection(f"{number} is outside 1..{count}")
    return number - 1


class ConversationRouter:
    """Dispatches inbound messages over per-sender session state.

    The router performs no storage I/O itself; it only calls into the
    pipeline and the engine and turns their outcomes into replies.
    """

    def __init__(
        self,
        sessions: SessionStore,
        pipeline: IngestionPipeline,
        engine: RetrievalEngine,
        *,
        bot: BotConfig | None = None,
        messages: MessagesConfig | None = None,
    ):
        self.sessions = sessions
        self.pipeline = pipeline
        self.engine = engine
        self.bot = bot or BotConfig()
        self.messages = messages or MessagesConfig()
        self._greetings = {g.strip().casefold() for g in self.bot.greetings}

    async def handle(self, message: InboundMessage) -> list[Reply]:
        """Process one inbound message and return the replies to send.

        Events from the same sender are handled one at a time.
        """
        async with self.sessions.lock(message.sender_id):
            return await self._dispatch(message)

    async def _dispatch(self, message: InboundMessage) -> list[Reply]:
        sender = message.sender_id
        text = message.text or ""
        state = self.sessions.get(sender)

        if isinstance(state, AwaitingDescription) and text.strip():
            return [await self._finalize_upload(sender, text)]

        if isinstance(state, AwaitingSelection):
            return [await self._resolve_selection(sender, state, text)]

        if text.strip().casefold() in self._greetings:
            return [TextReply(text=self.messages.welcome)]

        document = message.document
        if document is not None and document.mime_type == self.bot.accepted_mime_type:
            return [await self._receive_upload(sender, message)]

        prefix = self.bot.command_prefix.lower()
        if text.lower().startswith(prefix):
            return [await self._search(sender, text[len(prefix):])]

        log.debug("Ignoring message from %s", sender)
        return []

    # -- Upload flow ---------------------------------------------------------

    async def _receive_upload(self, sender: str, message: InboundMessage) -> Reply:
        try:
            await self.pipeline.receive(sender, message.document)
        except DuplicateDocument:
            self.sessions.clear(sender)
            return TextReply(text=self.messages.duplicate)
        except StorageFailed:
            log.exception("Duplicate check failed for %s", sender)
            self.sessions.clear(sender)
            return TextReply(text=self.messages.duplicate_check_failed)
        return TextReply(text=self.messages.upload_received)

    async def _finalize_upload(self, sender: str, text: str) -> Reply:
        try:
            record = await self.pipeline.finalize(sender, text)
        except DuplicateDocument:
            log.warning("Upload from %s lost a race against an identical file", sender)
            return TextReply(text=self.messages.duplicate)
        except StorageFailed:
            log.exception("Storing upload from %s failed", sender)
            return TextReply(text=self.messages.upload_failed)
        except NoPendingUpload:
            log.warning("No buffered upload for %s", sender)
            return TextReply(text=self.messages.upload_failed)
        finally:
            self.sessions.clear(sender)
        return TextReply(text=self.messages.description_saved.format(description=record.description))

    # -- Retrieval flow ------------------------------------------------------

    async def _search(self, sender: str, query: str) -> Reply:
        try:
            result = await self.engine.search(query)
        except StorageFailed:
            log.exception("Search for %r failed", query)
            return TextReply(text=self.messages.search_failed)

        if isinstance(result, NoMatch):
            if result.corpus_size == 0:
                return TextReply(text=self.messages.no_files)
            return TextReply(text=self.messages.no_match)

        if isinstance(result, SingleMatch):
            return await self._deliver(result.document)

        assert isinstance(result, Ambiguous)
        self.sessions.set(sender, AwaitingSelection(candidates=result.candidates))
        return TextReply(text=self._format_candidates(result.candidates))

    async def _resolve_selection(self, sender: str, state: AwaitingSelection, text: str) -> Reply:
        try:
            index = parse_selection(text, len(state.candidates))
        except InvalidSelection as exc:
            log.info("Invalid selection from %s: %s", sender, exc)
            return TextReply(text=self.messages.invalid_selection)

        try:
            return await self._deliver(state.candidates[index])
        finally:
            self.sessions.clear(sender)

    async def _deliver(self, record: DocumentRecord) -> Reply:
        try:
            data = await self.engine.fetch_by_record(record)
        except (NotFound, StorageFailed):
            log.exception("Fetching document %s failed", record.id)
            return TextReply(text=self.messages.retrieval_failed)
        return DocumentReply(
            data=data,
            file_name=record.original_name or self.bot.fallback_file_name,
            mime_type=self.bot.accepted_mime_type,
        )

    def _format_candidates(self, candidates: tuple[DocumentRecord, ...]) -> str:
        lines = [
            self.messages.selection_item.format(
                number=i,
                name=c.original_name or self.bot.fallback_file_name,
                description=c.description or self.messages.no_description,
            )
            for i, c in enumerate(candidates, 1)
        ]
        return "\n\n".join(
            [self.messages.selection_header, "\n".join(lines), self.messages.selection_footer]
        )
