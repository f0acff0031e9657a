"""Keyword retrieval — token overlap scoring with tie detection."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from lecturebot.models import DocumentRecord
from lecturebot.stores.blobstore import BlobStore
from lecturebot.stores.docstore import DocStore

log = logging.getLogger(__name__)

_SEPARATOR = re.compile(r"[\W_]+")


def tokenize(text: str | None) -> list[str]:
    """Lower-case *text* and split it on runs of non-alphanumeric characters."""
    if not text:
        return []
    return [t for t in _SEPARATOR.split(text.lower()) if t]


def document_tokens(record: DocumentRecord) -> set[str]:
    """Searchable tokens of a record: file name plus description."""
    return set(tokenize(record.original_name)) | set(tokenize(record.description))


def score(query_tokens: list[str] | set[str], record: DocumentRecord) -> int:
    """Number of distinct query tokens found in the record."""
    return len(set(query_tokens) & document_tokens(record))


@dataclass(frozen=True)
class NoMatch:
    corpus_size: int = 0


@dataclass(frozen=True)
class SingleMatch:
    document: DocumentRecord
    score: int


@dataclass(frozen=True)
class Ambiguous:
    candidates: tuple[DocumentRecord, ...]
    score: int


RankedResult = NoMatch | SingleMatch | Ambiguous


class RetrievalEngine:
    """Scores every stored document against a query and picks the winner."""

    def __init__(self, docstore: DocStore, blobstore: BlobStore):
        self.docstore = docstore
        self.blobstore = blobstore

    async def search(self, query: str) -> RankedResult:
        """Rank all documents by query-token overlap.

        A document with a strictly higher score than every other one is a
        single match. Documents tied at the top score are returned in
        store order for the sender to choose from.

        Raises:
            StorageFailed: the documents could not be listed.
        """
        documents = self.docstore.list_documents()
        query_tokens = set(tokenize(query))
        if not query_tokens:
            return NoMatch(corpus_size=len(documents))

        scored = [(score(query_tokens, d), d) for d in documents]
        scored = [(s, d) for s, d in scored if s > 0]
        if not scored:
            log.info("No match for %r among %d documents", query, len(documents))
            return NoMatch(corpus_size=len(documents))

        # sort() is stable, so ties keep store order
        scored.sort(key=lambda pair: pair[0], reverse=True)
        top = scored[0][0]
        if len(scored) == 1 or top > scored[1][0]:
            return SingleMatch(document=scored[0][1], score=top)

        candidates = tuple(d for s, d in scored if s == top)
        log.info("Query %r is ambiguous: %d documents at score %d", query, len(candidates), top)
        return Ambiguous(candidates=candidates, score=top)

    async def fetch_by_record(self, record: DocumentRecord) -> bytes:
        """Load the file bytes behind *record*.

        Raises:
            NotFound: the blob was removed out-of-band.
            StorageFailed: the blob store failed.
        """
        return self.blobstore.get(record.storage_key)
