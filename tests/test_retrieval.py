"""Tests for lecturebot.retrieval.engine."""

from __future__ import annotations

import pytest

from lecturebot.errors import NotFound
from lecturebot.models import DocumentRecord
from lecturebot.retrieval.engine import (
    Ambiguous,
    NoMatch,
    SingleMatch,
    document_tokens,
    score,
    tokenize,
)


def _store(docstore, blobstore, name: str, description: str, data: bytes | None = None) -> DocumentRecord:
    key = f"{len(docstore.list_documents())}_{name or 'file'}"
    blobstore.put(key, data or key.encode())
    return docstore.insert(
        DocumentRecord(
            content_hash=key,
            storage_key=key,
            original_name=name,
            description=description,
            sender_id="alice",
        )
    )


def test_tokenize():
    assert tokenize("MAT101 Week-1_notes.pdf") == ["mat101", "week", "1", "notes", "pdf"]
    assert tokenize("  ,, ") == []
    assert tokenize(None) == []


def test_document_tokens_merge_name_and_description():
    record = DocumentRecord(
        content_hash="h", storage_key="k", original_name="week1 notes.pdf",
        description="MAT101", sender_id="s",
    )
    assert document_tokens(record) == {"week1", "notes", "pdf", "mat101"}


def test_score_counts_distinct_query_tokens():
    record = DocumentRecord(
        content_hash="h", storage_key="k", original_name="mat101 mat101.pdf",
        description="", sender_id="s",
    )
    assert score(["mat101", "mat101", "week1"], record) == 1


@pytest.mark.asyncio
async def test_clear_winner_is_single_match(engine, docstore, blobstore):
    first = _store(docstore, blobstore, "week1 notes.pdf", "MAT101")
    _store(docstore, blobstore, "syllabus.docx", "MAT101")

    result = await engine.search("send mat101 week1")
    assert isinstance(result, SingleMatch)
    assert result.document.id == first.id
    assert result.score == 2


@pytest.mark.asyncio
async def test_ties_are_ambiguous_in_store_order(engine, docstore, blobstore):
    _store(docstore, blobstore, "intro.pdf", "PHY")
    a = _store(docstore, blobstore, "week1.pdf", "MAT101")
    b = _store(docstore, blobstore, "week1 slides.pdf", "MAT101")

    result = await engine.search("mat101 week1")
    assert isinstance(result, Ambiguous)
    assert [c.id for c in result.candidates] == [a.id, b.id]
    assert result.score == 2


@pytest.mark.asyncio
async def test_lower_ranked_documents_are_not_candidates(engine, docstore, blobstore):
    _store(docstore, blobstore, "a.pdf", "MAT101 week1")
    _store(docstore, blobstore, "b.pdf", "MAT101 week1")
    _store(docstore, blobstore, "c.pdf", "MAT101")

    result = await engine.search("mat101 week1")
    assert isinstance(result, Ambiguous)
    assert len(result.candidates) == 2


@pytest.mark.asyncio
async def test_empty_query_is_no_match(engine, docstore, blobstore):
    _store(docstore, blobstore, "week1.pdf", "MAT101")
    result = await engine.search("  -- ")
    assert result == NoMatch(corpus_size=1)


@pytest.mark.asyncio
async def test_no_overlap_is_no_match(engine, docstore, blobstore):
    _store(docstore, blobstore, "week1.pdf", "MAT101")
    assert await engine.search("chemistry") == NoMatch(corpus_size=1)


@pytest.mark.asyncio
async def test_empty_corpus(engine):
    assert await engine.search("mat101") == NoMatch(corpus_size=0)


@pytest.mark.asyncio
async def test_fetch_by_record(engine, docstore, blobstore):
    record = _store(docstore, blobstore, "week1.pdf", "MAT101", data=b"%PDF")
    assert await engine.fetch_by_record(record) == b"%PDF"


@pytest.mark.asyncio
async def test_fetch_missing_blob(engine, docstore, blobstore):
    record = _store(docstore, blobstore, "week1.pdf", "MAT101")
    blobstore.delete(record.storage_key)
    with pytest.raises(NotFound):
        await engine.fetch_by_record(record)
