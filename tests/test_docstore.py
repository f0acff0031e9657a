"""Tests for lecturebot.stores.docstore."""

from __future__ import annotations

import pytest

from lecturebot.errors import DuplicateDocument
from lecturebot.models import DocumentRecord


@pytest.fixture
def sample_record():
    return DocumentRecord(
        content_hash="abc123",
        storage_key="1700000000000_ab12cd34_week1.pdf",
        original_name="week1.pdf",
        description="MAT101",
        sender_id="alice@s.whatsapp.net",
    )


def test_insert_assigns_id(docstore, sample_record):
    stored = docstore.insert(sample_record)
    assert stored.id is not None
    assert sample_record.id is None


def test_get_by_hash(docstore, sample_record):
    stored = docstore.insert(sample_record)
    found = docstore.get_by_hash("abc123")
    assert found is not None
    assert found.id == stored.id
    assert found.description == "MAT101"
    assert found.created_at == sample_record.created_at


def test_get_missing(docstore):
    assert docstore.get(42) is None
    assert docstore.get_by_hash("nope") is None


def test_duplicate_hash_rejected(docstore, sample_record):
    docstore.insert(sample_record)
    again = sample_record.model_copy(update={"storage_key": "other.pdf"})
    with pytest.raises(DuplicateDocument):
        docstore.insert(again)
    assert docstore.count() == 1


def test_list_documents_in_insertion_order(docstore, sample_record):
    first = docstore.insert(sample_record)
    second = docstore.insert(
        sample_record.model_copy(update={"content_hash": "def456", "storage_key": "b.pdf"})
    )
    docs = docstore.list_documents()
    assert [d.id for d in docs] == [first.id, second.id]


def test_records_are_immutable(sample_record):
    with pytest.raises(Exception):
        sample_record.description = "changed"
