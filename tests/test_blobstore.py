"""Tests for lecturebot.stores.blobstore."""

from __future__ import annotations

import pytest

from lecturebot.errors import NotFound, StorageFailed


def test_put_and_get(blobstore):
    key = blobstore.put("a.pdf", b"%PDF-1.4", "application/pdf")
    assert key == "a.pdf"
    assert blobstore.get("a.pdf") == b"%PDF-1.4"
    assert blobstore.exists("a.pdf")


def test_put_never_overwrites(blobstore):
    blobstore.put("a.pdf", b"first")
    with pytest.raises(StorageFailed):
        blobstore.put("a.pdf", b"second")
    assert blobstore.get("a.pdf") == b"first"


def test_get_missing_raises_not_found(blobstore):
    with pytest.raises(NotFound):
        blobstore.get("missing.pdf")


@pytest.mark.parametrize("key", ["", "..", "sub/a.pdf", "../escape.pdf"])
def test_rejects_non_flat_keys(blobstore, key):
    with pytest.raises(StorageFailed):
        blobstore.put(key, b"x")


def test_delete(blobstore):
    blobstore.put("a.pdf", b"x")
    blobstore.delete("a.pdf")
    assert not blobstore.exists("a.pdf")
    blobstore.delete("a.pdf")
