"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from lecturebot.bot.session import SessionStore
from lecturebot.ingest.pipeline import IngestionPipeline
from lecturebot.retrieval.engine import RetrievalEngine
from lecturebot.stores.blobstore import BlobStore
from lecturebot.stores.docstore import DocStore

# Ensure tests run from the project root so config.default.yaml is found
PROJECT_ROOT = Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def _set_project_root(monkeypatch, tmp_path):
    """Point LECTUREBOT_ROOT at the project root and use tmp_path for data."""
    monkeypatch.setenv("LECTUREBOT_ROOT", str(PROJECT_ROOT))
    monkeypatch.setenv("LECTUREBOT_DOCSTORE__PATH", str(tmp_path / "docstore.db"))
    monkeypatch.setenv("LECTUREBOT_BLOBSTORE__PATH", str(tmp_path / "blobs"))
    monkeypatch.setenv("LECTUREBOT_CONSOLE__DOWNLOADS_PATH", str(tmp_path / "downloads"))

    # Reset settings cache between tests
    from lecturebot.config import reset_settings
    reset_settings()


@pytest.fixture
def docstore(tmp_path):
    db = DocStore(str(tmp_path / "test.db"))
    yield db
    db.close()


@pytest.fixture
def blobstore(tmp_path):
    return BlobStore(str(tmp_path / "test-blobs"))


@pytest.fixture
def sessions():
    return SessionStore()


@pytest.fixture
def pipeline(sessions, docstore, blobstore):
    return IngestionPipeline(sessions, docstore, blobstore)


@pytest.fixture
def engine(docstore, blobstore):
    return RetrievalEngine(docstore, blobstore)
