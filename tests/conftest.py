"""Shared fixtures for practice planner tests."""

import random
import uuid

import pytest

from factories import make_players


@pytest.fixture
def rng():
    """Seeded randomness so shuffles are repeatable."""
    return random.Random(1234)


@pytest.fixture
def roster():
    """Thirteen active players."""
    return make_players(13)


class FakeDocumentStore:
    """In-memory stand-in for the document table."""

    def __init__(self):
        self.collections = {}

    def list_documents(self, collection):
        return [dict(doc) for doc in self.collections.get(collection, {}).values()]

    def get_document(self, collection, doc_id):
        doc = self.collections.get(collection, {}).get(doc_id)
        return dict(doc) if doc else None

    def add_document(self, collection, data, doc_id=None):
        doc_id = doc_id or data.get("id") or str(uuid.uuid4())
        doc = {**data, "id": doc_id}
        self.collections.setdefault(collection, {})[doc_id] = doc
        return dict(doc)

    def update_document(self, collection, doc_id, data):
        docs = self.collections.get(collection, {})
        if doc_id not in docs:
            return None
        docs[doc_id] = {**data, "id": doc_id}
        return dict(docs[doc_id])

    def delete_document(self, collection, doc_id):
        return self.collections.get(collection, {}).pop(doc_id, None) is not None


@pytest.fixture
def store(monkeypatch):
    """Replace the database helpers used by the API with an in-memory store."""
    import main

    fake = FakeDocumentStore()
    for name in ("list_documents", "get_document", "add_document", "update_document", "delete_document"):
        monkeypatch.setattr(main, name, getattr(fake, name))
    return fake


@pytest.fixture
def client(store):
    from fastapi.testclient import TestClient
    import main

    return TestClient(main.app)
