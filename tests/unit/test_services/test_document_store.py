"""Tests for the SQLAlchemy document store."""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from conftest import make_document

from sentinel.models.document import StoredDocument
from sentinel.services.document_store import SqlAlchemyDocumentStore
from sentinel.utils.exceptions import StorageError


def stored(document_id: str, user_id: int, score: float = 0.9) -> StoredDocument:
    document = make_document(document_id)
    return StoredDocument(
        **document.model_dump(),
        summary="One. Two. Three.",
        relevance_score=score,
        content_hash="a" * 64,
        collected_for_user_id=user_id,
        summary_model="summary-model",
    )


class TestUsersAndTopics:
    def test_active_users_in_id_order(self, store):
        alice = store.add_user("alice")
        store.add_user("bob", is_active=False)
        carol = store.add_user("carol")

        users = store.list_active_users()

        assert [u.id for u in users] == [alice.id, carol.id]
        assert [u.username for u in users] == ["alice", "carol"]

    def test_duplicate_user_rejected(self, store):
        store.add_user("alice")

        with pytest.raises(StorageError, match="already exists"):
            store.add_user("alice")

    def test_enabled_topics_only(self, store):
        user = store.add_user("alice")
        store.add_topic(user.id, "fuzzing", "all:fuzzing")
        store.add_topic(user.id, "old", "all:old", enabled=False)

        topics = store.list_enabled_topics(user.id)

        assert [t.name for t in topics] == ["fuzzing"]
        assert topics[0].query == "all:fuzzing"

    def test_topic_for_unknown_user_rejected(self, store):
        with pytest.raises(StorageError, match="Unknown user"):
            store.add_topic(999, "x", "all:x")

    def test_list_users_failure_raises_storage_error(self, store):
        with patch.object(store, "_sessionmaker", side_effect=OperationalError("SELECT", {}, Exception("down"))):
            with pytest.raises(StorageError, match="Failed to list users"):
                store.list_active_users()


class TestDocuments:
    def test_insert_and_fetch(self, store):
        user = store.add_user("alice")

        store.insert_document(stored("2401.00001", user.id))

        assert store.document_exists("2401.00001")
        assert not store.document_exists("2401.99999")
        fetched = store.get_document("2401.00001")
        assert fetched.title == "Paper 2401.00001"
        assert fetched.authors == ["A. Author"]
        assert fetched.categories == ["cs.LG"]
        assert fetched.summary == "One. Two. Three."
        assert fetched.relevance_score == pytest.approx(0.9)
        assert fetched.collected_for_user_id == user.id
        assert fetched.summary_model == "summary-model"
        assert store.count_documents() == 1

    def test_insert_links_collecting_user(self, store):
        user = store.add_user("alice")

        store.insert_document(stored("2401.00001", user.id))

        assert store.list_user_document_ids(user.id) == ["2401.00001"]

    def test_duplicate_natural_key_rejected(self, store):
        user = store.add_user("alice")
        store.insert_document(stored("2401.00001", user.id))

        with pytest.raises(StorageError, match="2401.00001"):
            store.insert_document(stored("2401.00001", user.id))

        assert store.count_documents() == 1

    def test_ensure_user_status_is_idempotent(self, store):
        alice = store.add_user("alice")
        bob = store.add_user("bob")
        store.insert_document(stored("2401.00001", alice.id))

        assert store.ensure_user_status(bob.id, "2401.00001") is True
        assert store.ensure_user_status(bob.id, "2401.00001") is False
        assert store.ensure_user_status(alice.id, "2401.00001") is False

        assert store.list_user_document_ids(bob.id) == ["2401.00001"]

    def test_ensure_user_status_unknown_document(self, store):
        user = store.add_user("alice")

        with pytest.raises(StorageError, match="Unknown document"):
            store.ensure_user_status(user.id, "2401.00404")

    def test_get_missing_document(self, store):
        assert store.get_document("2401.00404") is None


def test_creates_sqlite_directory(tmp_path):
    db_path = tmp_path / "nested" / "dir" / "sentinel.db"

    store = SqlAlchemyDocumentStore(f"sqlite:///{db_path}")
    store.close()

    assert db_path.parent.exists()
