from unittest.mock import MagicMock

import pytest
from google.api_core import exceptions as gapi_exceptions

from app.services.storage_service import (
    FirestoreStorage,
    InMemoryStorage,
    MemoryStorageRegistry,
    StorageError,
    StorageQuotaExceededError,
)


def test_in_memory_storage_get_set_remove():
    storage = InMemoryStorage()
    assert storage.get("packingList") is None

    storage.set("packingList", "{}")
    assert storage.get("packingList") == "{}"

    storage.remove("packingList")
    storage.remove("packingList")
    assert storage.get("packingList") is None


def test_in_memory_storage_quota():
    storage = InMemoryStorage(quota_bytes=40)
    storage.set("a", "x" * 20)

    with pytest.raises(StorageQuotaExceededError):
        storage.set("b", "y" * 30)
    assert storage.get("b") is None

    # replacing a value only counts the new size
    storage.set("a", "z" * 30)
    assert storage.get("a") == "z" * 30


def test_registry_keeps_namespaces_apart():
    registry = MemoryStorageRegistry()
    registry.for_session("sess_a").set("packingList", "a")

    assert registry.for_session("sess_a").get("packingList") == "a"
    assert registry.for_session("sess_b").get("packingList") is None


def test_registry_releases_only_empty_namespaces():
    registry = MemoryStorageRegistry()
    registry.for_session("sess_a").set("packingList", "a")
    registry.for_session("sess_b")

    registry.release("sess_a")
    registry.release("sess_b")
    registry.release("sess_unknown")

    assert registry.for_session("sess_a").get("packingList") == "a"
    assert "sess_b" not in registry._namespaces


def make_firestore(doc_data=None, exists=True):
    db = MagicMock()
    doc_ref = db.collection.return_value.document.return_value
    snap = doc_ref.get.return_value
    snap.exists = exists
    snap.to_dict.return_value = doc_data
    return db, doc_ref


def test_firestore_storage_reads_field():
    db, _ = make_firestore({"packingList": "{}", "tripDetails": "{}"})
    storage = FirestoreStorage(db, "sess_123")

    assert storage.get("packingList") == "{}"
    assert storage.get("missing") is None
    db.collection.assert_called_with("packing_storage")
    db.collection.return_value.document.assert_called_with("sess_123")


def test_firestore_storage_missing_document():
    db, _ = make_firestore(exists=False)
    assert FirestoreStorage(db, "sess_123").get("packingList") is None


def test_firestore_storage_set_and_remove_merge():
    db, doc_ref = make_firestore()
    storage = FirestoreStorage(db, "sess_123", collection="lists")

    storage.set("packingList", "{}")
    data, = doc_ref.set.call_args.args
    assert data["packingList"] == "{}"
    assert doc_ref.set.call_args.kwargs == {"merge": True}

    storage.remove("packingList")
    data, = doc_ref.set.call_args.args
    assert list(data) == ["packingList"]
    db.collection.assert_called_with("lists")


def test_firestore_storage_wraps_api_errors():
    db, doc_ref = make_firestore()
    storage = FirestoreStorage(db, "sess_123")

    doc_ref.set.side_effect = gapi_exceptions.ResourceExhausted("quota")
    with pytest.raises(StorageQuotaExceededError):
        storage.set("packingList", "{}")

    doc_ref.set.side_effect = gapi_exceptions.ServiceUnavailable("down")
    with pytest.raises(StorageError):
        storage.remove("packingList")

    doc_ref.get.side_effect = gapi_exceptions.ServiceUnavailable("down")
    with pytest.raises(StorageError):
        storage.get("packingList")
