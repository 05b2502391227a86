"""
Key-value storage for saved packing lists.

Each browser session owns one namespace holding two string entries
(the serialized list and the trip snapshot). Two backends:
- InMemoryStorage: process-local, with a byte quota like browser local storage.
- FirestoreStorage: one document per session in a Firestore collection,
  one field per key.

Backends raise StorageError for anything that prevents a read or write.
"""

import logging
from typing import Dict, Optional, Protocol

from firebase_admin import firestore
from google.api_core import exceptions as gapi_exceptions

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Storage is unavailable or rejected the operation."""


class StorageQuotaExceededError(StorageError):
    """Writing the value would exceed the namespace quota."""


class KeyValueStorage(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class InMemoryStorage:
    def __init__(self, quota_bytes: Optional[int] = None):
        self.quota_bytes = quota_bytes
        self._items: Dict[str, str] = {}

    def _size_with(self, key: str, value: str) -> int:
        items = dict(self._items)
        items[key] = value
        return sum(len(k.encode("utf-8")) + len(v.encode("utf-8")) for k, v in items.items())

    def get(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None and self._size_with(key, value) > self.quota_bytes:
            raise StorageQuotaExceededError(f"Storing '{key}' exceeds quota of {self.quota_bytes} bytes")
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._items.pop(key, None)


class MemoryStorageRegistry:
    """Hands out one InMemoryStorage per session so saved lists outlive the session's controller."""

    def __init__(self, quota_bytes: Optional[int] = None):
        self.quota_bytes = quota_bytes
        self._namespaces: Dict[str, InMemoryStorage] = {}

    def for_session(self, session_id: str) -> InMemoryStorage:
        if session_id not in self._namespaces:
            self._namespaces[session_id] = InMemoryStorage(self.quota_bytes)
        return self._namespaces[session_id]

    def release(self, session_id: str) -> None:
        """Drop the namespace of an ended session unless it still holds a saved list."""
        storage = self._namespaces.get(session_id)
        if storage is not None and not storage._items:
            del self._namespaces[session_id]


class FirestoreStorage:
    def __init__(self, db: firestore.Client, session_id: str, collection: str = "packing_storage"):
        self.db = db
        self.session_id = session_id
        self.collection = collection

    def _doc(self):
        return self.db.collection(self.collection).document(self.session_id)

    def get(self, key: str) -> Optional[str]:
        try:
            snap = self._doc().get()
        except gapi_exceptions.GoogleAPIError as e:
            logger.error(f"Failed to read '{key}' for session {self.session_id}: {e}")
            raise StorageError(str(e)) from e
        if not snap.exists:
            return None
        return (snap.to_dict() or {}).get(key)

    def set(self, key: str, value: str) -> None:
        try:
            self._doc().set({key: value, "updatedAt": firestore.SERVER_TIMESTAMP}, merge=True)
        except gapi_exceptions.ResourceExhausted as e:
            logger.error(f"Quota exceeded writing '{key}' for session {self.session_id}: {e}")
            raise StorageQuotaExceededError(str(e)) from e
        except gapi_exceptions.GoogleAPIError as e:
            logger.error(f"Failed to write '{key}' for session {self.session_id}: {e}")
            raise StorageError(str(e)) from e

    def remove(self, key: str) -> None:
        try:
            self._doc().set({key: firestore.DELETE_FIELD}, merge=True)
        except gapi_exceptions.GoogleAPIError as e:
            logger.error(f"Failed to remove '{key}' for session {self.session_id}: {e}")
            raise StorageError(str(e)) from e
