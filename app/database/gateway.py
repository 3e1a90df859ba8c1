# file: database/gateway.py

import abc
import itertools
import secrets
import string
from datetime import datetime, timezone
from typing import Any, Dict, List

from google.cloud.firestore import SERVER_TIMESTAMP

from app.models.weather_notification import StoredDocument

_ID_ALPHABET = string.ascii_letters + string.digits


class StoreError(Exception):
    """Any failure reported by the document store (transport, permission, missing id)."""


class NotificationGateway(abc.ABC):
    """
    The collection of notification documents.
    Every call is awaited by the caller and any failure is raised as StoreError.
    """

    @abc.abstractmethod
    async def list_documents(self) -> List[StoredDocument]:
        """All documents, newest createdAt first."""

    @abc.abstractmethod
    async def insert(self, fields: Dict[str, Any]) -> str:
        """Stores a new document and returns its generated id."""

    @abc.abstractmethod
    async def delete_by_id(self, document_id: str) -> None:
        """Removes a document; fails if it does not exist."""


class InMemoryGateway(NotificationGateway):
    """Process-local collection used for development and tests."""

    def __init__(self):
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._order: Dict[str, int] = {}
        self._counter = itertools.count()

    @staticmethod
    def _store_value(value: Any) -> Any:
        if value is SERVER_TIMESTAMP:
            return datetime.now(timezone.utc)
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    async def list_documents(self) -> List[StoredDocument]:
        def sort_key(document_id: str):
            created_at = self._documents[document_id].get("createdAt")
            timestamp = created_at.timestamp() if isinstance(created_at, datetime) else 0.0
            return timestamp, self._order[document_id]

        ordered = sorted(self._documents, key=sort_key, reverse=True)
        return [StoredDocument(id=doc_id, data=dict(self._documents[doc_id])) for doc_id in ordered]

    async def insert(self, fields: Dict[str, Any]) -> str:
        document_id = "".join(secrets.choice(_ID_ALPHABET) for _ in range(20))
        self._documents[document_id] = {key: self._store_value(value) for key, value in fields.items()}
        self._order[document_id] = next(self._counter)
        return document_id

    async def delete_by_id(self, document_id: str) -> None:
        if document_id not in self._documents:
            raise StoreError(f"No document to delete: {document_id}")
        del self._documents[document_id]
        del self._order[document_id]
