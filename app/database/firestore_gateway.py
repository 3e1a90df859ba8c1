# file: database/firestore_gateway.py

import logging
from typing import Any, Dict, List

import firebase_admin
from firebase_admin import credentials, firestore_async
from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as google_auth_exceptions
from google.cloud import firestore

from app.database.gateway import NotificationGateway, StoreError
from app.models.weather_notification import StoredDocument

logger = logging.getLogger(__name__)

# Credential refresh and transport failures come from google-auth, not api_core.
STORE_FAILURES = (google_exceptions.GoogleAPIError, google_auth_exceptions.GoogleAuthError)


def init_firebase(credentials_path: str) -> None:
    # Singleton pattern: the default app may already exist in this process
    if firebase_admin._apps:
        logger.info("Firebase Admin SDK already initialized.")
        return
    cred = credentials.Certificate(credentials_path)
    firebase_admin.initialize_app(cred)
    logger.info("Firebase Admin SDK initialized successfully.")


class FirestoreGateway(NotificationGateway):
    def __init__(self, collection_name: str, client=None):
        self._client = client if client is not None else firestore_async.client()
        self._collection = self._client.collection(collection_name)

    async def list_documents(self) -> List[StoredDocument]:
        query = self._collection.order_by("createdAt", direction=firestore.Query.DESCENDING)
        try:
            snapshots = await query.get()
        except STORE_FAILURES as e:
            raise StoreError(str(e)) from e
        return [StoredDocument(id=snap.id, data=snap.to_dict() or {}) for snap in snapshots]

    async def insert(self, fields: Dict[str, Any]) -> str:
        try:
            _, document_ref = await self._collection.add(fields)
        except STORE_FAILURES as e:
            raise StoreError(str(e)) from e
        logger.info(f"Stored notification document {document_ref.id}")
        return document_ref.id

    async def delete_by_id(self, document_id: str) -> None:
        # Firestore deletes are idempotent; the precondition makes a missing id fail.
        option = self._client.write_option(exists=True)
        try:
            await self._collection.document(document_id).delete(option=option)
        except STORE_FAILURES as e:
            raise StoreError(str(e)) from e
        logger.info(f"Deleted notification document {document_id}")
