# file: database/connection.py

import os
import logging
from typing import Optional
from dotenv import load_dotenv

from app.database.gateway import NotificationGateway, InMemoryGateway
from app.services.notification_sync import NotificationSyncController

load_dotenv()

STORE_BACKEND = os.getenv("STORE_BACKEND", "firestore")
FIREBASE_CREDENTIALS = os.getenv("FIREBASE_CREDENTIALS", "serviceAccountKey.json")
NOTIFICATIONS_COLLECTION = os.getenv("NOTIFICATIONS_COLLECTION", "weatherNotifications")
STATUS_HISTORY = int(os.getenv("STATUS_HISTORY", "20"))

logger = logging.getLogger(__name__)

_controller: Optional[NotificationSyncController] = None


def create_gateway(backend: str = STORE_BACKEND) -> NotificationGateway:
    if backend == "memory":
        logger.info("Using in-memory notification store.")
        return InMemoryGateway()
    if backend == "firestore":
        # Imported here so the memory backend runs without Firebase credentials
        from app.database.firestore_gateway import FirestoreGateway, init_firebase

        init_firebase(FIREBASE_CREDENTIALS)
        logger.info(f"Using Firestore collection '{NOTIFICATIONS_COLLECTION}'.")
        return FirestoreGateway(NOTIFICATIONS_COLLECTION)
    raise ValueError(f"Unknown STORE_BACKEND: {backend}")


def get_sync_controller() -> NotificationSyncController:
    """Shared controller for the admin screen; created on first use."""
    global _controller
    if _controller is None:
        _controller = NotificationSyncController(create_gateway(), history=STATUS_HISTORY)
    return _controller
