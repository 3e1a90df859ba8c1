# file: services/notification_sync.py

import logging
from collections import deque
from datetime import datetime
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from app.database.gateway import NotificationGateway, StoreError
from app.models.weather_notification import (
    NotificationType,
    StatusLevel,
    StatusMessage,
    WeatherNotification,
    from_document,
    to_document,
)

logger = logging.getLogger(__name__)


class NotificationSyncController:
    """
    Keeps the admin's list of weather notifications in step with the store.

    `notifications` mirrors the store as of the last successful refresh and is
    only ever replaced as a whole. Refresh responses are tagged with a sequence
    number so a slow, older response cannot overwrite a newer one, and records
    deleted while a refresh was in flight are left out of its result. Deletion
    is keyed on the document id, never on list position.
    """

    def __init__(
            self,
            gateway: NotificationGateway,
            on_status: Optional[Callable[[StatusMessage], None]] = None,
            history: int = 20,
    ):
        self._gateway = gateway
        self._on_status = on_status
        self.notifications: List[WeatherNotification] = []
        self.loading = False
        self.creating = False
        self.messages = deque(maxlen=history)
        self._refresh_seq = 0
        self._refreshes_in_flight = 0
        # document id -> deletion number, kept only while a refresh is in flight
        self._deletions = 0
        self._deleted_ids: Dict[str, int] = {}

    def _report(
            self,
            level: StatusLevel,
            code: str,
            message: str,
            related: Optional[List[StatusMessage]] = None,
    ) -> StatusMessage:
        status = StatusMessage(level=level, code=code, message=message, related=related or [])
        self.messages.append(status)
        if self._on_status is not None:
            self._on_status(status)
        return status

    async def refresh(self) -> Optional[StatusMessage]:
        """Re-reads the whole collection. Returns a status only on failure."""
        self._refresh_seq += 1
        seq = self._refresh_seq
        deletions_seen = self._deletions
        self._refreshes_in_flight += 1
        self.loading = True
        try:
            documents = await self._gateway.list_documents()
            fetched = [from_document(doc) for doc in documents]
        except (StoreError, ValidationError) as e:
            logger.error(f"Error fetching notifications: {e}")
            return self._report(StatusLevel.ERROR, "load_failed", f"Failed to load notifications: {e}")
        finally:
            self._refreshes_in_flight -= 1
            self.loading = self._refreshes_in_flight > 0
            deleted_since = {doc_id for doc_id, mark in self._deleted_ids.items() if mark > deletions_seen}
            if not self.loading:
                self._deleted_ids.clear()

        if seq != self._refresh_seq:
            logger.debug(f"Discarding stale notification list (request {seq}, latest {self._refresh_seq})")
            return None
        self.notifications = [n for n in fetched if n.id not in deleted_since]
        return None

    async def create(
            self,
            title: str,
            description: str,
            date: datetime,
            type: NotificationType = NotificationType.WARNING,
    ) -> StatusMessage:
        if not title or not description:
            return self._report(StatusLevel.ERROR, "invalid_input", "Please fill in all fields")
        if self.creating:
            return self._report(StatusLevel.ERROR, "busy", "A notification is already being added")

        new_notification = WeatherNotification(title=title, description=description, date=date, type=type)
        self.creating = True
        try:
            try:
                await self._gateway.insert(to_document(new_notification))
            except StoreError as e:
                logger.error(f"Error adding notification: {e}")
                return self._report(StatusLevel.ERROR, "create_failed", f"Failed to add notification: {e}")

            # The stored record's id and createdAt are only known after re-reading it.
            reload_status = await self.refresh()
        finally:
            self.creating = False
        return self._report(
            StatusLevel.SUCCESS, "created", "Notification added successfully",
            related=[reload_status] if reload_status else None,
        )

    async def delete(self, notification_id: Optional[str]) -> StatusMessage:
        if not notification_id:
            return self._report(StatusLevel.ERROR, "missing_id", "Cannot delete: Missing document ID")

        try:
            await self._gateway.delete_by_id(notification_id)
        except StoreError as e:
            logger.error(f"Error deleting notification {notification_id}: {e}")
            reload_status = await self.refresh()
            return self._report(
                StatusLevel.ERROR, "delete_failed", f"Failed to delete notification: {e}",
                related=[reload_status] if reload_status else None,
            )

        if self._refreshes_in_flight:
            # Refreshes already running may have read the store before this delete.
            self._deletions += 1
            self._deleted_ids[notification_id] = self._deletions
        self.notifications = [n for n in self.notifications if n.id != notification_id]
        return self._report(StatusLevel.SUCCESS, "deleted", "Notification deleted successfully")

    async def delete_at(self, index: int) -> StatusMessage:
        if index < 0 or index >= len(self.notifications):
            raise IndexError(f"No notification at position {index}")
        return await self.delete(self.notifications[index].id)
