# file: controllers/weather_notifications.py

from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from app.database.connection import get_sync_controller
from app.models.weather_notification import (
    BoardState,
    NotificationCreate,
    NotificationResponse,
    OperationResult,
    StatusMessage,
)
from app.services.notification_sync import NotificationSyncController

router = APIRouter()

# Error codes reported by the controller and the HTTP status each maps to.
ERROR_STATUS_CODES = {
    "invalid_input": status.HTTP_400_BAD_REQUEST,
    "missing_id": status.HTTP_400_BAD_REQUEST,
    "busy": status.HTTP_409_CONFLICT,
    "load_failed": status.HTTP_502_BAD_GATEWAY,
    "create_failed": status.HTTP_502_BAD_GATEWAY,
    "delete_failed": status.HTTP_502_BAD_GATEWAY,
}


def build_state(controller: NotificationSyncController) -> BoardState:
    notifications = [NotificationResponse.from_notification(n) for n in controller.notifications]
    return BoardState(
        notifications=notifications,
        loading=controller.loading,
        creating=controller.creating,
        count=len(notifications),
    )


def _raise_for_status(result: StatusMessage) -> None:
    if result is not None and not result.ok:
        raise HTTPException(
            status_code=ERROR_STATUS_CODES.get(result.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
            detail=result.message,
        )


@router.get("/", response_model=BoardState)
async def get_notifications(controller: NotificationSyncController = Depends(get_sync_controller)):
    """
    Returns the current list (newest first) along with the loading flags.
    """
    return build_state(controller)


@router.post("/refresh", response_model=OperationResult)
async def refresh_notifications(controller: NotificationSyncController = Depends(get_sync_controller)):
    result = await controller.refresh()
    _raise_for_status(result)
    return OperationResult(status=result, state=build_state(controller))


@router.post("/", response_model=OperationResult, status_code=status.HTTP_201_CREATED)
async def create_notification(
        notification: NotificationCreate,
        controller: NotificationSyncController = Depends(get_sync_controller),
):
    """
    Stores a new notification, then re-reads the collection so the
    response carries its assigned id.
    """
    result = await controller.create(
        title=notification.title,
        description=notification.description,
        date=notification.date,
        type=notification.type,
    )
    _raise_for_status(result)
    return OperationResult(status=result, state=build_state(controller))


@router.delete("/at/{index}", response_model=OperationResult)
async def delete_notification_at(
        index: int,
        controller: NotificationSyncController = Depends(get_sync_controller),
):
    try:
        result = await controller.delete_at(index)
    except IndexError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    _raise_for_status(result)
    return OperationResult(status=result, state=build_state(controller))


@router.delete("/{notification_id}", response_model=OperationResult)
async def delete_notification(
        notification_id: str,
        controller: NotificationSyncController = Depends(get_sync_controller),
):
    """
    Deletes by document id. On success the entry is dropped locally without a
    re-fetch; on failure the list is re-read from the store.
    """
    result = await controller.delete(notification_id)
    _raise_for_status(result)
    return OperationResult(status=result, state=build_state(controller))


@router.get("/messages", response_model=List[StatusMessage])
async def get_status_messages(controller: NotificationSyncController = Depends(get_sync_controller)):
    return list(controller.messages)
