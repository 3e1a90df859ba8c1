# file: models/weather_notification.py

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from enum import Enum

from google.cloud.firestore import SERVER_TIMESTAMP

EPOCH = datetime(1970, 1, 1)


class NotificationType(str, Enum):
    WARNING = "warning"
    INFO = "info"


class StoredDocument(BaseModel):
    """A document as returned by the store: its identifier plus raw fields."""
    id: str
    data: Dict[str, Any] = Field(default_factory=dict)


class WeatherNotification(BaseModel):
    id: Optional[str] = None
    title: str
    description: str
    date: datetime
    type: NotificationType

    model_config = ConfigDict(frozen=True)


def _strip_tz(value: datetime) -> datetime:
    # Store timestamps come back as aware UTC datetimes.
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _to_calendar(value: Any) -> Optional[datetime]:
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    return _strip_tz(value)


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def to_document(notification: WeatherNotification) -> Dict[str, Any]:
    """
    Builds the field mapping written to the store.
    Field contents are not validated here; that is the caller's job.
    """
    return {
        "title": notification.title,
        "description": notification.description,
        "date": notification.date,
        "type": "warning" if notification.type == NotificationType.WARNING else "info",
        "createdAt": SERVER_TIMESTAMP,
    }


def from_document(document: StoredDocument) -> WeatherNotification:
    """
    Decodes a stored document. Missing text fields become empty strings,
    other values are converted with str(), and any type other than the
    literal "warning" becomes info.
    """
    data = document.data or {}
    date = _to_calendar(data.get("date")) or _to_calendar(data.get("createdAt")) or EPOCH
    return WeatherNotification(
        id=document.id,
        title=_to_text(data.get("title")),
        description=_to_text(data.get("description")),
        date=date,
        type=NotificationType.WARNING if data.get("type") == "warning" else NotificationType.INFO,
    )


def hours_since(date: datetime, now: Optional[datetime] = None) -> int:
    if now is None:
        now = datetime.now(timezone.utc).replace(tzinfo=None)
    return int((now - date).total_seconds() / 3600)


# --- API schemas ---

class NotificationCreate(BaseModel):
    # Defaults match a freshly reset admin form.
    title: str = ""
    description: str = ""
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc).replace(tzinfo=None))
    type: NotificationType = NotificationType.WARNING


class NotificationResponse(BaseModel):
    id: Optional[str] = None
    title: str
    description: str
    date: datetime
    type: NotificationType
    hours_ago: int
    date_label: str

    @classmethod
    def from_notification(cls, notification: WeatherNotification, now: Optional[datetime] = None):
        date = _strip_tz(notification.date)
        return cls(
            id=notification.id,
            title=notification.title,
            description=notification.description,
            date=notification.date,
            type=notification.type,
            hours_ago=hours_since(date, now),
            date_label=date.strftime("%Y-%m-%d"),
        )


class StatusLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class StatusMessage(BaseModel):
    level: StatusLevel
    code: str
    message: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    # Statuses reported by follow-up steps of the same operation
    related: List["StatusMessage"] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.level == StatusLevel.SUCCESS


class BoardState(BaseModel):
    notifications: List[NotificationResponse]
    loading: bool
    creating: bool
    count: int


class OperationResult(BaseModel):
    status: Optional[StatusMessage] = None
    state: BoardState
