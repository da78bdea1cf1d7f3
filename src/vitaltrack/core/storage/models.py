"""Data models for the local health store.

Field names in the serialized form follow the on-device JSON layout
(``userId``, ``profilePhoto``, ``waterReminderTime`` ...), so a collection
written by one client can be read by another.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import date
from enum import Enum
from typing import Any


class MetricKind(str, Enum):
    """The fixed set of trackable daily metrics."""

    STEPS = "steps"
    WATER = "water"
    SLEEP = "sleep"
    MEALS = "meals"  # calories
    HEART_RATE = "heartRate"
    MOOD = "mood"  # 1-5 scale


@dataclass
class Account:
    """A registered user: credentials plus profile fields.

    ``password`` is kept as the plaintext string the user chose. Hashing is
    a product decision that has not been made yet.
    """

    id: str
    name: str
    email: str
    password: str
    age: int | None = None
    gender: str | None = None
    height: float | None = None  # cm
    weight: float | None = None  # kg
    profile_photo: str | None = None  # opaque URI

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "password": self.password,
        }
        optional = {
            "age": self.age,
            "gender": self.gender,
            "height": self.height,
            "weight": self.weight,
            "profilePhoto": self.profile_photo,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data

    def public_dict(self) -> dict[str, Any]:
        """Serialized form without the credential secret."""
        data = self.to_dict()
        data.pop("password", None)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Account:
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            email=data.get("email", ""),
            password=data.get("password", ""),
            age=data.get("age"),
            gender=data.get("gender"),
            height=data.get("height"),
            weight=data.get("weight"),
            profile_photo=data.get("profilePhoto"),
        )


# Fields a profile update may replace (everything but the identifier)
PROFILE_FIELDS = frozenset(f.name for f in fields(Account)) - {"id"}


@dataclass
class HealthRecord:
    """One metric observation for one account, one kind, one calendar day."""

    id: str
    user_id: str
    kind: MetricKind
    value: float
    day: date
    timestamp: str  # ISO 8601 creation time, ordering/debugging only

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "type": self.kind.value,
            "value": self.value,
            "date": self.day.isoformat(),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HealthRecord:
        """Parse a stored record.

        Raises:
            KeyError, ValueError: If the stored row is malformed.
            TypeError: If the stored value is not a number.
        """
        value = data["value"]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"Record value must be a number, got {type(value).__name__}")
        return cls(
            id=str(data["id"]),
            user_id=str(data["userId"]),
            kind=MetricKind(data["type"]),
            value=value,
            day=date.fromisoformat(data["date"]),
            timestamp=str(data.get("timestamp", "")),
        )

    def matches(self, user_id: str, kind: MetricKind, day: date) -> bool:
        return self.user_id == user_id and self.kind == kind and self.day == day


@dataclass
class NotificationPreferences:
    """Daily reminder toggles and their HH:MM times (one per install)."""

    water_reminders: bool = True
    sleep_reminders: bool = True
    exercise_reminders: bool = True
    meal_reminders: bool = False
    water_reminder_time: str = "10:00"
    sleep_reminder_time: str = "22:00"
    exercise_reminder_time: str = "18:00"
    meal_reminder_time: str = "12:00"

    @classmethod
    def disabled(cls) -> NotificationPreferences:
        """All reminders off; used when stored settings cannot be read."""
        return cls(
            water_reminders=False,
            sleep_reminders=False,
            exercise_reminders=False,
            meal_reminders=False,
        )

    def to_dict(self) -> dict[str, Any]:
        return {_camel(k): v for k, v in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NotificationPreferences:
        defaults = asdict(cls())
        values = {name: data.get(_camel(name), default) for name, default in defaults.items()}
        return cls(**values)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)
