"""Rotation Domain Models.

Plain data structures for the registry and the secret store, decoupled from
any client library. Adapters translate SDK / REST payloads into these at the
boundary.
"""
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

TAG_KEY_ID = "keyId"
TAG_END_DATE_TIME = "endDateTime"
TAG_MANAGED_BY = "managedBy"
TAG_PURPOSE = "purpose"
PURPOSE_CLIENT_SECRET = "clientSecret"

_FRACTION = re.compile(r"\.(\d{6})\d+")


def ensure_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_instant(value: str) -> datetime:
    """Parse ISO-8601, accepting a trailing Z and 7-digit fractions (Graph emits both)."""
    value = _FRACTION.sub(r".\1", value.strip())
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(value))


def format_instant(value: datetime) -> str:
    """ISO-8601 with a trailing Z, the shape Graph and the store tags use."""
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


class Credential(BaseModel):
    """Password credential on an application.

    `secret_value` is only ever populated on the object returned from
    credential creation; the registry never returns it again.
    """
    model_config = ConfigDict(frozen=True)

    key_id: str
    display_name: Optional[str] = None
    end_date_time: datetime
    secret_value: Optional[str] = Field(default=None, repr=False)

    @field_validator("end_date_time")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class Application(BaseModel):
    object_id: str
    app_id: str
    display_name: Optional[str] = None
    credentials: List[Credential] = Field(default_factory=list)


class StoredSecretRecord(BaseModel):
    """Latest version of a named record in the secret store."""
    value: Optional[str] = Field(default=None, repr=False)
    tags: Dict[str, str] = Field(default_factory=dict)

    @property
    def active_key_id(self) -> Optional[str]:
        return self.tags.get(TAG_KEY_ID) or None


class RotationConfig(BaseModel):
    """Immutable per-run configuration."""
    model_config = ConfigDict(frozen=True)

    target_app_id: str = Field(..., min_length=1)
    vault_name: str = Field(..., min_length=1)
    secret_name: str = Field(..., min_length=1)
    rotate_days_before: int = Field(default=30, ge=0)
    new_secret_lifetime_days: int = Field(default=180, gt=0)
    automation_prefix: str = Field(default="auto-rotated", min_length=1)
    managed_by: str = "secret-rotator"


class DecisionKind(str, Enum):
    NOOP = "noop"
    BOOTSTRAP = "bootstrap"
    ROTATE = "rotate"


class Decision(BaseModel):
    """Engine output. `reason` and `matched_key_id` are diagnostic only."""
    model_config = ConfigDict(frozen=True)

    kind: DecisionKind
    new_end_date: Optional[datetime] = None
    reason: str = ""
    matched_key_id: Optional[str] = None

    @classmethod
    def noop(cls, reason: str = "", matched_key_id: Optional[str] = None) -> "Decision":
        return cls(kind=DecisionKind.NOOP, reason=reason, matched_key_id=matched_key_id)

    @classmethod
    def bootstrap(cls, new_end_date: datetime, reason: str = "") -> "Decision":
        return cls(kind=DecisionKind.BOOTSTRAP, new_end_date=new_end_date, reason=reason)

    @classmethod
    def rotate(cls, new_end_date: datetime, reason: str = "", matched_key_id: Optional[str] = None) -> "Decision":
        return cls(
            kind=DecisionKind.ROTATE,
            new_end_date=new_end_date,
            reason=reason,
            matched_key_id=matched_key_id
        )

    @property
    def requires_rotation(self) -> bool:
        return self.kind is not DecisionKind.NOOP


class RotationOutcome(BaseModel):
    branch: DecisionKind
    key_id: Optional[str] = None
    end_date_time: Optional[datetime] = None
    tags: Dict[str, str] = Field(default_factory=dict)
    dry_run: bool = False


def build_secret_tags(key_id: str, end_date: datetime, managed_by: str) -> Dict[str, str]:
    """Tag mapping stamped on every store write."""
    return {
        TAG_KEY_ID: key_id,
        TAG_END_DATE_TIME: format_instant(end_date),
        TAG_MANAGED_BY: managed_by,
        TAG_PURPOSE: PURPOSE_CLIENT_SECRET,
    }
