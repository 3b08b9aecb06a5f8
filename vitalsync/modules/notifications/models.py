from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from beanie import Document
from pydantic import Field
from pymongo import IndexModel


class Channel(str, Enum):
    EMAIL = "email"
    SMS = "sms"


class OutcomeReason(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    NOT_CONFIGURED = "not_configured"


class DispatchState(str, Enum):
    RECEIVED = "received"
    PERSISTED = "persisted"
    RECIPIENTS_RESOLVED = "recipients_resolved"
    EMAIL_ATTEMPTED = "email_attempted"
    SMS_ATTEMPTED = "sms_attempted"
    OUTCOME_RECORDED = "outcome_recorded"


@dataclass(frozen=True)
class NotificationOutcome:
    """Result of one delivery attempt on one channel for one recipient."""

    channel: Channel
    recipient: str
    success: bool
    reason: OutcomeReason
    detail: dict[str, Any] = field(default_factory=dict)


class AuditLog(Document):
    user_id: str
    action: str
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "audit_logs"
        indexes = [IndexModel([("user_id", 1), ("created_at", -1)])]
