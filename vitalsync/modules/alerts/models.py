from datetime import datetime, timezone

from beanie import Document, Indexed
from pydantic import Field
from pymongo import IndexModel

from vitalsync.modules.vitals.models import SeverityTier


class Alert(Document):
    """Persisted alert. Only resolution and notification flags change after insert."""

    patient_id: Indexed(str)  # type: ignore
    message: str
    level: SeverityTier
    resolved: bool = False
    notified_email: bool = False
    notified_sms: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "alerts"
        indexes = [
            IndexModel([("created_at", -1)]),
            IndexModel([("resolved", 1), ("created_at", -1)]),
        ]
