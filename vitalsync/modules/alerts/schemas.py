from datetime import date, datetime

from pydantic import Field

from vitalsync.modules.alerts.deriver import AlertEvent
from vitalsync.modules.vitals.models import SeverityTier
from vitalsync.modules.vitals.schemas import VitalReadingOut
from vitalsync.shared.schemas import CamelModel


class AlertRecord(CamelModel):
    """Persisted alert as returned to the admin dashboard."""

    id: str
    patient_id: str
    message: str
    level: SeverityTier
    resolved: bool = False
    notified_email: bool = False
    notified_sms: bool = False
    created_at: datetime


class AlertResolveRequest(CamelModel):
    resolved: bool = Field(default=True, description="New resolution state")


class DerivedAlertOut(CamelModel):
    id: str
    patient_id: str
    patient_name: str
    type: str
    message: str
    level: SeverityTier
    timestamp: datetime
    resolved: bool = False

    @classmethod
    def from_event(cls, event: AlertEvent) -> "DerivedAlertOut":
        return cls(
            id=event.id,
            patient_id=event.patient_id,
            patient_name=event.patient_name,
            type=event.type,
            message=event.message,
            level=event.level,
            timestamp=event.timestamp,
            resolved=event.resolved,
        )


class RosterPatientOut(CamelModel):
    id: str
    name: str
    age: int
    gender: str
    room: str
    admitted_date: date
    status: SeverityTier
    vitals: VitalReadingOut


class AlertOverview(CamelModel):
    patients: list[RosterPatientOut]
    alerts: list[DerivedAlertOut]
    counts: dict[str, int]
