from beanie import PydanticObjectId
from bson import ObjectId

from vitalsync.modules.alerts.models import Alert
from vitalsync.modules.alerts.schemas import AlertRecord
from vitalsync.modules.vitals.models import SeverityTier


def _to_record(alert: Alert) -> AlertRecord:
    return AlertRecord(
        id=str(alert.id),
        patient_id=alert.patient_id,
        message=alert.message,
        level=alert.level,
        resolved=alert.resolved,
        notified_email=alert.notified_email,
        notified_sms=alert.notified_sms,
        created_at=alert.created_at,
    )


class MongoAlertStore:
    """Alert persistence. Alerts are append-only apart from their flags."""

    async def insert(self, patient_id: str, message: str, level: SeverityTier) -> str:
        alert = Alert(patient_id=patient_id, message=message, level=level)
        await alert.insert()
        return str(alert.id)

    async def mark_notified(self, alert_id: str, email_sent: bool, sms_sent: bool) -> None:
        alert = await self._get(alert_id)
        if not alert:
            return
        await alert.set({Alert.notified_email: email_sent, Alert.notified_sms: sms_sent})

    async def set_resolved(self, alert_id: str, resolved: bool) -> AlertRecord | None:
        alert = await self._get(alert_id)
        if not alert:
            return None
        await alert.set({Alert.resolved: resolved})
        return _to_record(alert)

    async def list_alerts(
        self, resolved: bool | None = None, limit: int = 50
    ) -> list[AlertRecord]:
        query = Alert.find_all() if resolved is None else Alert.find(Alert.resolved == resolved)
        alerts = await query.sort("-created_at").limit(limit).to_list()
        return [_to_record(alert) for alert in alerts]

    @staticmethod
    async def _get(alert_id: str) -> Alert | None:
        if not ObjectId.is_valid(alert_id):
            return None
        return await Alert.get(PydanticObjectId(alert_id))
