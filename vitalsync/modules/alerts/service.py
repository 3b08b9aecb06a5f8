import random
from datetime import datetime, timezone

from vitalsync.modules.alerts.deriver import derive_alerts, summarize_tiers
from vitalsync.modules.alerts.schemas import (
    AlertOverview,
    DerivedAlertOut,
    RosterPatientOut,
)
from vitalsync.modules.alerts.store import MongoAlertStore
from vitalsync.modules.vitals.generator import SyntheticSignalGenerator
from vitalsync.modules.vitals.roster import generate_roster
from vitalsync.modules.vitals.schemas import VitalReadingOut
from vitalsync.modules.vitals.thresholds import ThresholdTable

alert_store = MongoAlertStore()


def get_alert_store() -> MongoAlertStore:
    return alert_store


def build_overview(
    generator: SyntheticSignalGenerator,
    thresholds: ThresholdTable,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> AlertOverview:
    """Admin ward overview: simulated roster, the alerts it raises and tier counts."""
    now = now or datetime.now(timezone.utc)
    roster = generate_roster(generator, thresholds, now=now)
    alerts = derive_alerts(
        {patient.snapshot.patient_id: patient.snapshot for patient in roster},
        thresholds,
        rng=rng or generator.rng,
        now=now,
    )
    return AlertOverview(
        patients=[
            RosterPatientOut(
                id=patient.snapshot.patient_id,
                name=patient.snapshot.name,
                age=patient.age,
                gender=patient.gender,
                room=patient.snapshot.room,
                admitted_date=patient.admitted_date,
                status=patient.status,
                vitals=VitalReadingOut.from_reading(patient.snapshot.reading),
            )
            for patient in roster
        ],
        alerts=[DerivedAlertOut.from_event(alert) for alert in alerts],
        counts=summarize_tiers(patient.status for patient in roster),
    )
