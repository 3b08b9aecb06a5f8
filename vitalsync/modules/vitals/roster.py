from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from vitalsync.modules.vitals.classifier import classify
from vitalsync.modules.vitals.generator import SyntheticSignalGenerator
from vitalsync.modules.vitals.models import PatientSnapshot, SeverityTier
from vitalsync.modules.vitals.thresholds import DEFAULT_THRESHOLDS, ThresholdTable

# Demo ward shown on the admin overview until real patients stream vitals.
WARD_PATIENTS: list[tuple[str, int, str]] = [
    ("Rajesh Kumar", 58, "M"),
    ("Priya Sharma", 34, "F"),
    ("Arun Patel", 72, "M"),
    ("Meena Devi", 45, "F"),
    ("Vikram Singh", 63, "M"),
    ("Lakshmi Iyer", 51, "F"),
    ("Suresh Reddy", 67, "M"),
    ("Ananya Das", 29, "F"),
]


@dataclass(frozen=True)
class RosterPatient:
    snapshot: PatientSnapshot
    age: int
    gender: str
    admitted_date: date
    status: SeverityTier


def generate_roster(
    generator: SyntheticSignalGenerator,
    thresholds: ThresholdTable = DEFAULT_THRESHOLDS,
    now: datetime | None = None,
) -> list[RosterPatient]:
    """Simulated ward with every third patient biased towards abnormal vitals."""
    now = now or datetime.now(timezone.utc)
    rng = generator.rng
    roster: list[RosterPatient] = []
    for index, (name, age, gender) in enumerate(WARD_PATIENTS):
        reading = generator.generate_reading(bias_abnormal=index % 3 == 0)
        admitted = now - timedelta(days=rng.uniform(1, 8))
        roster.append(
            RosterPatient(
                snapshot=PatientSnapshot(
                    patient_id=f"P-{index + 1:03d}",
                    name=name,
                    room=str(101 + index),
                    reading=reading,
                ),
                age=age,
                gender=gender,
                admitted_date=admitted.date(),
                status=classify(reading, thresholds),
            )
        )
    return roster
