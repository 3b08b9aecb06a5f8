from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class MotionStatus(str, Enum):
    RESTING = "resting"
    ACTIVE = "active"
    FALL_DETECTED = "fall_detected"


class SeverityTier(str, Enum):
    """Triage tier of a reading. Ordered: critical > warning > normal."""

    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _TIER_RANKS[self.value]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SeverityTier):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, SeverityTier):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, SeverityTier):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, SeverityTier):
            return NotImplemented
        return self.rank >= other.rank


_TIER_RANKS = {"normal": 0, "warning": 1, "critical": 2}


@dataclass(frozen=True)
class VitalReading:
    """One timestamped snapshot of a patient's monitored signals."""

    heart_rate: float
    spo2: float
    temperature: float
    motion_status: MotionStatus = MotionStatus.RESTING
    ecg_data: tuple[float, ...] = ()
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class HistoryPoint:
    time: datetime
    heart_rate: float
    spo2: float
    temperature: float


@dataclass(frozen=True)
class PatientSnapshot:
    """A patient's identity for display plus their current reading."""

    patient_id: str
    name: str
    room: str
    reading: VitalReading


@dataclass(frozen=True)
class VitalStatuses:
    overall: SeverityTier
    heart_rate: SeverityTier
    spo2: SeverityTier
    temperature: SeverityTier
    motion: SeverityTier
