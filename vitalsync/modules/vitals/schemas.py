from datetime import datetime, timezone
from typing import Optional

from pydantic import Field, field_validator

from vitalsync.modules.vitals.models import (
    HistoryPoint,
    MotionStatus,
    SeverityTier,
    VitalReading,
    VitalStatuses,
)
from vitalsync.shared.schemas import CamelModel


class VitalReadingOut(CamelModel):
    heart_rate: float
    spo2: float
    temperature: float
    motion_status: MotionStatus
    ecg_data: list[float] = Field(default_factory=list)
    timestamp: datetime

    @classmethod
    def from_reading(cls, reading: VitalReading) -> "VitalReadingOut":
        return cls(
            heart_rate=reading.heart_rate,
            spo2=reading.spo2,
            temperature=reading.temperature,
            motion_status=reading.motion_status,
            ecg_data=list(reading.ecg_data),
            timestamp=reading.timestamp,
        )


class VitalStatusesOut(CamelModel):
    overall: SeverityTier
    heart_rate: SeverityTier
    spo2: SeverityTier
    temperature: SeverityTier
    motion: SeverityTier

    @classmethod
    def from_statuses(cls, statuses: VitalStatuses) -> "VitalStatusesOut":
        return cls(
            overall=statuses.overall,
            heart_rate=statuses.heart_rate,
            spo2=statuses.spo2,
            temperature=statuses.temperature,
            motion=statuses.motion,
        )


class LatestVitals(CamelModel):
    """A reading together with its triage, as shown on the vital cards."""

    patient_id: str
    source: str
    status: SeverityTier
    statuses: VitalStatusesOut
    vitals: VitalReadingOut


class HistoryPointOut(CamelModel):
    time: datetime
    heart_rate: float
    spo2: float
    temperature: float

    @classmethod
    def from_point(cls, point: HistoryPoint) -> "HistoryPointOut":
        return cls(
            time=point.time,
            heart_rate=point.heart_rate,
            spo2=point.spo2,
            temperature=point.temperature,
        )


class WaveformOut(CamelModel):
    length: int
    samples: list[float]


class ClassifyRequest(CamelModel):
    """Ad-hoc triage of a set of values (no persistence)."""

    heart_rate: float
    spo2: float
    temperature: float
    motion_status: MotionStatus = MotionStatus.RESTING

    def to_reading(self) -> VitalReading:
        return VitalReading(
            heart_rate=self.heart_rate,
            spo2=self.spo2,
            temperature=self.temperature,
            motion_status=self.motion_status,
        )


class ClassifyResponse(CamelModel):
    status: SeverityTier
    statuses: VitalStatusesOut


class ReadingIngest(CamelModel):
    """Reading posted by sensor hardware for the live source."""

    heart_rate: float
    spo2: float = Field(ge=0, le=100)
    temperature: float
    motion_status: MotionStatus = MotionStatus.RESTING
    ecg_data: list[float] = Field(default_factory=list)
    timestamp: Optional[datetime] = None

    # Devices without an RTC library send epoch seconds
    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_epoch_timestamp(cls, value: object) -> object:
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value, tz=timezone.utc)
        return value

    def to_reading(self) -> VitalReading:
        timestamp = self.timestamp or datetime.now(timezone.utc)
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return VitalReading(
            heart_rate=self.heart_rate,
            spo2=self.spo2,
            temperature=self.temperature,
            motion_status=self.motion_status,
            ecg_data=tuple(self.ecg_data),
            timestamp=timestamp.astimezone(timezone.utc),
        )


class IngestResult(CamelModel):
    patient_id: str
    status: SeverityTier
    delivered: int
