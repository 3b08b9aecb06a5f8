from __future__ import annotations

import random
import uuid
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Deque, Iterable, Mapping

from vitalsync.modules.vitals.classifier import classify
from vitalsync.modules.vitals.models import (
    MotionStatus,
    PatientSnapshot,
    SeverityTier,
    VitalReading,
)
from vitalsync.modules.vitals.thresholds import DEFAULT_THRESHOLDS, ThresholdTable

# Simulated detection lag, in seconds, by tier.
DETECTION_JITTER_SECONDS = {
    SeverityTier.CRITICAL: 10 * 60,
    SeverityTier.WARNING: 20 * 60,
}
FEED_LIMIT = 10


@dataclass(frozen=True)
class AlertEvent:
    id: str
    patient_id: str
    patient_name: str
    type: str
    message: str
    level: SeverityTier
    timestamp: datetime
    resolved: bool = False


def new_alert_id() -> str:
    return f"A-{uuid.uuid4().hex[:6]}"


def format_measure(value: float) -> str:
    """Render 45.0 as "45" and 112.7 as "112.7"."""
    return f"{value:g}"


def derive_alerts(
    snapshots: Mapping[str, PatientSnapshot],
    thresholds: ThresholdTable = DEFAULT_THRESHOLDS,
    rng: random.Random | None = None,
    now: datetime | None = None,
    jitter: bool = True,
) -> list[AlertEvent]:
    """
    Turn the current reading of every patient into a prioritized alert list.

    Normal readings produce nothing. With ``jitter`` the timestamp is pushed a
    random amount into the recent past to stagger the feed; without it the
    reading's own timestamp is used. Output is newest first.
    """
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)
    alerts: list[AlertEvent] = []

    for patient_id, snapshot in snapshots.items():
        reading = snapshot.reading
        level = classify(reading, thresholds)
        if level == SeverityTier.NORMAL:
            continue

        if jitter:
            timestamp = now - timedelta(
                seconds=rng.uniform(0, DETECTION_JITTER_SECONDS[level])
            )
        else:
            timestamp = reading.timestamp

        alerts.append(
            AlertEvent(
                id=new_alert_id(),
                patient_id=patient_id,
                patient_name=snapshot.name,
                type=level.value.upper(),
                message=_roster_message(snapshot, level),
                level=level,
                timestamp=timestamp,
            )
        )

    alerts.sort(key=lambda alert: alert.timestamp, reverse=True)
    return alerts


def _roster_message(snapshot: PatientSnapshot, level: SeverityTier) -> str:
    reading = snapshot.reading
    hr = format_measure(reading.heart_rate)
    spo2 = format_measure(reading.spo2)
    if level == SeverityTier.CRITICAL:
        if reading.motion_status == MotionStatus.FALL_DETECTED:
            return f"Fall detected for {snapshot.name} in Room {snapshot.room}"
        return f"Critical vitals detected for {snapshot.name} — HR: {hr}, SpO₂: {spo2}%"
    return f"Abnormal vitals for {snapshot.name} — HR: {hr}, SpO₂: {spo2}%"


def alert_for_reading(
    patient_id: str,
    patient_name: str,
    reading: VitalReading,
    thresholds: ThresholdTable = DEFAULT_THRESHOLDS,
) -> AlertEvent | None:
    """Alert for one live reading on a patient's own dashboard, or None when normal."""
    level = classify(reading, thresholds)
    if level == SeverityTier.NORMAL:
        return None
    prefix = "Critical" if level == SeverityTier.CRITICAL else "Abnormal"
    return AlertEvent(
        id=new_alert_id(),
        patient_id=patient_id,
        patient_name=patient_name,
        type=level.value.upper(),
        message=(
            f"{prefix} vitals — HR: {format_measure(reading.heart_rate)}, "
            f"SpO₂: {format_measure(reading.spo2)}%"
        ),
        level=level,
        timestamp=reading.timestamp,
    )


class AlertFeed:
    """Most recent live alerts for one patient, newest first."""

    def __init__(
        self,
        patient_id: str,
        patient_name: str,
        thresholds: ThresholdTable = DEFAULT_THRESHOLDS,
        limit: int = FEED_LIMIT,
    ) -> None:
        self.patient_id = patient_id
        self.patient_name = patient_name
        self._thresholds = thresholds
        self._alerts: Deque[AlertEvent] = deque(maxlen=limit)

    def observe(self, reading: VitalReading) -> AlertEvent | None:
        alert = alert_for_reading(
            self.patient_id, self.patient_name, reading, self._thresholds
        )
        if alert:
            self._alerts.appendleft(alert)
        return alert

    @property
    def alerts(self) -> list[AlertEvent]:
        return list(self._alerts)


def summarize_tiers(statuses: Iterable[SeverityTier]) -> dict[str, int]:
    counts = {tier.value: 0 for tier in SeverityTier}
    for status in statuses:
        counts[status.value] += 1
    return counts
