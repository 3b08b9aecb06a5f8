"""Threshold triage for vital readings.

Every function here is pure: the tier depends only on the reading and the
threshold table passed in, so callers recompute it whenever either changes.
Values are compared, never range-checked.
"""

from vitalsync.modules.vitals.models import (
    MotionStatus,
    SeverityTier,
    VitalReading,
    VitalStatuses,
)
from vitalsync.modules.vitals.thresholds import DEFAULT_THRESHOLDS, ThresholdTable


def classify(
    reading: VitalReading, thresholds: ThresholdTable = DEFAULT_THRESHOLDS
) -> SeverityTier:
    """Map a reading to its severity tier; critical conditions win over warning ones."""
    hr = thresholds.heart_rate
    spo2 = thresholds.spo2
    temp = thresholds.temperature

    if (
        reading.motion_status == MotionStatus.FALL_DETECTED
        or reading.heart_rate < hr.critical_low
        or reading.heart_rate > hr.critical_high
        or reading.spo2 < spo2.critical_low
        or reading.temperature > temp.critical_high
    ):
        return SeverityTier.CRITICAL

    if (
        reading.heart_rate < hr.low
        or reading.heart_rate > hr.high
        or reading.spo2 < spo2.low
        or reading.temperature < temp.low
        or reading.temperature > temp.high
    ):
        return SeverityTier.WARNING

    return SeverityTier.NORMAL


def classify_heart_rate(
    value: float, thresholds: ThresholdTable = DEFAULT_THRESHOLDS
) -> SeverityTier:
    bounds = thresholds.heart_rate
    if value < bounds.critical_low or value > bounds.critical_high:
        return SeverityTier.CRITICAL
    if value < bounds.low or value > bounds.high:
        return SeverityTier.WARNING
    return SeverityTier.NORMAL


def classify_spo2(
    value: float, thresholds: ThresholdTable = DEFAULT_THRESHOLDS
) -> SeverityTier:
    bounds = thresholds.spo2
    if value < bounds.critical_low:
        return SeverityTier.CRITICAL
    if value < bounds.low:
        return SeverityTier.WARNING
    return SeverityTier.NORMAL


def classify_temperature(
    value: float, thresholds: ThresholdTable = DEFAULT_THRESHOLDS
) -> SeverityTier:
    bounds = thresholds.temperature
    if value > bounds.critical_high:
        return SeverityTier.CRITICAL
    if value < bounds.low or value > bounds.high:
        return SeverityTier.WARNING
    return SeverityTier.NORMAL


def classify_motion(status: MotionStatus) -> SeverityTier:
    if status == MotionStatus.FALL_DETECTED:
        return SeverityTier.CRITICAL
    return SeverityTier.NORMAL


def classify_vitals(
    reading: VitalReading, thresholds: ThresholdTable = DEFAULT_THRESHOLDS
) -> VitalStatuses:
    """Per-metric tiers for dashboard cards, plus the overall tier."""
    return VitalStatuses(
        overall=classify(reading, thresholds),
        heart_rate=classify_heart_rate(reading.heart_rate, thresholds),
        spo2=classify_spo2(reading.spo2, thresholds),
        temperature=classify_temperature(reading.temperature, thresholds),
        motion=classify_motion(reading.motion_status),
    )
