"""Synthetic vitals for the dashboard while no sensor hardware is attached."""

from __future__ import annotations

import math
import random
from datetime import datetime, timedelta, timezone

from vitalsync.modules.vitals.models import HistoryPoint, MotionStatus, VitalReading

DEFAULT_WAVEFORM_LENGTH = 200
WAVEFORM_NOISE = 0.015

ABNORMAL_PROBABILITY = 0.3
FALL_PROBABILITY = 0.1
ACTIVE_PROBABILITY = 0.3

NORMAL_HEART_RATE = (62.0, 98.0)
LOW_HEART_RATE = (45.0, 55.0)
HIGH_HEART_RATE = (110.0, 130.0)
NORMAL_SPO2 = (95.0, 100.0)
ABNORMAL_SPO2 = (88.0, 94.0)
NORMAL_TEMPERATURE = (36.2, 37.4)
ABNORMAL_TEMPERATURE = (37.8, 39.2)


def _cardiac_cycle() -> tuple[float, ...]:
    cycle: list[float] = []
    # P wave
    cycle.extend(math.sin(i / 8 * math.pi) * 0.15 for i in range(8))
    # PR segment
    cycle.extend([0.0] * 4)
    # QRS complex
    cycle.extend([-0.1, -0.2, 1.0, -0.3, -0.1])
    # ST segment
    cycle.extend([0.02] * 6)
    # T wave
    cycle.extend(math.sin(i / 10 * math.pi) * 0.25 for i in range(10))
    # Baseline
    cycle.extend([0.0] * 12)
    return tuple(cycle)


CARDIAC_CYCLE = _cardiac_cycle()


class SyntheticSignalGenerator:
    """
    Produce plausible readings, ECG windows and hourly trends.

    All randomness goes through the injected PRNG, so a seeded
    ``random.Random`` makes every output reproducible.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    @property
    def rng(self) -> random.Random:
        return self._rng

    def generate_reading(self, bias_abnormal: bool = False) -> VitalReading:
        abnormal = bias_abnormal and self._rng.random() < ABNORMAL_PROBABILITY

        if abnormal:
            band = LOW_HEART_RATE if self._rng.random() < 0.5 else HIGH_HEART_RATE
            heart_rate = self._uniform(*band)
            spo2 = self._uniform(*ABNORMAL_SPO2)
            temperature = self._uniform(*ABNORMAL_TEMPERATURE)
        else:
            heart_rate = self._uniform(*NORMAL_HEART_RATE)
            spo2 = self._uniform(*NORMAL_SPO2)
            temperature = self._uniform(*NORMAL_TEMPERATURE)

        return VitalReading(
            heart_rate=heart_rate,
            spo2=spo2,
            temperature=temperature,
            motion_status=self._motion(abnormal),
            ecg_data=tuple(self.generate_waveform(DEFAULT_WAVEFORM_LENGTH)),
            timestamp=datetime.now(timezone.utc),
        )

    def generate_waveform(self, length: int = DEFAULT_WAVEFORM_LENGTH) -> list[float]:
        """Tile the cardiac cycle to exactly ``length`` samples with per-sample noise."""
        if length < 0:
            raise ValueError("waveform length must be non-negative")
        cycle_len = len(CARDIAC_CYCLE)
        return [
            CARDIAC_CYCLE[i % cycle_len] + self._rng.uniform(-WAVEFORM_NOISE, WAVEFORM_NOISE)
            for i in range(length)
        ]

    def generate_history(
        self, hours: int = 24, now: datetime | None = None
    ) -> list[HistoryPoint]:
        """One point per hour from ``hours`` ago up to ``now`` inclusive, oldest first."""
        if hours < 0:
            raise ValueError("hours must be non-negative")
        now = now or datetime.now(timezone.utc)
        return [
            HistoryPoint(
                time=now - timedelta(hours=offset),
                heart_rate=self._uniform(*NORMAL_HEART_RATE),
                spo2=self._uniform(*NORMAL_SPO2),
                temperature=self._uniform(*NORMAL_TEMPERATURE),
            )
            for offset in range(hours, -1, -1)
        ]

    def _motion(self, abnormal: bool) -> MotionStatus:
        if abnormal and self._rng.random() < FALL_PROBABILITY:
            return MotionStatus.FALL_DETECTED
        if self._rng.random() < ACTIVE_PROBABILITY:
            return MotionStatus.ACTIVE
        return MotionStatus.RESTING

    def _uniform(self, low: float, high: float) -> float:
        return round(self._rng.uniform(low, high), 1)
