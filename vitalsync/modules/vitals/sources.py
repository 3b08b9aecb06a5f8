"""
Where readings come from.

Dashboards depend only on ``VitalsSource``. The synthetic source drives the
demo; the live source is fed by the hardware ingestion endpoint. Both hand
out ``VitalsSubscription`` handles that the consumer must cancel on teardown.
"""

from __future__ import annotations

import asyncio
from typing import Callable

import structlog

from vitalsync.core.config import Settings
from vitalsync.modules.vitals.generator import SyntheticSignalGenerator
from vitalsync.modules.vitals.models import VitalReading

log = structlog.get_logger()

ReadingCallback = Callable[[VitalReading], None]


class ReadingUnavailable(LookupError):
    """No reading has been received for the patient yet."""


class VitalsSubscription:
    """Cancellable handle returned by ``VitalsSource.subscribe``."""

    def __init__(self, on_cancel: Callable[[], None]) -> None:
        self._on_cancel = on_cancel
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._on_cancel()

    async def __aenter__(self) -> "VitalsSubscription":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.cancel()


class VitalsSource:
    name = "base"

    def produce_reading(self, patient_id: str) -> VitalReading:
        raise NotImplementedError

    def subscribe(self, patient_id: str, callback: ReadingCallback) -> VitalsSubscription:
        raise NotImplementedError


class SyntheticVitalsSource(VitalsSource):
    """Generated readings pushed on a fixed interval."""

    name = "synthetic"

    def __init__(
        self,
        generator: SyntheticSignalGenerator,
        interval_seconds: float = 3.0,
        bias_abnormal: bool = True,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._generator = generator
        self._interval = interval_seconds
        self._bias_abnormal = bias_abnormal

    def produce_reading(self, patient_id: str) -> VitalReading:
        return self._generator.generate_reading(self._bias_abnormal)

    def subscribe(self, patient_id: str, callback: ReadingCallback) -> VitalsSubscription:
        """Start a timer task on the running loop; cancelling the handle stops it."""
        task = asyncio.get_running_loop().create_task(self._tick(patient_id, callback))
        return VitalsSubscription(on_cancel=task.cancel)

    async def _tick(self, patient_id: str, callback: ReadingCallback) -> None:
        while True:
            await asyncio.sleep(self._interval)
            reading = self._generator.generate_reading(self._bias_abnormal)
            try:
                callback(reading)
            except Exception:
                log.exception("vitals_callback_failed", patient_id=patient_id, source=self.name)


class LiveVitalsSource(VitalsSource):
    """Readings published by sensor hardware, fanned out to subscribers."""

    name = "live"

    def __init__(self) -> None:
        self._latest: dict[str, VitalReading] = {}
        self._subscribers: dict[str, list[ReadingCallback]] = {}

    def produce_reading(self, patient_id: str) -> VitalReading:
        reading = self._latest.get(patient_id)
        if reading is None:
            raise ReadingUnavailable(patient_id)
        return reading

    def publish(self, patient_id: str, reading: VitalReading) -> int:
        """Record the newest reading and notify subscribers; returns how many were notified."""
        current = self._latest.get(patient_id)
        if current is None or reading.timestamp >= current.timestamp:
            self._latest[patient_id] = reading

        delivered = 0
        for callback in list(self._subscribers.get(patient_id, [])):
            try:
                callback(reading)
                delivered += 1
            except Exception:
                log.exception("vitals_callback_failed", patient_id=patient_id, source=self.name)
        return delivered

    def subscribe(self, patient_id: str, callback: ReadingCallback) -> VitalsSubscription:
        self._subscribers.setdefault(patient_id, []).append(callback)

        def _remove() -> None:
            callbacks = self._subscribers.get(patient_id, [])
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                self._subscribers.pop(patient_id, None)

        return VitalsSubscription(on_cancel=_remove)

    def subscriber_count(self, patient_id: str) -> int:
        return len(self._subscribers.get(patient_id, []))


def build_vitals_source(
    settings: Settings, generator: SyntheticSignalGenerator | None = None
) -> VitalsSource:
    kind = settings.VITALS_SOURCE.strip().lower()
    if kind == "live":
        return LiveVitalsSource()
    if kind != "synthetic":
        log.warning("unknown vitals source, using synthetic", vitals_source=settings.VITALS_SOURCE)
    return SyntheticVitalsSource(
        generator=generator or SyntheticSignalGenerator(),
        interval_seconds=settings.VITALS_REFRESH_SECONDS,
    )
