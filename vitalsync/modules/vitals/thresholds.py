import json
from pathlib import Path

import structlog
from pydantic import ConfigDict

from vitalsync.shared.schemas import CamelModel

log = structlog.get_logger()


class HeartRateThresholds(CamelModel):
    low: float = 60
    high: float = 100
    critical_low: float = 50
    critical_high: float = 120


class Spo2Thresholds(CamelModel):
    low: float = 95
    critical_low: float = 90


class TemperatureThresholds(CamelModel):
    low: float = 36.1
    high: float = 37.5
    critical_high: float = 38.5


class ThresholdTable(CamelModel):
    """Per-vital bounds shared by the classifier, generator and deriver."""

    model_config = ConfigDict(frozen=True)

    heart_rate: HeartRateThresholds = HeartRateThresholds()
    spo2: Spo2Thresholds = Spo2Thresholds()
    temperature: TemperatureThresholds = TemperatureThresholds()


DEFAULT_THRESHOLDS = ThresholdTable()


def load_thresholds(path: str | Path | None) -> ThresholdTable:
    if not path:
        return DEFAULT_THRESHOLDS
    path = Path(path)
    try:
        payload = json.loads(path.read_text())
        return ThresholdTable.model_validate(payload)
    except FileNotFoundError:
        log.info("thresholds file not found, using defaults", path=str(path))
        return DEFAULT_THRESHOLDS
    except Exception as exc:
        log.warning("thresholds load failed, using defaults", path=str(path), error=str(exc))
        return DEFAULT_THRESHOLDS
