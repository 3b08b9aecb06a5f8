from vitalsync.core.config import settings
from vitalsync.modules.vitals.generator import SyntheticSignalGenerator
from vitalsync.modules.vitals.sources import VitalsSource, build_vitals_source
from vitalsync.modules.vitals.thresholds import ThresholdTable, load_thresholds

thresholds = load_thresholds(settings.THRESHOLDS_PATH)
signal_generator = SyntheticSignalGenerator()
vitals_source = build_vitals_source(settings, generator=signal_generator)


def get_thresholds() -> ThresholdTable:
    return thresholds


def get_signal_generator() -> SyntheticSignalGenerator:
    return signal_generator


def get_vitals_source() -> VitalsSource:
    return vitals_source
