"""HTTP and WebSocket endpoints for vital readings, trends and triage."""

import asyncio
from typing import Any

import structlog
from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)

from vitalsync.modules.alerts.deriver import AlertFeed
from vitalsync.modules.alerts.schemas import DerivedAlertOut
from vitalsync.modules.profiles.service import get_profile_store, get_role_store
from vitalsync.modules.profiles.store import MongoProfileStore, MongoRoleStore
from vitalsync.modules.vitals.classifier import classify_vitals
from vitalsync.modules.vitals.generator import SyntheticSignalGenerator
from vitalsync.modules.vitals.models import VitalReading
from vitalsync.modules.vitals.schemas import (
    ClassifyRequest,
    ClassifyResponse,
    HistoryPointOut,
    IngestResult,
    LatestVitals,
    ReadingIngest,
    VitalReadingOut,
    VitalStatusesOut,
    WaveformOut,
)
from vitalsync.modules.vitals.service import (
    get_signal_generator,
    get_thresholds,
    get_vitals_source,
)
from vitalsync.modules.vitals.sources import (
    LiveVitalsSource,
    ReadingUnavailable,
    VitalsSource,
)
from vitalsync.modules.vitals.thresholds import ThresholdTable
from vitalsync.shared import deps

router = APIRouter()
log = structlog.get_logger()

STREAM_QUEUE_SIZE = 100


def build_latest(
    patient_id: str, reading: VitalReading, source: str, thresholds: ThresholdTable
) -> LatestVitals:
    statuses = classify_vitals(reading, thresholds)
    return LatestVitals(
        patient_id=patient_id,
        source=source,
        status=statuses.overall,
        statuses=VitalStatusesOut.from_statuses(statuses),
        vitals=VitalReadingOut.from_reading(reading),
    )


@router.get("/thresholds", response_model=ThresholdTable)
async def read_thresholds(
    thresholds: ThresholdTable = Depends(get_thresholds),
) -> Any:
    return thresholds


@router.post("/classify", response_model=ClassifyResponse)
async def classify_reading(
    body: ClassifyRequest,
    thresholds: ThresholdTable = Depends(get_thresholds),
) -> Any:
    """Triage a set of values without storing anything."""
    statuses = classify_vitals(body.to_reading(), thresholds)
    return ClassifyResponse(
        status=statuses.overall, statuses=VitalStatusesOut.from_statuses(statuses)
    )


@router.get("/waveform", response_model=WaveformOut)
async def read_waveform(
    length: int = Query(default=200, ge=0, le=5000),
    generator: SyntheticSignalGenerator = Depends(get_signal_generator),
) -> Any:
    samples = generator.generate_waveform(length)
    return WaveformOut(length=len(samples), samples=samples)


@router.get("/{patient_id}/latest", response_model=LatestVitals)
async def read_latest(
    patient_id: str,
    current_user: deps.CurrentUser = Depends(deps.get_current_user),
    source: VitalsSource = Depends(get_vitals_source),
    thresholds: ThresholdTable = Depends(get_thresholds),
) -> Any:
    deps.check_patient_access(patient_id, current_user)
    try:
        reading = source.produce_reading(patient_id)
    except ReadingUnavailable:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No vitals received for this patient yet",
        ) from None
    return build_latest(patient_id, reading, source.name, thresholds)


@router.get("/{patient_id}/history", response_model=list[HistoryPointOut])
async def read_history(
    patient_id: str,
    hours: int = Query(default=24, ge=0, le=168),
    current_user: deps.CurrentUser = Depends(deps.get_current_user),
    generator: SyntheticSignalGenerator = Depends(get_signal_generator),
) -> Any:
    """Coarse hourly trend for the chart; independent of the live reading."""
    deps.check_patient_access(patient_id, current_user)
    return [HistoryPointOut.from_point(point) for point in generator.generate_history(hours)]


@router.post(
    "/{patient_id}/readings",
    response_model=IngestResult,
    status_code=status.HTTP_202_ACCEPTED,
)
async def ingest_reading(
    patient_id: str,
    body: ReadingIngest,
    current_user: deps.CurrentUser = Depends(deps.get_current_user),
    source: VitalsSource = Depends(get_vitals_source),
    thresholds: ThresholdTable = Depends(get_thresholds),
) -> Any:
    """Hardware ingestion path; only accepted when the live source is active."""
    deps.check_patient_access(patient_id, current_user)
    if not isinstance(source, LiveVitalsSource):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Readings are generated by the {source.name} source",
        )
    reading = body.to_reading()
    delivered = source.publish(patient_id, reading)
    statuses = classify_vitals(reading, thresholds)
    log.info(
        "vitals_reading_ingested",
        patient_id=patient_id,
        status=statuses.overall.value,
        delivered=delivered,
    )
    return IngestResult(patient_id=patient_id, status=statuses.overall, delivered=delivered)


async def _drain_client(websocket: WebSocket) -> None:
    # Consumers only listen; returns when the client goes away.
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return


@router.websocket("/ws/{patient_id}")
async def stream_vitals(
    websocket: WebSocket,
    patient_id: str,
    token: str,
    source: VitalsSource = Depends(get_vitals_source),
    thresholds: ThresholdTable = Depends(get_thresholds),
    role_store: MongoRoleStore = Depends(get_role_store),
    profile_store: MongoProfileStore = Depends(get_profile_store),
) -> None:
    """Push each new reading with its triage and the patient's recent live alerts."""
    user = await deps.resolve_user(token, role_store)
    if not user or not (user.is_admin or user.id == patient_id):
        log.warning("vitals websocket auth failed", patient_id=patient_id)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    profile = await profile_store.get_profile(patient_id)
    feed = AlertFeed(
        patient_id, profile.full_name if profile else "Patient", thresholds=thresholds
    )

    await websocket.accept()
    log.info("vitals websocket connected", patient_id=patient_id, user_id=user.id)

    queue: asyncio.Queue[VitalReading] = asyncio.Queue(maxsize=STREAM_QUEUE_SIZE)

    def _enqueue(reading: VitalReading) -> None:
        try:
            queue.put_nowait(reading)
        except asyncio.QueueFull:
            log.warning("vitals stream falling behind", patient_id=patient_id)

    try:
        _enqueue(source.produce_reading(patient_id))
    except ReadingUnavailable:
        pass

    receiver = asyncio.create_task(_drain_client(websocket))
    async with source.subscribe(patient_id, _enqueue):
        try:
            while True:
                getter = asyncio.create_task(queue.get())
                done, _ = await asyncio.wait(
                    {getter, receiver}, return_when=asyncio.FIRST_COMPLETED
                )
                if getter not in done:
                    getter.cancel()
                    break
                reading = getter.result()
                feed.observe(reading)
                message = {
                    "event": "vitals",
                    **build_latest(patient_id, reading, source.name, thresholds).model_dump(
                        by_alias=True, mode="json"
                    ),
                    "alerts": [
                        DerivedAlertOut.from_event(alert).model_dump(by_alias=True, mode="json")
                        for alert in feed.alerts
                    ],
                }
                await websocket.send_json(message)
        except WebSocketDisconnect:
            pass
        finally:
            receiver.cancel()
    log.info("vitals websocket disconnected", patient_id=patient_id)
