from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from vitalsync.modules.profiles.schemas import PatientDetail
from vitalsync.modules.profiles.service import get_profile_store
from vitalsync.modules.profiles.store import MongoProfileStore
from vitalsync.modules.vitals.router import build_latest
from vitalsync.modules.vitals.service import get_thresholds, get_vitals_source
from vitalsync.modules.vitals.sources import ReadingUnavailable, VitalsSource
from vitalsync.modules.vitals.thresholds import ThresholdTable
from vitalsync.shared import deps

router = APIRouter()


@router.get("/{patient_id}", response_model=PatientDetail, summary="Patient detail")
async def read_patient(
    patient_id: str,
    admin: deps.CurrentUser = Depends(deps.require_admin),
    profiles: MongoProfileStore = Depends(get_profile_store),
    source: VitalsSource = Depends(get_vitals_source),
    thresholds: ThresholdTable = Depends(get_thresholds),
) -> Any:
    """
    Profile of one patient plus their current reading and per-vital statuses.

    **Requires:** admin role. ``current`` is null when the live source has
    not received anything for the patient yet.
    """
    profile = await profiles.get_profile(patient_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")

    try:
        current = build_latest(
            patient_id, source.produce_reading(patient_id), source.name, thresholds
        )
    except ReadingUnavailable:
        current = None
    return PatientDetail(profile=profile, current=current)
