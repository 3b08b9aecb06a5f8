"""Admin endpoints for persisted alerts and the simulated ward overview."""

from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from vitalsync.modules.alerts.schemas import (
    AlertOverview,
    AlertRecord,
    AlertResolveRequest,
)
from vitalsync.modules.alerts.service import build_overview, get_alert_store
from vitalsync.modules.alerts.store import MongoAlertStore
from vitalsync.modules.vitals.generator import SyntheticSignalGenerator
from vitalsync.modules.vitals.service import get_signal_generator, get_thresholds
from vitalsync.modules.vitals.thresholds import ThresholdTable
from vitalsync.shared import deps

router = APIRouter()
log = structlog.get_logger()


@router.get("", response_model=list[AlertRecord])
async def list_alerts(
    resolved: Optional[bool] = Query(default=None, description="Filter by resolution state"),
    limit: int = Query(default=50, ge=1, le=500),
    admin: deps.CurrentUser = Depends(deps.require_admin),
    store: MongoAlertStore = Depends(get_alert_store),
) -> Any:
    """Persisted alerts, newest first."""
    return await store.list_alerts(resolved=resolved, limit=limit)


@router.post("/{alert_id}/resolve", response_model=AlertRecord)
async def resolve_alert(
    alert_id: str,
    body: AlertResolveRequest,
    admin: deps.CurrentUser = Depends(deps.require_admin),
    store: MongoAlertStore = Depends(get_alert_store),
) -> Any:
    record = await store.set_resolved(alert_id, body.resolved)
    if not record:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Alert not found",
        )
    log.info("alert_resolution_changed", alert_id=alert_id, resolved=body.resolved, by=admin.id)
    return record


@router.get("/overview", response_model=AlertOverview)
async def read_overview(
    admin: deps.CurrentUser = Depends(deps.require_admin),
    generator: SyntheticSignalGenerator = Depends(get_signal_generator),
    thresholds: ThresholdTable = Depends(get_thresholds),
) -> Any:
    """
    Ward overview for the admin dashboard.

    Each call simulates a fresh roster, derives its alerts and counts
    patients per tier.
    """
    return build_overview(generator, thresholds)
