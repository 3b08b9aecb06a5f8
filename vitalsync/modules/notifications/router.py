"""
Alert dispatch endpoint.

Browser dashboards call this cross-origin, so every answer (pre-flight,
success and error) carries permissive CORS headers, and errors use the
``{"error": ...}`` shape rather than FastAPI's ``detail``.
"""

import json
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from vitalsync.modules.notifications.dispatcher import NotificationDispatcher
from vitalsync.modules.notifications.exceptions import DispatchError
from vitalsync.modules.notifications.schemas import DispatchResponse, ErrorResponse
from vitalsync.modules.notifications.service import get_dispatcher

router = APIRouter()
log = structlog.get_logger()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
        headers=CORS_HEADERS,
    )


@router.options("/send-alert", include_in_schema=False)
async def send_alert_preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)


@router.post(
    "/send-alert",
    response_model=DispatchResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def send_alert(
    request: Request,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> Any:
    """
    Persist an alert and notify admins by email (and the patient's phone by
    SMS for critical alerts).

    Email and SMS flags are best-effort: a provider failure is recorded in
    the audit log and reported as ``false``, never as an error.
    """
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error(status.HTTP_400_BAD_REQUEST, "Request body must be valid JSON")

    try:
        result = await dispatcher.dispatch_payload(payload)
    except DispatchError as exc:
        log.warning("alert_dispatch_rejected", error=str(exc), status_code=exc.status_code)
        return _error(exc.status_code, str(exc))
    except Exception:
        log.exception("alert_dispatch_failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    body = DispatchResponse(
        alert_id=result.alert_id,
        email_sent=result.email_sent,
        sms_sent=result.sms_sent,
        sms_status=result.sms_status,
        email_status=result.email_status,
    )
    return JSONResponse(content=body.model_dump(), headers=CORS_HEADERS)
