"""
Turn one alert into stored state, outbound notifications and audit entries.

A dispatch walks received -> persisted -> recipients_resolved ->
email_attempted -> sms_attempted -> outcome_recorded. Only validation and the
initial alert insert can stop it. Every later failure, including a provider
that raises, is logged, recorded as a failed outcome and absorbed into the
aggregate flags and the per-channel status strings.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog
from pydantic import ValidationError

from vitalsync.modules.notifications.exceptions import (
    AlertPersistenceError,
    PayloadValidationError,
)
from vitalsync.modules.notifications.models import (
    Channel,
    DispatchState,
    NotificationOutcome,
    OutcomeReason,
)
from vitalsync.modules.notifications.schemas import DispatchRequest
from vitalsync.modules.notifications.templates import (
    email_subject,
    render_alert_email,
    sms_body,
)
from vitalsync.modules.profiles.schemas import ProfileOut
from vitalsync.modules.vitals.models import SeverityTier
from vitalsync.shared.constants import Role

log = structlog.get_logger()

REQUIRED_FIELDS = ("patient_id", "message", "level")
UNKNOWN_PATIENT = "Unknown Patient"


class AlertStore(Protocol):
    async def insert(self, patient_id: str, message: str, level: SeverityTier) -> str: ...

    async def mark_notified(self, alert_id: str, email_sent: bool, sms_sent: bool) -> None: ...


class ProfileStore(Protocol):
    async def get_profile(self, user_id: str) -> ProfileOut | None: ...


class RoleStore(Protocol):
    async def list_user_ids(self, role: Role) -> list[str]: ...


class IdentityDirectory(Protocol):
    async def lookup_email(self, user_id: str) -> str | None: ...


class AuditSink(Protocol):
    async def append(self, user_id: str, action: str, details: dict[str, Any]) -> None: ...


class EmailProvider(Protocol):
    @property
    def configured(self) -> bool: ...

    async def send(self, to: str, subject: str, html: str) -> NotificationOutcome: ...


class SmsProvider(Protocol):
    @property
    def configured(self) -> bool: ...

    async def send(self, to: str, body: str) -> NotificationOutcome: ...


@dataclass
class DispatchResult:
    alert_id: str
    email_sent: bool
    sms_sent: bool
    sms_status: str
    email_status: str
    outcomes: list[NotificationOutcome] = field(default_factory=list)
    states: list[DispatchState] = field(default_factory=list)


class NotificationDispatcher:
    def __init__(
        self,
        alert_store: AlertStore,
        profile_store: ProfileStore,
        role_store: RoleStore,
        identity: IdentityDirectory,
        audit_log: AuditSink,
        email_provider: EmailProvider,
        sms_provider: SmsProvider,
    ) -> None:
        self._alerts = alert_store
        self._profiles = profile_store
        self._roles = role_store
        self._identity = identity
        self._audit = audit_log
        self._email = email_provider
        self._sms = sms_provider

    async def dispatch_payload(self, payload: Any) -> DispatchResult:
        """Validate a raw JSON body, then dispatch it."""
        return await self.dispatch(parse_payload(payload))

    async def dispatch(self, request: DispatchRequest) -> DispatchResult:
        states = [DispatchState.RECEIVED]
        bound = log.bind(patient_id=request.patient_id, alert_level=request.level)

        def advance(state: DispatchState, **fields: Any) -> None:
            states.append(state)
            bound.info("dispatch_state", state=state.value, **fields)

        try:
            alert_id = await self._alerts.insert(
                request.patient_id, request.message, SeverityTier(request.level)
            )
        except Exception as exc:
            bound.exception("alert_persist_failed")
            raise AlertPersistenceError("Failed to persist alert") from exc
        advance(DispatchState.PERSISTED, alert_id=alert_id)

        patient_name, phone_number = await self._resolve_patient(request.patient_id)
        admin_emails = await self._resolve_admin_emails()
        advance(DispatchState.RECIPIENTS_RESOLVED, admins=len(admin_emails))

        email_outcomes, email_status = await self._send_emails(request, patient_name, admin_emails)
        email_sent = any(outcome.success for outcome in email_outcomes)
        advance(DispatchState.EMAIL_ATTEMPTED, email_status=email_status, email_sent=email_sent)

        sms_outcome, sms_status = await self._send_sms(request, patient_name, phone_number)
        sms_sent = bool(sms_outcome and sms_outcome.success)
        advance(DispatchState.SMS_ATTEMPTED, sms_status=sms_status)

        try:
            await self._alerts.mark_notified(alert_id, email_sent=email_sent, sms_sent=sms_sent)
        except Exception:
            bound.exception("alert_notified_update_failed", alert_id=alert_id)
        advance(DispatchState.OUTCOME_RECORDED)

        outcomes = [*email_outcomes, *([sms_outcome] if sms_outcome else [])]
        return DispatchResult(
            alert_id=alert_id,
            email_sent=email_sent,
            sms_sent=sms_sent,
            sms_status=sms_status,
            email_status=email_status,
            outcomes=outcomes,
            states=states,
        )

    async def _resolve_patient(self, patient_id: str) -> tuple[str, str | None]:
        try:
            profile = await self._profiles.get_profile(patient_id)
        except Exception:
            log.exception("patient_profile_lookup_failed", patient_id=patient_id)
            profile = None
        if not profile:
            return UNKNOWN_PATIENT, None
        return profile.full_name or UNKNOWN_PATIENT, profile.phone_number or None

    async def _resolve_admin_emails(self) -> list[str]:
        try:
            admin_ids = await self._roles.list_user_ids(Role.ADMIN)
        except Exception:
            log.exception("admin_lookup_failed")
            return []
        emails = await asyncio.gather(
            *(self._lookup_email(user_id) for user_id in admin_ids)
        )
        # An admin may hold the role twice; mail each address once.
        return list(dict.fromkeys(email for email in emails if email))

    async def _lookup_email(self, user_id: str) -> str | None:
        try:
            return await self._identity.lookup_email(user_id)
        except Exception:
            log.exception("admin_email_lookup_failed", user_id=user_id)
            return None

    async def _send_emails(
        self, request: DispatchRequest, patient_name: str, recipients: list[str]
    ) -> tuple[list[NotificationOutcome], str]:
        if not recipients:
            return [], "no_recipients"

        subject = email_subject(patient_name, request.level)
        html = render_alert_email(patient_name, request.message, request.level, request.vitals)
        vitals = request.vitals.model_dump(mode="json", exclude_none=True) if request.vitals else {}
        configured = self._email.configured
        if not configured:
            log.warning("email_provider_not_configured", skipped=len(recipients))

        async def attempt(recipient: str) -> NotificationOutcome:
            if not configured:
                outcome = _not_configured(Channel.EMAIL, recipient)
            else:
                try:
                    outcome = await self._email.send(recipient, subject, html)
                except Exception as exc:
                    log.exception("alert_email_send_failed", recipient=recipient)
                    outcome = _failed(Channel.EMAIL, recipient, exc)
            await self._record(
                request.patient_id,
                f"alert_email_{request.level}",
                {
                    "admin_email": recipient,
                    "patient_name": patient_name,
                    "message": request.message,
                    "vitals": vitals,
                    "email_status": outcome.reason.value,
                    "success": outcome.success,
                    **({} if outcome.success else {"error": outcome.detail}),
                },
            )
            return outcome

        outcomes = list(await asyncio.gather(*(attempt(recipient) for recipient in recipients)))
        if not configured:
            return outcomes, OutcomeReason.NOT_CONFIGURED.value
        if any(outcome.success for outcome in outcomes):
            return outcomes, OutcomeReason.SENT.value
        return outcomes, OutcomeReason.FAILED.value

    async def _send_sms(
        self, request: DispatchRequest, patient_name: str, phone_number: str | None
    ) -> tuple[NotificationOutcome | None, str]:
        if request.level != SeverityTier.CRITICAL.value:
            return None, "not_required"
        if not phone_number:
            return None, "no_phone_number"

        if not self._sms.configured:
            log.info("sms_provider_not_configured", patient_id=request.patient_id)
            outcome = _not_configured(Channel.SMS, phone_number)
        else:
            try:
                outcome = await self._sms.send(
                    phone_number, sms_body(patient_name, request.message, request.level)
                )
            except Exception as exc:
                log.exception("alert_sms_send_failed", patient_id=request.patient_id)
                outcome = _failed(Channel.SMS, phone_number, exc)

        await self._record(
            request.patient_id,
            f"alert_sms_{request.level}",
            {
                "phone_number": phone_number,
                "patient_name": patient_name,
                "sms_status": outcome.reason.value,
                "success": outcome.success,
                **({} if outcome.success else {"error": outcome.detail}),
            },
        )
        return outcome, outcome.reason.value

    async def _record(self, user_id: str, action: str, details: dict[str, Any]) -> None:
        try:
            await self._audit.append(user_id, action, details)
        except Exception:
            log.exception("audit_write_failed", action=action, user_id=user_id)


def _not_configured(channel: Channel, recipient: str) -> NotificationOutcome:
    return NotificationOutcome(
        channel=channel,
        recipient=recipient,
        success=False,
        reason=OutcomeReason.NOT_CONFIGURED,
    )


def _failed(channel: Channel, recipient: str, exc: Exception) -> NotificationOutcome:
    return NotificationOutcome(
        channel=channel,
        recipient=recipient,
        success=False,
        reason=OutcomeReason.FAILED,
        detail={"error": str(exc) or type(exc).__name__},
    )


def parse_payload(payload: Any) -> DispatchRequest:
    if not isinstance(payload, dict):
        raise PayloadValidationError("Request body must be a JSON object")
    if any(not payload.get(name) for name in REQUIRED_FIELDS):
        raise PayloadValidationError(
            "Missing required fields: " + ", ".join(REQUIRED_FIELDS)
        )
    try:
        return DispatchRequest.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise PayloadValidationError(
            f"Invalid alert payload: {location} {first.get('msg', '')}".strip()
        ) from None
