"""Unit tests for the alert dispatcher, run entirely against in-memory fakes."""

import pytest
import structlog
from structlog.testing import capture_logs

from tests.conftest import (
    FakeAlertStore,
    FakeAuditLog,
    FakeEmailProvider,
    FakeIdentityDirectory,
    FakeProfileStore,
    FakeRoleStore,
    FakeSmsProvider,
)
from vitalsync.modules.notifications import dispatcher as dispatcher_module
from vitalsync.modules.notifications.dispatcher import NotificationDispatcher
from vitalsync.modules.notifications.exceptions import (
    AlertPersistenceError,
    PayloadValidationError,
)
from vitalsync.modules.notifications.models import DispatchState, OutcomeReason
from vitalsync.shared.constants import Role


def _payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "patient_id": "patient-1",
        "message": "Heart rate 45 bpm",
        "level": "critical",
        "vitals": {"heart_rate": 45, "spo2": 97},
    }
    payload.update(overrides)
    return payload


def _add_admin(
    role_store: FakeRoleStore, identity: FakeIdentityDirectory, user_id: str, email: str
) -> None:
    role_store.grant(user_id, Role.ADMIN)
    identity.emails[user_id] = email


@pytest.fixture
def patient(profile_store: FakeProfileStore) -> str:
    profile_store.add("patient-1", "Rajesh Kumar", phone_number="+15550002222")
    return "patient-1"


@pytest.mark.asyncio
class TestPayloadValidation:
    @pytest.mark.parametrize(
        "payload",
        [
            _payload(level=None),
            _payload(message=""),
            {"message": "x", "level": "warning"},
        ],
    )
    async def test_missing_fields_reject_without_writes(
        self,
        dispatcher: NotificationDispatcher,
        alert_store: FakeAlertStore,
        audit_log: FakeAuditLog,
        payload: dict[str, object],
    ) -> None:
        with pytest.raises(PayloadValidationError) as exc_info:
            await dispatcher.dispatch_payload(payload)

        assert str(exc_info.value) == "Missing required fields: patient_id, message, level"
        assert exc_info.value.status_code == 400
        assert alert_store.alerts == {}
        assert audit_log.entries == []

    async def test_unknown_level_rejected(
        self, dispatcher: NotificationDispatcher, alert_store: FakeAlertStore
    ) -> None:
        with pytest.raises(PayloadValidationError) as exc_info:
            await dispatcher.dispatch_payload(_payload(level="info"))

        assert str(exc_info.value).startswith("Invalid alert payload: level")
        assert alert_store.alerts == {}

    async def test_non_object_body_rejected(self, dispatcher: NotificationDispatcher) -> None:
        with pytest.raises(PayloadValidationError):
            await dispatcher.dispatch_payload(["not", "an", "object"])


@pytest.mark.asyncio
class TestDispatch:
    async def test_critical_alert_emails_admins_and_texts_patient(
        self,
        dispatcher: NotificationDispatcher,
        patient: str,
        role_store: FakeRoleStore,
        identity: FakeIdentityDirectory,
        alert_store: FakeAlertStore,
        audit_log: FakeAuditLog,
        email_provider: FakeEmailProvider,
        sms_provider: FakeSmsProvider,
    ) -> None:
        _add_admin(role_store, identity, "admin-1", "one@ward.example")
        _add_admin(role_store, identity, "admin-2", "two@ward.example")

        result = await dispatcher.dispatch_payload(_payload())

        assert result.email_sent is True
        assert result.sms_sent is True
        assert result.sms_status == "sent"
        assert result.email_status == "sent"
        assert sorted(m["to"] for m in email_provider.sent) == [
            "one@ward.example",
            "two@ward.example",
        ]
        assert "Rajesh Kumar" in email_provider.sent[0]["subject"]
        assert sms_provider.sent == [
            {"to": "+15550002222", "body": "[VitalSync CRITICAL] Rajesh Kumar: Heart rate 45 bpm"}
        ]
        assert audit_log.actions().count("alert_email_critical") == 2
        assert audit_log.actions().count("alert_sms_critical") == 1
        stored = alert_store.alerts[result.alert_id]
        assert (stored.notified_email, stored.notified_sms) == (True, True)
        assert result.states == list(DispatchState)

    async def test_warning_never_sends_sms(
        self,
        dispatcher: NotificationDispatcher,
        patient: str,
        sms_provider: FakeSmsProvider,
        audit_log: FakeAuditLog,
    ) -> None:
        result = await dispatcher.dispatch_payload(_payload(level="warning"))

        assert result.sms_sent is False
        assert result.sms_status == "not_required"
        assert sms_provider.sent == []
        assert "alert_sms_warning" not in audit_log.actions()

    async def test_no_admins_still_persists_alert(
        self,
        dispatcher: NotificationDispatcher,
        alert_store: FakeAlertStore,
        audit_log: FakeAuditLog,
    ) -> None:
        # Unknown patient and no admins: one alert row, no email audits
        result = await dispatcher.dispatch_payload(_payload(patient_id="ghost"))

        assert len(alert_store.alerts) == 1
        assert result.email_sent is False
        assert result.email_status == "no_recipients"
        assert result.sms_status == "no_phone_number"
        assert not any(action.startswith("alert_email_") for action in audit_log.actions())

    async def test_missing_email_provider_key(
        self,
        alert_store: FakeAlertStore,
        profile_store: FakeProfileStore,
        role_store: FakeRoleStore,
        identity: FakeIdentityDirectory,
        audit_log: FakeAuditLog,
        sms_provider: FakeSmsProvider,
        patient: str,
    ) -> None:
        _add_admin(role_store, identity, "admin-1", "one@ward.example")
        dispatcher = NotificationDispatcher(
            alert_store=alert_store,
            profile_store=profile_store,
            role_store=role_store,
            identity=identity,
            audit_log=audit_log,
            email_provider=FakeEmailProvider(configured=False),
            sms_provider=sms_provider,
        )

        result = await dispatcher.dispatch_payload(_payload())

        assert result.email_sent is False
        assert result.email_status == "not_configured"
        assert result.sms_sent is True
        assert len(alert_store.alerts) == 1
        email_entry = next(e for e in audit_log.entries if e["action"] == "alert_email_critical")
        assert email_entry["details"]["email_status"] == "not_configured"
        assert email_entry["details"]["success"] is False

    async def test_unconfigured_sms_is_recorded(
        self,
        alert_store: FakeAlertStore,
        profile_store: FakeProfileStore,
        role_store: FakeRoleStore,
        identity: FakeIdentityDirectory,
        audit_log: FakeAuditLog,
        email_provider: FakeEmailProvider,
        patient: str,
    ) -> None:
        dispatcher = NotificationDispatcher(
            alert_store=alert_store,
            profile_store=profile_store,
            role_store=role_store,
            identity=identity,
            audit_log=audit_log,
            email_provider=email_provider,
            sms_provider=FakeSmsProvider(configured=False),
        )

        result = await dispatcher.dispatch_payload(_payload())

        assert result.sms_sent is False
        assert result.sms_status == "not_configured"
        sms_entry = next(e for e in audit_log.entries if e["action"] == "alert_sms_critical")
        assert sms_entry["details"]["sms_status"] == "not_configured"
        assert sms_entry["details"]["success"] is False

    async def test_one_failed_email_does_not_block_others(
        self,
        dispatcher: NotificationDispatcher,
        patient: str,
        role_store: FakeRoleStore,
        identity: FakeIdentityDirectory,
        audit_log: FakeAuditLog,
        email_provider: FakeEmailProvider,
    ) -> None:
        _add_admin(role_store, identity, "admin-1", "bad@ward.example")
        _add_admin(role_store, identity, "admin-2", "good@ward.example")
        email_provider.failing.add("bad@ward.example")

        result = await dispatcher.dispatch_payload(_payload(level="warning"))

        assert result.email_sent is True
        assert [m["to"] for m in email_provider.sent] == ["good@ward.example"]
        failed = next(
            e for e in audit_log.entries if e["details"]["admin_email"] == "bad@ward.example"
        )
        assert failed["details"]["success"] is False
        assert failed["details"]["error"]["status_code"] == 422

    async def test_duplicate_admin_addresses_mailed_once(
        self,
        dispatcher: NotificationDispatcher,
        patient: str,
        role_store: FakeRoleStore,
        identity: FakeIdentityDirectory,
        email_provider: FakeEmailProvider,
    ) -> None:
        _add_admin(role_store, identity, "admin-1", "same@ward.example")
        _add_admin(role_store, identity, "admin-2", "same@ward.example")
        role_store.grant("admin-3", Role.ADMIN)  # no email on record

        await dispatcher.dispatch_payload(_payload(level="warning"))

        assert [m["to"] for m in email_provider.sent] == ["same@ward.example"]

    async def test_persistence_failure_aborts_before_sending(
        self,
        dispatcher: NotificationDispatcher,
        patient: str,
        role_store: FakeRoleStore,
        identity: FakeIdentityDirectory,
        alert_store: FakeAlertStore,
        email_provider: FakeEmailProvider,
        sms_provider: FakeSmsProvider,
    ) -> None:
        _add_admin(role_store, identity, "admin-1", "one@ward.example")
        alert_store.fail_insert = True

        with pytest.raises(AlertPersistenceError) as exc_info:
            await dispatcher.dispatch_payload(_payload())

        assert exc_info.value.status_code == 500
        assert email_provider.sent == []
        assert sms_provider.sent == []

    async def test_audit_failure_is_absorbed(
        self,
        dispatcher: NotificationDispatcher,
        patient: str,
        audit_log: FakeAuditLog,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        async def _broken_append(*args: object) -> None:
            raise RuntimeError("audit collection down")

        monkeypatch.setattr(audit_log, "append", _broken_append)

        result = await dispatcher.dispatch_payload(_payload())

        assert result.sms_sent is True

    async def test_dispatch_log_lines_carry_alert_level(
        self,
        dispatcher: NotificationDispatcher,
        patient: str,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        # Configured loggers are cached on first use; capture through a fresh one.
        monkeypatch.setattr(dispatcher_module, "log", structlog.get_logger())
        with capture_logs() as logs:
            await dispatcher.dispatch_payload(_payload(level="warning"))

        transitions = [entry for entry in logs if entry["event"] == "dispatch_state"]
        assert [entry["state"] for entry in transitions] == [
            "persisted",
            "recipients_resolved",
            "email_attempted",
            "sms_attempted",
            "outcome_recorded",
        ]
        assert all(entry["alert_level"] == "warning" for entry in transitions)
        assert all(entry["log_level"] == "info" for entry in transitions)


@pytest.mark.asyncio
class TestRaisingCollaborators:
    async def test_raising_email_provider_is_a_failed_outcome(
        self,
        dispatcher: NotificationDispatcher,
        patient: str,
        role_store: FakeRoleStore,
        identity: FakeIdentityDirectory,
        alert_store: FakeAlertStore,
        audit_log: FakeAuditLog,
        email_provider: FakeEmailProvider,
        sms_provider: FakeSmsProvider,
    ) -> None:
        _add_admin(role_store, identity, "admin-1", "bad@ward.example")
        _add_admin(role_store, identity, "admin-2", "good@ward.example")
        email_provider.raising.add("bad@ward.example")

        result = await dispatcher.dispatch_payload(_payload())

        assert result.email_sent is True
        assert result.email_status == "sent"
        assert [m["to"] for m in email_provider.sent] == ["good@ward.example"]
        assert len(sms_provider.sent) == 1
        assert result.states[-1] == DispatchState.OUTCOME_RECORDED
        failed = next(o for o in result.outcomes if o.recipient == "bad@ward.example")
        assert failed.reason == OutcomeReason.FAILED
        assert failed.detail == {"error": "client closed"}
        entry = next(
            e for e in audit_log.entries if e["details"].get("admin_email") == "bad@ward.example"
        )
        assert entry["details"]["success"] is False
        assert entry["details"]["email_status"] == "failed"
        stored = alert_store.alerts[result.alert_id]
        assert (stored.notified_email, stored.notified_sms) == (True, True)

    async def test_every_email_raising_reports_failed(
        self,
        dispatcher: NotificationDispatcher,
        patient: str,
        role_store: FakeRoleStore,
        identity: FakeIdentityDirectory,
        email_provider: FakeEmailProvider,
    ) -> None:
        _add_admin(role_store, identity, "admin-1", "one@ward.example")
        email_provider.raising.add("one@ward.example")

        result = await dispatcher.dispatch_payload(_payload(level="warning"))

        assert result.email_sent is False
        assert result.email_status == "failed"

    async def test_raising_sms_provider_is_a_failed_outcome(
        self,
        alert_store: FakeAlertStore,
        profile_store: FakeProfileStore,
        role_store: FakeRoleStore,
        identity: FakeIdentityDirectory,
        audit_log: FakeAuditLog,
        email_provider: FakeEmailProvider,
        patient: str,
    ) -> None:
        dispatcher = NotificationDispatcher(
            alert_store=alert_store,
            profile_store=profile_store,
            role_store=role_store,
            identity=identity,
            audit_log=audit_log,
            email_provider=email_provider,
            sms_provider=FakeSmsProvider(error=RuntimeError("twilio client closed")),
        )

        result = await dispatcher.dispatch_payload(_payload())

        assert result.sms_sent is False
        assert result.sms_status == "failed"
        assert result.states[-1] == DispatchState.OUTCOME_RECORDED
        sms_entry = next(e for e in audit_log.entries if e["action"] == "alert_sms_critical")
        assert sms_entry["details"]["error"] == {"error": "twilio client closed"}
        assert alert_store.alerts[result.alert_id].notified_sms is False

    async def test_raising_identity_lookup_skips_that_admin(
        self,
        dispatcher: NotificationDispatcher,
        patient: str,
        role_store: FakeRoleStore,
        identity: FakeIdentityDirectory,
        email_provider: FakeEmailProvider,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        _add_admin(role_store, identity, "admin-1", "one@ward.example")
        role_store.grant("admin-2", Role.ADMIN)
        lookup = identity.lookup_email

        async def _flaky_lookup(user_id: str) -> str | None:
            if user_id == "admin-2":
                raise RuntimeError("identity provider down")
            return await lookup(user_id)

        monkeypatch.setattr(identity, "lookup_email", _flaky_lookup)

        result = await dispatcher.dispatch_payload(_payload(level="warning"))

        assert result.email_sent is True
        assert [m["to"] for m in email_provider.sent] == ["one@ward.example"]
