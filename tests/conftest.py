import random
import uuid
from datetime import datetime, timezone
from typing import Any, AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from vitalsync.core import security
from vitalsync.main import app
from vitalsync.modules.alerts.schemas import AlertRecord
from vitalsync.modules.alerts.service import get_alert_store
from vitalsync.modules.notifications.dispatcher import NotificationDispatcher
from vitalsync.modules.notifications.models import (
    Channel,
    NotificationOutcome,
    OutcomeReason,
)
from vitalsync.modules.notifications.service import get_dispatcher
from vitalsync.modules.profiles.schemas import ProfileOut
from vitalsync.modules.profiles.service import get_profile_store, get_role_store
from vitalsync.modules.vitals.generator import SyntheticSignalGenerator
from vitalsync.modules.vitals.models import SeverityTier
from vitalsync.modules.vitals.service import (
    get_signal_generator,
    get_thresholds,
    get_vitals_source,
)
from vitalsync.modules.vitals.sources import LiveVitalsSource, VitalsSource
from vitalsync.modules.vitals.thresholds import DEFAULT_THRESHOLDS
from vitalsync.shared.constants import AccountStatus, Role


def auth_headers(user_id: str) -> dict[str, str]:
    """Create authorization headers for a user."""
    token = security.create_access_token(subject=user_id)
    return {"Authorization": f"Bearer {token}"}


class FakeAlertStore:
    """In-memory stand-in for the Mongo alert collection."""

    def __init__(self) -> None:
        self.alerts: dict[str, AlertRecord] = {}
        self.fail_insert = False

    async def insert(self, patient_id: str, message: str, level: SeverityTier) -> str:
        if self.fail_insert:
            raise RuntimeError("mongo unavailable")
        alert_id = uuid.uuid4().hex[:24]
        self.alerts[alert_id] = AlertRecord(
            id=alert_id,
            patient_id=patient_id,
            message=message,
            level=level,
            created_at=datetime.now(timezone.utc),
        )
        return alert_id

    async def mark_notified(self, alert_id: str, email_sent: bool, sms_sent: bool) -> None:
        record = self.alerts.get(alert_id)
        if record:
            self.alerts[alert_id] = record.model_copy(
                update={"notified_email": email_sent, "notified_sms": sms_sent}
            )

    async def set_resolved(self, alert_id: str, resolved: bool) -> AlertRecord | None:
        record = self.alerts.get(alert_id)
        if not record:
            return None
        record = record.model_copy(update={"resolved": resolved})
        self.alerts[alert_id] = record
        return record

    async def list_alerts(
        self, resolved: bool | None = None, limit: int = 50
    ) -> list[AlertRecord]:
        records = [
            record
            for record in reversed(list(self.alerts.values()))
            if resolved is None or record.resolved == resolved
        ]
        records.sort(key=lambda record: record.created_at, reverse=True)
        return records[:limit]


class FakeProfileStore:
    def __init__(self) -> None:
        self.profiles: dict[str, ProfileOut] = {}

    def add(self, user_id: str, full_name: str, phone_number: str | None = None) -> ProfileOut:
        profile = ProfileOut(
            id=user_id,
            full_name=full_name,
            phone_number=phone_number,
            status=AccountStatus.APPROVED,
            created_at=datetime.now(timezone.utc),
        )
        self.profiles[user_id] = profile
        return profile

    async def get_profile(self, user_id: str) -> ProfileOut | None:
        return self.profiles.get(user_id)


class FakeRoleStore:
    def __init__(self) -> None:
        self.roles: dict[str, list[Role]] = {}

    def grant(self, user_id: str, role: Role) -> None:
        self.roles.setdefault(user_id, []).append(role)

    async def list_user_ids(self, role: Role) -> list[str]:
        return [user_id for user_id, roles in self.roles.items() if role in roles]

    async def roles_for(self, user_id: str) -> list[Role]:
        return list(self.roles.get(user_id, []))


class FakeIdentityDirectory:
    def __init__(self) -> None:
        self.emails: dict[str, str] = {}

    async def lookup_email(self, user_id: str) -> str | None:
        return self.emails.get(user_id)


class FakeAuditLog:
    def __init__(self) -> None:
        self.entries: list[dict[str, Any]] = []

    async def append(self, user_id: str, action: str, details: dict[str, Any]) -> None:
        self.entries.append({"user_id": user_id, "action": action, "details": details})

    def actions(self) -> list[str]:
        return [entry["action"] for entry in self.entries]


class FakeEmailProvider:
    """
    Records sends. Addresses in ``failing`` get a provider rejection, addresses
    in ``raising`` make ``send`` raise like a broken client would.
    """

    def __init__(self, configured: bool = True) -> None:
        self._configured = configured
        self.sent: list[dict[str, str]] = []
        self.failing: set[str] = set()
        self.raising: set[str] = set()

    @property
    def configured(self) -> bool:
        return self._configured

    async def send(self, to: str, subject: str, html: str) -> NotificationOutcome:
        if to in self.raising:
            raise RuntimeError("client closed")
        if to in self.failing:
            return NotificationOutcome(
                channel=Channel.EMAIL,
                recipient=to,
                success=False,
                reason=OutcomeReason.FAILED,
                detail={"status_code": 422, "body": "rejected"},
            )
        self.sent.append({"to": to, "subject": subject, "html": html})
        return NotificationOutcome(
            channel=Channel.EMAIL, recipient=to, success=True, reason=OutcomeReason.SENT
        )


class FakeSmsProvider:
    def __init__(
        self, configured: bool = True, succeed: bool = True, error: Exception | None = None
    ) -> None:
        self._configured = configured
        self._succeed = succeed
        self._error = error
        self.sent: list[dict[str, str]] = []

    @property
    def configured(self) -> bool:
        return self._configured

    async def send(self, to: str, body: str) -> NotificationOutcome:
        if self._error:
            raise self._error
        self.sent.append({"to": to, "body": body})
        return NotificationOutcome(
            channel=Channel.SMS,
            recipient=to,
            success=self._succeed,
            reason=OutcomeReason.SENT if self._succeed else OutcomeReason.FAILED,
        )


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def alert_store() -> FakeAlertStore:
    return FakeAlertStore()


@pytest.fixture
def profile_store() -> FakeProfileStore:
    return FakeProfileStore()


@pytest.fixture
def role_store() -> FakeRoleStore:
    return FakeRoleStore()


@pytest.fixture
def identity() -> FakeIdentityDirectory:
    return FakeIdentityDirectory()


@pytest.fixture
def audit_log() -> FakeAuditLog:
    return FakeAuditLog()


@pytest.fixture
def email_provider() -> FakeEmailProvider:
    return FakeEmailProvider()


@pytest.fixture
def sms_provider() -> FakeSmsProvider:
    return FakeSmsProvider()


@pytest.fixture
def dispatcher(
    alert_store: FakeAlertStore,
    profile_store: FakeProfileStore,
    role_store: FakeRoleStore,
    identity: FakeIdentityDirectory,
    audit_log: FakeAuditLog,
    email_provider: FakeEmailProvider,
    sms_provider: FakeSmsProvider,
) -> NotificationDispatcher:
    return NotificationDispatcher(
        alert_store=alert_store,
        profile_store=profile_store,
        role_store=role_store,
        identity=identity,
        audit_log=audit_log,
        email_provider=email_provider,
        sms_provider=sms_provider,
    )


@pytest.fixture
def generator() -> SyntheticSignalGenerator:
    return SyntheticSignalGenerator(random.Random(1234))


@pytest.fixture
def vitals_source() -> VitalsSource:
    return LiveVitalsSource()


@pytest.fixture
def admin_id(role_store: FakeRoleStore) -> str:
    user_id = f"admin-{uuid.uuid4().hex[:8]}"
    role_store.grant(user_id, Role.ADMIN)
    return user_id


@pytest.fixture
def patient_id(role_store: FakeRoleStore, profile_store: FakeProfileStore) -> str:
    user_id = f"patient-{uuid.uuid4().hex[:8]}"
    role_store.grant(user_id, Role.PATIENT)
    profile_store.add(user_id, "Priya Sharma", phone_number="+15550001111")
    return user_id


@pytest.fixture
def overrides(
    alert_store: FakeAlertStore,
    profile_store: FakeProfileStore,
    role_store: FakeRoleStore,
    dispatcher: NotificationDispatcher,
    generator: SyntheticSignalGenerator,
    vitals_source: VitalsSource,
) -> Any:
    """
    Swap every Mongo-backed or process-wide dependency for the fakes above.

    ASGITransport does not run the lifespan, so nothing touches a real
    database or provider.
    """
    app.dependency_overrides[get_alert_store] = lambda: alert_store
    app.dependency_overrides[get_profile_store] = lambda: profile_store
    app.dependency_overrides[get_role_store] = lambda: role_store
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_signal_generator] = lambda: generator
    app.dependency_overrides[get_vitals_source] = lambda: vitals_source
    app.dependency_overrides[get_thresholds] = lambda: DEFAULT_THRESHOLDS
    yield app.dependency_overrides
    app.dependency_overrides.clear()


@pytest.fixture
async def client(overrides: Any) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
