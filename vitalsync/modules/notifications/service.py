import httpx
from fastapi import Request

from vitalsync.core.config import Settings, settings
from vitalsync.modules.alerts.service import alert_store
from vitalsync.modules.notifications.audit import MongoAuditLog
from vitalsync.modules.notifications.dispatcher import NotificationDispatcher
from vitalsync.modules.notifications.identity import HttpIdentityDirectory
from vitalsync.modules.notifications.providers import ResendEmailProvider, TwilioSmsProvider
from vitalsync.modules.profiles.service import profile_store, role_store

audit_log = MongoAuditLog()


def build_dispatcher(
    client: httpx.AsyncClient, config: Settings = settings
) -> NotificationDispatcher:
    """Wire the dispatcher to the Mongo stores and the configured providers."""
    return NotificationDispatcher(
        alert_store=alert_store,
        profile_store=profile_store,
        role_store=role_store,
        identity=HttpIdentityDirectory(
            client, config.IDENTITY_API_URL, config.IDENTITY_SERVICE_KEY
        ),
        audit_log=audit_log,
        email_provider=ResendEmailProvider(
            client, config.RESEND_API_KEY, config.ALERT_EMAIL_FROM
        ),
        sms_provider=TwilioSmsProvider(
            client,
            config.TWILIO_ACCOUNT_SID,
            config.TWILIO_AUTH_TOKEN,
            config.TWILIO_PHONE_NUMBER,
        ),
    )


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.dispatcher
