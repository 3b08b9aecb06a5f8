"""
Outbound email and SMS over the providers' HTTP APIs.

Providers never raise for delivery problems: timeouts, transport errors and
non-2xx answers come back as failed ``NotificationOutcome`` values so one bad
recipient cannot sink a dispatch.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from vitalsync.modules.notifications.exceptions import ChannelNotConfigured
from vitalsync.modules.notifications.models import (
    Channel,
    NotificationOutcome,
    OutcomeReason,
)

log = structlog.get_logger()

RESEND_API_URL = "https://api.resend.com/emails"
TWILIO_API_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"
ERROR_BODY_LIMIT = 500


def _failed(channel: Channel, recipient: str, **detail: Any) -> NotificationOutcome:
    return NotificationOutcome(
        channel=channel,
        recipient=recipient,
        success=False,
        reason=OutcomeReason.FAILED,
        detail=detail,
    )


async def _post(
    client: httpx.AsyncClient,
    channel: Channel,
    recipient: str,
    url: str,
    **request_kwargs: Any,
) -> NotificationOutcome:
    try:
        response = await client.post(url, **request_kwargs)
    except httpx.TimeoutException:
        log.warning("notification_timeout", channel=channel.value, recipient=recipient)
        return _failed(channel, recipient, error="timeout")
    except httpx.HTTPError as exc:
        log.warning(
            "notification_transport_error",
            channel=channel.value,
            recipient=recipient,
            error=str(exc),
        )
        return _failed(channel, recipient, error=str(exc))

    if response.is_success:
        return NotificationOutcome(
            channel=channel,
            recipient=recipient,
            success=True,
            reason=OutcomeReason.SENT,
            detail={"status_code": response.status_code},
        )

    log.warning(
        "notification_rejected",
        channel=channel.value,
        recipient=recipient,
        status_code=response.status_code,
    )
    return _failed(
        channel,
        recipient,
        status_code=response.status_code,
        body=response.text[:ERROR_BODY_LIMIT],
    )


class ResendEmailProvider:
    channel = Channel.EMAIL

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str | None,
        sender: str,
        url: str = RESEND_API_URL,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._sender = sender
        self._url = url

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def send(self, to: str, subject: str, html: str) -> NotificationOutcome:
        if not self.configured:
            raise ChannelNotConfigured(self.channel.value)
        return await _post(
            self._client,
            self.channel,
            to,
            self._url,
            headers={"Authorization": f"Bearer {self._api_key}"},
            json={"from": self._sender, "to": [to], "subject": subject, "html": html},
        )


class TwilioSmsProvider:
    channel = Channel.SMS

    def __init__(
        self,
        client: httpx.AsyncClient,
        account_sid: str | None,
        auth_token: str | None,
        from_number: str | None,
    ) -> None:
        self._client = client
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number

    @property
    def configured(self) -> bool:
        return bool(self._account_sid and self._auth_token and self._from_number)

    async def send(self, to: str, body: str) -> NotificationOutcome:
        if not self.configured:
            raise ChannelNotConfigured(self.channel.value)
        return await _post(
            self._client,
            self.channel,
            to,
            TWILIO_API_URL.format(sid=self._account_sid),
            auth=(self._account_sid, self._auth_token),
            data={"To": to, "From": self._from_number, "Body": body},
        )
