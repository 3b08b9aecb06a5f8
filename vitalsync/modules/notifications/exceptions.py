class DispatchError(Exception):
    """Base class for failures that end a dispatch request."""

    status_code = 500


class PayloadValidationError(DispatchError):
    """The alert payload is incomplete; nothing was written or sent."""

    status_code = 400


class AlertPersistenceError(DispatchError):
    """The alert row could not be stored; no notification was attempted."""


class ChannelNotConfigured(Exception):
    """A provider has no credentials. Treated as a deliberate skip."""

    def __init__(self, channel: str) -> None:
        super().__init__(f"{channel} provider not configured")
        self.channel = channel
