import httpx
import structlog

log = structlog.get_logger()


class HttpIdentityDirectory:
    """Resolve user ids to email addresses through the identity provider's admin API."""

    def __init__(
        self, client: httpx.AsyncClient, base_url: str | None, service_key: str | None
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/") if base_url else None
        self._service_key = service_key

    @property
    def configured(self) -> bool:
        return bool(self._base_url and self._service_key)

    async def lookup_email(self, user_id: str) -> str | None:
        if not self.configured:
            log.warning("identity_directory_not_configured", user_id=user_id)
            return None
        try:
            response = await self._client.get(
                f"{self._base_url}/admin/users/{user_id}",
                headers={
                    "apikey": self._service_key,
                    "Authorization": f"Bearer {self._service_key}",
                },
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("identity_lookup_failed", user_id=user_id, error=str(exc))
            return None

        # Some deployments wrap the record as {"user": {...}}
        user = payload.get("user", payload) if isinstance(payload, dict) else {}
        email = user.get("email") if isinstance(user, dict) else None
        return email or None
