from typing import Any

from vitalsync.modules.notifications.models import AuditLog


class MongoAuditLog:
    """Append-only audit trail."""

    async def append(self, user_id: str, action: str, details: dict[str, Any]) -> None:
        await AuditLog(user_id=user_id, action=action, details=details).insert()
