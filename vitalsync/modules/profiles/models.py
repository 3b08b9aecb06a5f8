from datetime import datetime, timezone
from typing import Optional

from beanie import Document, Indexed
from pydantic import Field
from pymongo import IndexModel

from vitalsync.shared.constants import AccountStatus, Role


class Profile(Document):
    """Account profile keyed by the identity provider's user id."""

    user_id: Indexed(str, unique=True)  # type: ignore
    full_name: str = ""
    phone_number: Optional[str] = None
    status: AccountStatus = AccountStatus.PENDING
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_seen: Optional[datetime] = None

    class Settings:
        name = "profiles"


class UserRole(Document):
    user_id: str
    role: Role

    class Settings:
        name = "user_roles"
        indexes = [
            IndexModel([("user_id", 1), ("role", 1)], unique=True),
            IndexModel([("role", 1)]),
        ]
