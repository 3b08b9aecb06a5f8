from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from vitalsync.core.config import settings
from vitalsync.modules.alerts.models import Alert
from vitalsync.modules.notifications.models import AuditLog
from vitalsync.modules.profiles.models import Profile, UserRole

MONGO_CLIENT: AsyncIOMotorClient | None = None


async def init_db() -> AsyncIOMotorClient:
    """
    Create a single Motor client, initialize Beanie, and return the client.

    This should be called exactly once at app startup.
    """
    global MONGO_CLIENT

    client = AsyncIOMotorClient(
        settings.MONGODB_URL,
        uuidRepresentation="standard",
        serverSelectionTimeoutMS=5000,
    )

    db: AsyncIOMotorDatabase = client[settings.MONGODB_DB_NAME]

    await init_beanie(
        database=db,
        document_models=[
            Alert,
            AuditLog,
            Profile,
            UserRole,
        ],
    )

    MONGO_CLIENT = client
    return client
