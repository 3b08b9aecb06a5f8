from vitalsync.modules.profiles.models import Profile, UserRole
from vitalsync.modules.profiles.schemas import ProfileOut
from vitalsync.shared.constants import Role


class MongoProfileStore:
    async def get_profile(self, user_id: str) -> ProfileOut | None:
        profile = await Profile.find_one(Profile.user_id == user_id)
        if not profile:
            return None
        return ProfileOut(
            id=profile.user_id,
            full_name=profile.full_name,
            phone_number=profile.phone_number,
            status=profile.status,
            created_at=profile.created_at,
            last_seen=profile.last_seen,
        )


class MongoRoleStore:
    async def list_user_ids(self, role: Role) -> list[str]:
        rows = await UserRole.find(UserRole.role == role).to_list()
        return [row.user_id for row in rows]

    async def roles_for(self, user_id: str) -> list[Role]:
        rows = await UserRole.find(UserRole.user_id == user_id).to_list()
        return [row.role for row in rows]
