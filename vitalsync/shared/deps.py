from dataclasses import dataclass, field
from typing import List

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from vitalsync.core import security
from vitalsync.modules.profiles.service import get_role_store
from vitalsync.modules.profiles.store import MongoRoleStore
from vitalsync.shared.constants import Role

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    id: str
    roles: List[Role] = field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return Role.ADMIN in self.roles


async def resolve_user(token: str, role_store: MongoRoleStore) -> CurrentUser | None:
    """Decode an identity-provider token and load the user's roles; None if invalid."""
    try:
        user_id = security.decode_access_token(token)
    except (JWTError, ValueError):
        return None
    if not user_id:
        return None
    roles = await role_store.roles_for(user_id)
    return CurrentUser(id=user_id, roles=roles)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    role_store: MongoRoleStore = Depends(get_role_store),
) -> CurrentUser:
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = await resolve_user(credentials.credentials, role_store)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Could not validate credentials",
        )
    return user


class RoleChecker:
    def __init__(self, allowed_roles: List[Role], allow_admin: bool = True) -> None:
        self.allowed_roles = allowed_roles
        self.allow_admin = allow_admin

    def __call__(self, user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if self.allow_admin and user.is_admin:
            return user

        if set(user.roles).intersection(self.allowed_roles):
            return user

        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions",
        )


require_admin = RoleChecker([Role.ADMIN])


def check_patient_access(patient_id: str, user: CurrentUser) -> None:
    """Patients may only see their own vitals; admins see everyone's."""
    if user.is_admin:
        return
    if patient_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions to access this patient",
        )
