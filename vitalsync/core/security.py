from datetime import datetime, timedelta, timezone
from typing import Any, Union

from jose import jwt

from vitalsync.core.config import settings

ALGORITHM = settings.TOKEN_ALGORITHM
# Must match the identity provider's signing secret in every deployed environment.
SECRET_KEY = settings.SECRET_KEY or "vitalsync-local-development-secret"


def create_access_token(
    subject: Union[str, Any], expires_delta: Union[timedelta, None] = None
) -> str:
    """Mint a token shaped like the identity provider's (used by scripts and tests)."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {"exp": expire, "sub": str(subject)}
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> str | None:
    """Return the subject of a valid token; raises JWTError on bad signatures or expiry."""
    payload = jwt.decode(
        token, SECRET_KEY, algorithms=[ALGORITHM], options={"verify_aud": False}
    )
    subject = payload.get("sub")
    return str(subject) if subject else None
