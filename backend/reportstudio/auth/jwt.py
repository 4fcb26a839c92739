"""JWT token creation and decoding.

Token claims:
  - sub:   organization ID (drafts are owned by the organization)
  - type:  "access"
  - exp:   expiry timestamp
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from reportstudio.config import settings

ALGORITHM = settings.jwt_algorithm


def create_access_token(
    org_id: str,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {
        "sub": org_id,
        "type": "access",
        "exp": expire,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT. Returns empty dict on failure."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return {}
