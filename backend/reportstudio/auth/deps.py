"""FastAPI dependency resolving the calling organization from its JWT."""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from reportstudio.auth.jwt import decode_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


async def get_current_org(token: str = Depends(oauth2_scheme)) -> str:
    """Return the organization id (`sub`) of a valid access token."""
    payload = decode_token(token)
    org_id: str | None = payload.get("sub")
    if not org_id or payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return org_id
