import httpx
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.security import decode_access_token

security = HTTPBearer(auto_error=False)


def user_id_from_credentials(credentials: HTTPAuthorizationCredentials | None) -> str:
    """Identity (token `sub`) of the caller; 401 when missing, invalid or expired."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_access_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return str(payload["sub"])


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    return user_id_from_credentials(credentials)


def get_push_client(request: Request) -> httpx.AsyncClient:
    """App-wide outbound client for push services (opened in the lifespan); overridden in tests."""
    return request.app.state.push_client
