"""E2E public-key directory: anyone signed in may read, only the owner may write."""
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session

from app.api.deps import get_current_user_id
from app.core.database import get_db
from app.core.rate_limit import limiter, user_rate_limit
from app.schemas import PublicKeyResponse, PublicKeyUpsert
from app.services.key_directory import get_user_key, upsert_user_key

router = APIRouter(prefix="/keys", tags=["keys"])


@router.get("/{user_id}", response_model=PublicKeyResponse)
def get_public_key(
    user_id: str,
    _viewer: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    row = get_user_key(db, user_id)
    if not row:
        raise HTTPException(status_code=404, detail="No public key for this user.")
    return PublicKeyResponse(user_id=row.user_id, public_key=row.public_key)


@router.put("", response_model=PublicKeyResponse)
@limiter.limit(user_rate_limit)
def put_public_key(
    request: Request,
    data: PublicKeyUpsert,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    try:
        row = upsert_user_key(db, user_id, data.public_key.strip())
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Invalid public key: {e}")
    return PublicKeyResponse(user_id=row.user_id, public_key=row.public_key)
