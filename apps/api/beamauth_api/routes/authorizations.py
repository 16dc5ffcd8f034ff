"""Director's authorization routes."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from beamauth_api.authorization.store import AuthorizationStore
from beamauth_api.db.session import get_db

router = APIRouter(prefix="/authorizations", tags=["authorizations"])


class DestinationAuthorizationResponse(BaseModel):
    """Destination authorization response."""

    beam_destination_id: int
    authorization_id: int
    beam_mode: str
    cw_limit: Optional[float] = None
    expiration_date: Optional[datetime] = None
    comments: Optional[str] = None

    class Config:
        from_attributes = True


class AuthorizationResponse(BaseModel):
    """Authorization version response."""

    id: int
    authorization_date: datetime
    comments: Optional[str] = None
    modified_date: datetime
    destination_authorizations: list[DestinationAuthorizationResponse]

    class Config:
        from_attributes = True


@router.get("/current", response_model=AuthorizationResponse)
def get_current_authorization(db: Session = Depends(get_db)):
    """Get the current authorization version."""
    current = AuthorizationStore(db).find_current()
    if current is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No authorization has been issued",
        )
    return current
