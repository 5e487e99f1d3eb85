# ============================================================================
# FILE: musicshare/api/v1/endpoints/users.py
# ============================================================================
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from musicshare.db.session import get_db
from musicshare.api.dependencies import require_current_user
from musicshare.schemas.user import UserResponse, UserUpdate
from musicshare.services.user_service import user_service
from musicshare.db.models.user import User
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/profile", response_model=UserResponse)
async def get_profile(
    current_user: User = Depends(require_current_user)
):
    return current_user

@router.put("/profile", response_model=UserResponse)
async def update_profile(
    update_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    """
    Update username and/or email
    Requires authentication
    """
    if update_data.username is not None:
        existing = user_service.get_user_by_username(db, update_data.username)
        if existing and existing.id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Username already registered"
            )

    if update_data.email is not None:
        existing = user_service.get_user_by_email(db, update_data.email)
        if existing and existing.id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

    try:
        return user_service.update_profile(db, current_user, update_data)
    except IntegrityError:
        raise HTTPException(status_code=400, detail="Username or email already registered")
    except Exception as e:
        logger.error(f"Update profile error: {e}")
        raise HTTPException(status_code=500, detail="Failed to update profile")
