# ============================================================================
# FILE: musicshare/api/dependencies.py
# ============================================================================
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from musicshare.db.session import get_db
from musicshare.core.security import decode_access_token
from musicshare.core.storage import ObjectStore, S3ObjectStore
from musicshare.db.models.user import User
from musicshare.services.catalog_service import CatalogService
from typing import Optional

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)

def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """
    Get current authenticated user from JWT token
    Returns None if no token or invalid token (allows anonymous access)
    """
    if not token:
        return None

    try:
        payload = decode_access_token(token)
        user_id = int(payload.get("sub"))
    except (HTTPException, TypeError, ValueError):
        return None

    return db.get(User, user_id)

def require_current_user(
    current_user: Optional[User] = Depends(get_current_user)
) -> User:
    """
    Require authenticated user (raises 401 if not authenticated)
    Use this dependency for protected endpoints
    """
    if current_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current_user

def get_object_store(request: Request) -> ObjectStore:
    """Process-wide object store, created on startup (or on first use)"""
    store = getattr(request.app.state, "object_store", None)
    if store is None:
        store = S3ObjectStore.from_settings()
        request.app.state.object_store = store
    return store

def get_catalog_service(
    store: ObjectStore = Depends(get_object_store)
) -> CatalogService:
    return CatalogService(store)
