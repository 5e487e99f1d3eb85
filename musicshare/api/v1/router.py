# ============================================================================
# FILE: musicshare/api/v1/router.py
# ============================================================================
from fastapi import APIRouter
from musicshare.api.v1.endpoints import auth, music, users

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(music.router, prefix="/music", tags=["music"])
