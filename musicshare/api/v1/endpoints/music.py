# ============================================================================
# FILE: musicshare/api/v1/endpoints/music.py
# ============================================================================
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from typing import Optional
from musicshare.db.session import get_db
from musicshare.api.dependencies import get_catalog_service, require_current_user
from musicshare.config import settings
from musicshare.core.errors import (
    DependencyFailure,
    NotFound,
    NotFoundOrUnauthorized,
    ValidationError,
)
from musicshare.schemas.music import (
    MessageResponse,
    SongDetailResponse,
    SongListResponse,
    SongUploadResponse,
)
from musicshare.services.catalog_service import CatalogService
from musicshare.db.models.user import User
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("", response_model=SongListResponse)
async def list_songs(
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Songs per page"),
    search: Optional[str] = Query(None, description="Substring to match in title, artist or album"),
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service)
):
    """
    List the catalog, newest first
    With `search`, only songs whose title, artist or album contain it
    """
    offset = (page - 1) * limit
    try:
        if search:
            songs = catalog.search_songs(db, search, limit, offset)
        else:
            songs = catalog.list_songs(db, limit, offset)
    except DependencyFailure as e:
        logger.error(f"Get songs error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
    return {"songs": songs, "page": page, "limit": limit}

@router.post("/upload", response_model=SongUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_song(
    title: Optional[str] = Form(None),
    artist: Optional[str] = Form(None),
    album: Optional[str] = Form(None),
    duration: Optional[str] = Form(None),
    audio: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user),
    catalog: CatalogService = Depends(get_catalog_service)
):
    """
    Upload an audio file with its metadata
    Requires authentication
    """
    data = filename = content_type = None
    if audio is not None:
        # One byte past the ceiling is enough to tell that it was exceeded
        data = await audio.read(catalog.max_upload_bytes + 1)
        filename = audio.filename
        content_type = audio.content_type
        await audio.close()

    try:
        upload = catalog.validate_upload(
            title=title,
            artist=artist,
            album=album,
            duration=duration,
            filename=filename,
            content_type=content_type,
            data=data,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Validation failed", "errors": e.errors}
        )

    try:
        # Blob write of up to MAX_UPLOAD_BYTES; keep it off the event loop
        song = await run_in_threadpool(catalog.upload_song, db, current_user.id, upload)
    except DependencyFailure as e:
        logger.error(f"Upload error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
    return {"message": "Song uploaded successfully", "song": song}

@router.get("/user/{user_id}", response_model=SongListResponse)
async def get_user_songs(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service)
):
    """Songs uploaded by one user, newest first"""
    offset = (page - 1) * limit
    try:
        songs = catalog.get_user_songs(db, user_id, limit, offset)
    except DependencyFailure as e:
        logger.error(f"Get user songs error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
    return {"songs": songs, "page": page, "limit": limit}

@router.get("/{song_id}", response_model=SongDetailResponse)
async def get_song(
    song_id: int,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service)
):
    try:
        song = catalog.get_song(db, song_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Song not found")
    except DependencyFailure as e:
        logger.error(f"Get song error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
    return {"song": song}

@router.delete("/{song_id}", response_model=MessageResponse)
async def delete_song(
    song_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user),
    catalog: CatalogService = Depends(get_catalog_service)
):
    """
    Delete one of your own songs
    Requires authentication and ownership
    """
    try:
        catalog.delete_song(db, song_id, current_user.id)
    except NotFoundOrUnauthorized:
        raise HTTPException(status_code=404, detail="Song not found or unauthorized")
    except DependencyFailure as e:
        logger.error(f"Delete song error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
    return {"message": "Song deleted successfully"}
