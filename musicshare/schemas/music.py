# ============================================================================
# FILE: musicshare/schemas/music.py
# ============================================================================
from pydantic import BaseModel, ConfigDict
from typing import Optional, List
from datetime import datetime

class SongUpload(BaseModel):
    """Validated upload request handed to the catalog service"""
    model_config = ConfigDict(extra="forbid", frozen=True)

    title: str
    artist: str
    album: Optional[str] = None
    duration: Optional[int] = None  # Duration in seconds
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

class SongResponse(BaseModel):
    """Schema for a catalog entry"""
    id: int
    title: str
    artist: str
    album: Optional[str] = None
    duration: Optional[int] = None
    file_url: str
    user_id: int
    created_at: datetime
    uploader_name: Optional[str] = None  # Only set where the users join is done

    class Config:
        from_attributes = True

class SongListResponse(BaseModel):
    """Schema for a page of songs"""
    songs: List[SongResponse]
    page: int
    limit: int

class SongDetailResponse(BaseModel):
    song: SongResponse

class SongUploadResponse(BaseModel):
    message: str
    song: SongResponse

class MessageResponse(BaseModel):
    message: str
