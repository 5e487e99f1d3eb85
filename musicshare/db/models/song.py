# ============================================================================
# FILE: musicshare/db/models/song.py
# ============================================================================
from sqlalchemy import CheckConstraint, Column, Integer, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from musicshare.db.base import Base

class Song(Base):
    """Catalog entry for an uploaded audio file"""
    __tablename__ = "songs"
    __table_args__ = (
        CheckConstraint("duration IS NULL OR duration >= 0", name="ck_songs_duration_non_negative"),
        Index("ix_songs_created_at", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    artist = Column(String(255), nullable=False)
    album = Column(String(255), nullable=True)
    duration = Column(Integer, nullable=True)  # Duration in seconds
    file_url = Column(String(1024), nullable=False)  # Set once at upload, never replaced
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="songs")
