# ============================================================================
# FILE: musicshare/services/catalog_service.py
# Upload/delete lifecycle and read paths for the song catalog
# ============================================================================
import math
import os
import re
import secrets
import time
from typing import Dict, List, Optional
from sqlalchemy import delete, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from musicshare.config import settings
from musicshare.core.errors import (
    DependencyFailure,
    NotFound,
    NotFoundOrUnauthorized,
    PartialFailure,
    ValidationError,
)
from musicshare.core.storage import ObjectStore
from musicshare.db.models.song import Song
from musicshare.db.models.user import User
from musicshare.schemas.music import SongResponse, SongUpload
import logging

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 255
MAX_FILENAME_LENGTH = 128
MAX_DURATION_SECONDS = 2**31 - 1  # songs.duration is a 32-bit INTEGER
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(filename: Optional[str]) -> str:
    """Reduce a client-supplied filename to a safe storage key segment"""
    name = os.path.basename((filename or "").replace("\\", "/"))
    name = _UNSAFE_FILENAME_CHARS.sub("_", name).lstrip(".")
    name = name[-MAX_FILENAME_LENGTH:]
    return name or "audio"


def report_partial_failure(failure: PartialFailure) -> None:
    """Log a cross-store inconsistency in a form the reconciliation pass can be matched against"""
    logger.error(f"INCONSISTENCY song_id={failure.song_id} key={failure.key}: {failure}")


class CatalogService:
    """
    Service layer for the song catalog.

    Uploads write the blob first and the row second; deletions remove the
    row first and the blob second. There is no transaction spanning both
    stores, so a failure between the two steps is logged as an
    inconsistency instead of being rolled back.
    """

    def __init__(
        self,
        store: ObjectStore,
        max_upload_bytes: int = settings.MAX_UPLOAD_BYTES,
        key_prefix: str = settings.UPLOAD_KEY_PREFIX,
    ):
        self.store = store
        self.max_upload_bytes = max_upload_bytes
        self.key_prefix = key_prefix.strip("/")

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def validate_upload(
        self,
        title: Optional[str],
        artist: Optional[str],
        album: Optional[str] = None,
        duration: Optional[str] = None,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
        data: Optional[bytes] = None,
    ) -> SongUpload:
        """
        Check raw upload input and build a SongUpload.
        Raises ValidationError with one message per offending field.
        """
        errors: Dict[str, str] = {}

        title = (title or "").strip()
        artist = (artist or "").strip()
        album = (album or "").strip() or None

        if not title:
            errors["title"] = "Title is required"
        elif len(title) > MAX_TEXT_LENGTH:
            errors["title"] = f"Title must be at most {MAX_TEXT_LENGTH} characters"

        if not artist:
            errors["artist"] = "Artist is required"
        elif len(artist) > MAX_TEXT_LENGTH:
            errors["artist"] = f"Artist must be at most {MAX_TEXT_LENGTH} characters"

        if album is not None and len(album) > MAX_TEXT_LENGTH:
            errors["album"] = f"Album must be at most {MAX_TEXT_LENGTH} characters"

        parsed_duration = None
        raw_duration = "" if duration is None else str(duration).strip()
        if raw_duration:
            try:
                value = float(raw_duration)
            except ValueError:
                value = None
            if value is None or not math.isfinite(value):
                errors["duration"] = "Duration must be a number"
            elif value < 0:
                errors["duration"] = "Duration must not be negative"
            elif value > MAX_DURATION_SECONDS:
                errors["duration"] = f"Duration must be at most {MAX_DURATION_SECONDS} seconds"
            else:
                parsed_duration = int(value)

        if data is None:
            errors["audio"] = "Audio file is required"
        elif not (content_type or "").lower().startswith("audio/"):
            errors["audio"] = "Only audio files are allowed"
        elif len(data) > self.max_upload_bytes:
            errors["audio"] = f"Audio file exceeds the {self.max_upload_bytes} byte limit"
        elif len(data) == 0:
            errors["audio"] = "Audio file is empty"

        if errors:
            logger.warning(f"Upload rejected: {errors}")
            raise ValidationError(errors)

        return SongUpload(
            title=title,
            artist=artist,
            album=album,
            duration=parsed_duration,
            filename=filename or "audio",
            content_type=content_type,
            data=data,
        )

    def build_storage_key(self, filename: Optional[str]) -> str:
        """<prefix>/<ns timestamp>-<random>-<sanitized filename>"""
        unique_suffix = f"{time.time_ns()}-{secrets.randbelow(10**9)}"
        return f"{self.key_prefix}/{unique_suffix}-{sanitize_filename(filename)}"

    def upload_song(self, db: Session, user_id: int, upload: SongUpload) -> SongResponse:
        """
        Store the blob, then insert the catalog row referencing its URL.
        Returns the new row joined with the uploader's username.
        """
        try:
            uploader_name = db.query(User.username).filter(User.id == user_id).scalar()
        except SQLAlchemyError as e:
            logger.error(f"Error looking up uploader {user_id}: {e}")
            raise DependencyFailure("Could not look up uploader") from e

        key = self.build_storage_key(upload.filename)

        # A failed put leaves nothing behind
        file_url = self.store.put(key, upload.data, upload.content_type)
        logger.info(f"Stored blob {key} ({upload.size} bytes) for user {user_id}")

        # Any failure before the commit completes must not strand the blob
        try:
            song = Song(
                title=upload.title,
                artist=upload.artist,
                album=upload.album,
                duration=upload.duration,
                file_url=file_url,
                user_id=user_id,
            )
            db.add(song)
            db.flush()
            # Built before commit so nothing has to be re-read once the row is durable
            response = self._to_response(song, uploader_name)
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Error saving song row for blob {key}: {e}")
            self._discard_blob(key)
            raise DependencyFailure("Could not save song") from e

        logger.info(f"Song uploaded: {response.id} by user {user_id}")
        return response

    def _discard_blob(self, key: str) -> None:
        """Single compensating delete after a failed row insert; no retry"""
        try:
            self.store.delete(key)
            logger.info(f"Discarded blob {key} after failed insert")
        except DependencyFailure:
            report_partial_failure(
                PartialFailure("Blob stored but song row was not created", key=key)
            )

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete_song(self, db: Session, song_id: int, user_id: int) -> SongResponse:
        """
        Delete a song owned by user_id and then its blob.
        Raises NotFoundOrUnauthorized when no row matches both ids.
        """
        stmt = (
            delete(Song)
            .where(Song.id == song_id, Song.user_id == user_id)
            .returning(
                Song.id,
                Song.title,
                Song.artist,
                Song.album,
                Song.duration,
                Song.file_url,
                Song.user_id,
                Song.created_at,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            row = db.execute(stmt).first()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error deleting song {song_id}: {e}")
            raise DependencyFailure("Could not delete song") from e

        if row is None:
            raise NotFoundOrUnauthorized(f"Song {song_id} not found or not owned by user {user_id}")

        deleted = SongResponse(**row._mapping)
        logger.info(f"Song row deleted: {song_id} by user {user_id}")

        try:
            key = self.store.key_from_url(deleted.file_url)
        except ValueError:
            report_partial_failure(
                PartialFailure("Song row deleted but its URL maps to no known key", song_id=song_id)
            )
            return deleted

        try:
            self.store.delete(key)
            logger.info(f"Blob deleted: {key}")
        except DependencyFailure:
            report_partial_failure(
                PartialFailure("Song row deleted but blob delete failed", key=key, song_id=song_id)
            )
        return deleted

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def _to_response(song: Song, uploader_name: Optional[str] = None) -> SongResponse:
        response = SongResponse.model_validate(song)
        response.uploader_name = uploader_name
        return response

    @staticmethod
    def _newest_first(query):
        return query.order_by(Song.created_at.desc(), Song.id.desc())

    def _with_uploader(self, db: Session):
        return db.query(Song, User.username.label("uploader_name")).join(User, Song.user_id == User.id)

    def list_songs(self, db: Session, limit: int = 50, offset: int = 0) -> List[SongResponse]:
        """All songs, newest first, with uploader name"""
        try:
            rows = self._newest_first(self._with_uploader(db)).limit(limit).offset(offset).all()
        except SQLAlchemyError as e:
            logger.error(f"Error listing songs: {e}")
            raise DependencyFailure("Could not list songs") from e
        return [self._to_response(song, name) for song, name in rows]

    def get_song(self, db: Session, song_id: int) -> SongResponse:
        """Single song with uploader name; raises NotFound"""
        try:
            row = self._with_uploader(db).filter(Song.id == song_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching song {song_id}: {e}")
            raise DependencyFailure("Could not fetch song") from e
        if row is None:
            raise NotFound(f"Song {song_id} not found")
        song, name = row
        return self._to_response(song, name)

    def get_user_songs(self, db: Session, user_id: int, limit: int = 50, offset: int = 0) -> List[SongResponse]:
        """Songs owned by user_id, newest first"""
        try:
            songs = (
                self._newest_first(db.query(Song).filter(Song.user_id == user_id))
                .limit(limit)
                .offset(offset)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error fetching songs for user {user_id}: {e}")
            raise DependencyFailure("Could not fetch user songs") from e
        return [self._to_response(song) for song in songs]

    def search_songs(self, db: Session, term: str, limit: int = 50, offset: int = 0) -> List[SongResponse]:
        """Case-insensitive substring match on title, artist or album"""
        escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        try:
            rows = (
                self._newest_first(
                    self._with_uploader(db).filter(
                        or_(
                            Song.title.ilike(pattern, escape="\\"),
                            Song.artist.ilike(pattern, escape="\\"),
                            Song.album.ilike(pattern, escape="\\"),
                        )
                    )
                )
                .limit(limit)
                .offset(offset)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error searching songs for '{term}': {e}")
            raise DependencyFailure("Could not search songs") from e
        return [self._to_response(song, name) for song, name in rows]
