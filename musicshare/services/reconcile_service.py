# ============================================================================
# FILE: musicshare/services/reconcile_service.py
# Operator pass comparing song rows with the blobs they point at
# ============================================================================
from dataclasses import dataclass, field
from typing import List, Optional
import time
from sqlalchemy.orm import Session
from musicshare.config import settings
from musicshare.core.errors import DependencyFailure
from musicshare.core.storage import ObjectStore
from musicshare.db.models.song import Song
import logging

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    """Result of one scan"""
    missing_blobs: List[int] = field(default_factory=list)  # song ids whose blob is gone
    orphaned_keys: List[str] = field(default_factory=list)  # keys no row references
    unparseable_urls: List[int] = field(default_factory=list)  # song ids with foreign URLs
    skipped_recent: int = 0

    @property
    def consistent(self) -> bool:
        return not (self.missing_blobs or self.orphaned_keys or self.unparseable_urls)


def key_timestamp(key: str) -> Optional[float]:
    """Upload time (epoch seconds) encoded in a storage key, or None"""
    name = key.rsplit("/", 1)[-1]
    stamp = name.split("-", 1)[0]
    if not stamp.isdigit():
        return None
    return int(stamp) / 1e9


class ReconcileService:
    """
    Finds catalog rows and blobs that diverged after a partial failure.

    Blobs younger than grace_seconds are not reported as orphans, since an
    upload in flight has its blob written before its row.
    """

    def __init__(
        self,
        store: ObjectStore,
        key_prefix: str = settings.UPLOAD_KEY_PREFIX,
        grace_seconds: int = 3600,
    ):
        self.store = store
        self.key_prefix = key_prefix.strip("/")
        self.grace_seconds = grace_seconds

    def scan(self, db: Session, now: Optional[float] = None) -> ReconcileReport:
        now = time.time() if now is None else now
        report = ReconcileReport()

        # Rows before blobs: an upload landing between the two reads then shows
        # up as a recent unreferenced blob, which the grace window absorbs
        rows = db.query(Song.id, Song.file_url).order_by(Song.id).all()
        stored_keys = set(self.store.list_keys(f"{self.key_prefix}/"))
        referenced = set()

        for song_id, file_url in rows:
            try:
                key = self.store.key_from_url(file_url)
            except ValueError:
                report.unparseable_urls.append(song_id)
                continue
            referenced.add(key)
            if key not in stored_keys and self._still_missing(db, song_id, key):
                report.missing_blobs.append(song_id)

        for key in sorted(stored_keys - referenced):
            stamp = key_timestamp(key)
            if stamp is not None and now - stamp < self.grace_seconds:
                report.skipped_recent += 1
                continue
            report.orphaned_keys.append(key)

        logger.info(
            f"Reconcile scan: {len(stored_keys)} blobs, {len(referenced)} referenced, "
            f"{len(report.missing_blobs)} missing, {len(report.orphaned_keys)} orphaned, "
            f"{len(report.unparseable_urls)} unparseable"
        )
        return report

    def _still_missing(self, db: Session, song_id: int, key: str) -> bool:
        """Re-check a candidate; the song may have been deleted since the rows were read"""
        if db.query(Song.id).filter(Song.id == song_id).first() is None:
            return False
        return not self.store.exists(key)

    def remove_orphans(self, report: ReconcileReport) -> int:
        """Delete orphaned blobs; returns how many were removed"""
        removed = 0
        for key in report.orphaned_keys:
            try:
                self.store.delete(key)
                removed += 1
                logger.info(f"Removed orphaned blob {key}")
            except DependencyFailure as e:
                logger.error(f"Could not remove orphaned blob {key}: {e}")
        return removed
