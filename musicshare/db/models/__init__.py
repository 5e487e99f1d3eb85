from musicshare.db.models.user import User
from musicshare.db.models.song import Song

__all__ = ["User", "Song"]
