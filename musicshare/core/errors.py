# ============================================================================
# FILE: musicshare/core/errors.py
# Catalog error taxonomy, translated to HTTP status codes by the endpoints
# ============================================================================
from typing import Dict, Optional


class CatalogError(Exception):
    """Base class for catalog failures"""


class ValidationError(CatalogError):
    """Bad or missing upload input; carries one message per offending field"""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        fields = ", ".join(sorted(self.errors))
        super().__init__(f"Invalid fields: {fields}")


class NotFound(CatalogError):
    """Read target does not exist"""


class NotFoundOrUnauthorized(CatalogError):
    """
    Deletion target does not exist or is not owned by the caller.
    The two cases are deliberately indistinguishable to the caller.
    """


class DependencyFailure(CatalogError):
    """Database or object store unreachable, or rejected the request"""


class PartialFailure(CatalogError):
    """
    One store was mutated and the other was not.
    Logged for reconciliation, never returned to HTTP callers.
    """

    def __init__(self, message: str, key: Optional[str] = None, song_id: Optional[int] = None):
        self.key = key
        self.song_id = song_id
        super().__init__(message)
