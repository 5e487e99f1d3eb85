# ============================================================================
# FILE: musicshare/core/logging.py
# ============================================================================
import logging
import sys
from musicshare.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

def setup_logging(level: str = None) -> None:
    """
    Configure the root logger for the API process.
    Safe to call more than once; the stdout handler is only added the first time.
    """
    if level is None:
        level = "DEBUG" if settings.DEBUG else settings.LOG_LEVEL

    root = logging.getLogger()
    root.setLevel(level.upper())

    has_stream = any(
        isinstance(handler, logging.StreamHandler) and getattr(handler, "_musicshare", False)
        for handler in root.handlers
    )
    if not has_stream:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        handler._musicshare = True
        root.addHandler(handler)

    # Keep library chatter out of the application log
    for noisy in ("botocore", "boto3", "s3transfer", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
