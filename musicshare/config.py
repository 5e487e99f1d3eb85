# ============================================================================
# FILE: musicshare/config.py
# ============================================================================
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    """Application configuration using Pydantic BaseSettings"""

    # App settings
    APP_NAME: str = "MusicShare"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./musicshare.db"  # Change to PostgreSQL in production

    # Security
    SECRET_KEY: str = "your-secret-key-change-this-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Object storage (AWS S3 or any S3-compatible endpoint)
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    AWS_REGION: str = "us-east-1"
    AWS_S3_BUCKET: str = "musicshare-uploads"
    S3_ENDPOINT_URL: Optional[str] = None
    S3_PUBLIC_BASE_URL: Optional[str] = None  # e.g. a CDN in front of the bucket
    S3_OBJECT_ACL: str = "public-read"  # empty string skips the ACL header

    # Uploads
    UPLOAD_KEY_PREFIX: str = "music"
    MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 50

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
