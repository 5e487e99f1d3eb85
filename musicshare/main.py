# ============================================================================
# FILE: musicshare/main.py
# ============================================================================
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from musicshare.api.v1.router import api_router
from musicshare.core.logging import setup_logging
from musicshare.core.storage import S3ObjectStore
from musicshare.config import settings
import logging

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

# Create FastAPI app instance
app = FastAPI(
    title="MusicShare API",
    description="Upload, browse and search shared music",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API v1 router
app.include_router(api_router, prefix="/api/v1")

@app.on_event("startup")
async def startup_event():
    """Initialize services on startup"""
    logger.info("Starting MusicShare API")
    # Create database tables if they do not exist yet
    from musicshare.db.base import Base
    from musicshare.db.session import engine
    import musicshare.db.models  # noqa: F401
    Base.metadata.create_all(bind=engine)

    if getattr(app.state, "object_store", None) is None:
        app.state.object_store = S3ObjectStore.from_settings()

@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info("Shutting down MusicShare API")

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

@app.get("/")
async def root():
    return {"message": "MusicShare API", "version": "1.0.0", "docs": "/docs"}
