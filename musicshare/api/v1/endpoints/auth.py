# ============================================================================
# FILE: musicshare/api/v1/endpoints/auth.py
# ============================================================================
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from musicshare.db.session import get_db
from musicshare.api.dependencies import require_current_user
from musicshare.schemas.user import AuthResponse, Token, UserCreate, UserLogin, UserResponse
from musicshare.services.user_service import user_service
from musicshare.core.security import create_access_token
from musicshare.db.models.user import User
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

def _issue_token(user: User) -> str:
    return create_access_token(data={"sub": str(user.id)})

def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Incorrect email or password",
        headers={"WWW-Authenticate": "Bearer"},
    )

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: Session = Depends(get_db)
):
    """
    Register a new user account
    Returns an access token for the new user
    """
    # Check if username already exists
    if user_service.get_user_by_username(db, user_data.username):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already registered"
        )

    # Check if email already exists
    if user_service.get_user_by_email(db, user_data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    try:
        user = user_service.create_user(db, user_data)
    except IntegrityError:
        # Lost a race with a concurrent registration
        raise HTTPException(status_code=400, detail="Username or email already registered")
    except Exception as e:
        logger.error(f"Register error: {e}")
        raise HTTPException(status_code=500, detail="Failed to create user")

    return {"access_token": _issue_token(user), "token_type": "bearer", "user": user}

@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    db: Session = Depends(get_db)
):
    """
    Login with email and password
    Returns JWT access token
    """
    user = user_service.authenticate_user(db, credentials.email, credentials.password)
    if not user:
        raise _invalid_credentials()
    return {"access_token": _issue_token(user), "token_type": "bearer", "user": user}

@router.post("/token", response_model=Token)
async def login_form(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """
    OAuth2 password flow for the interactive docs
    The `username` form field carries the email address
    """
    user = user_service.authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise _invalid_credentials()
    return {"access_token": _issue_token(user), "token_type": "bearer"}

@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(require_current_user)
):
    """
    Get current user information
    Requires authentication
    """
    return current_user
