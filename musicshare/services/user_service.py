# ============================================================================
# FILE: musicshare/services/user_service.py
# ============================================================================
from typing import Optional
from sqlalchemy.orm import Session
from musicshare.db.models.user import User
from musicshare.schemas.user import UserCreate, UserUpdate
from musicshare.core.security import get_password_hash, verify_password
import logging

logger = logging.getLogger(__name__)

class UserService:
    """Service layer for user operations"""

    def create_user(self, db: Session, user_data: UserCreate) -> User:
        """Create a new user account"""
        try:
            user = User(
                username=user_data.username,
                email=user_data.email.lower(),
                password_hash=get_password_hash(user_data.password)
            )
            db.add(user)
            db.commit()
            db.refresh(user)
            logger.info(f"User created: {user.id} ({user.username})")
            return user
        except Exception as e:
            db.rollback()
            logger.error(f"Error creating user: {e}")
            raise

    def get_user_by_id(self, db: Session, user_id: int) -> Optional[User]:
        return db.get(User, user_id)

    def get_user_by_username(self, db: Session, username: str) -> Optional[User]:
        """Get user by username"""
        return db.query(User).filter(User.username == username).first()

    def get_user_by_email(self, db: Session, email: str) -> Optional[User]:
        """Get user by email"""
        return db.query(User).filter(User.email == email.lower()).first()

    def authenticate_user(self, db: Session, email: str, password: str) -> Optional[User]:
        """Authenticate user with email and password"""
        user = self.get_user_by_email(db, email)
        if not user:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user

    def update_profile(self, db: Session, user: User, update_data: UserUpdate) -> User:
        """Update username and/or email"""
        try:
            if update_data.username is not None:
                user.username = update_data.username
            if update_data.email is not None:
                user.email = update_data.email.lower()

            db.commit()
            db.refresh(user)
            logger.info(f"Profile updated: {user.id}")
            return user
        except Exception as e:
            db.rollback()
            logger.error(f"Error updating profile: {e}")
            raise

# Create singleton instance
user_service = UserService()
