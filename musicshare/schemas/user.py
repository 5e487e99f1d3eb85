# ============================================================================
# FILE: musicshare/schemas/user.py
# ============================================================================
from pydantic import BaseModel, EmailStr, Field, StringConstraints
from typing import Annotated, Optional
from datetime import datetime

# Whitespace is stripped before the length check
Username = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=50)]

class UserCreate(BaseModel):
    """Schema for user registration"""
    username: Username
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)

class UserLogin(BaseModel):
    """Schema for user login"""
    email: EmailStr
    password: str

class UserUpdate(BaseModel):
    """Schema for profile updates; omitted fields keep their current value"""
    username: Optional[Username] = None
    email: Optional[EmailStr] = None

class UserResponse(BaseModel):
    """Schema for user response"""
    id: int
    username: str
    email: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class Token(BaseModel):
    """Schema for JWT token response"""
    access_token: str
    token_type: str = "bearer"

class AuthResponse(Token):
    """Token plus the authenticated user, returned by register and login"""
    user: UserResponse
