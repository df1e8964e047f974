"""Authentication routes for login and current user"""
from fastapi import APIRouter, HTTPException, status, Depends
from pydantic import BaseModel
from typing import Dict, Any, Optional
from datetime import timedelta

import auth
import config
from services.user_directory import UserDirectory, get_user_directory

router = APIRouter()


class LoginRequest(BaseModel):
    """Login request model"""
    email: str
    password: str


class UserResponse(BaseModel):
    """User information response"""
    identity: str
    role: str
    employee_id: Optional[Any] = None
    employee_name: Optional[str] = None
    display_name: Optional[str] = None


class LoginResponse(BaseModel):
    """Login response model"""
    access_token: str
    token_type: str
    user: UserResponse


@router.post("/login", response_model=LoginResponse)
async def login(credentials: LoginRequest,
                directory: UserDirectory = Depends(get_user_directory)):
    """
    Authenticate user and return JWT token
    """
    user = auth.authenticate_user(credentials.email, credentials.password, directory)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token_expires = timedelta(minutes=config.settings.jwt_expire_minutes)
    access_token = auth.create_access_token(
        data={"sub": user["identity"]},
        expires_delta=access_token_expires
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": user
    }


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: Dict[str, Any] = Depends(auth.get_current_user)):
    """
    Get current authenticated user information
    """
    return current_user


@router.post("/logout")
async def logout():
    """
    Logout endpoint (client-side token removal)
    """
    return {"message": "Logged out successfully"}
