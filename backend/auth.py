"""
Authentication module using JWT tokens.
Handles user login, token generation, and role checks.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from passlib.context import CryptContext
import logging

from config import settings
from models import Role
from services.user_directory import UserDirectory, get_user_directory

logger = logging.getLogger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# HTTP Bearer token scheme
security = HTTPBearer()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password"""
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token"""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and validate a JWT token"""
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        return None


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """User dict without the password"""
    return {k: v for k, v in user.items() if k != "password"}


def authenticate_user(identity: str, password: str,
                      directory: Optional[UserDirectory] = None) -> Optional[Dict[str, Any]]:
    """
    Authenticate a user against the directory.
    Returns the user (without password) if successful, None otherwise.

    Stored passwords may be bcrypt hashes or plain text.
    """
    directory = directory or get_user_directory()
    user = directory.lookup_user(identity)

    if not user:
        logger.warning(f"User not found: {identity}")
        return None

    stored_password = user.get("password")
    if not stored_password:
        logger.warning(f"No password configured for user: {identity}")
        return None

    if stored_password.startswith("$2b$") or stored_password.startswith("$2a$"):
        valid = verify_password(password, stored_password)
    else:
        valid = password == stored_password

    if not valid:
        logger.warning(f"Invalid password for user: {identity}")
        return None

    logger.info(f"User authenticated: {identity} ({user['role']})")
    return public_user(user)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    directory: UserDirectory = Depends(get_user_directory),
) -> Dict[str, Any]:
    """
    Dependency to get current authenticated user from JWT token.
    Raises HTTPException if token is invalid or expired.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise credentials_exception

    identity: str = payload.get("sub")
    if identity is None:
        logger.warning("Identity in payload is None")
        raise credentials_exception

    user = directory.lookup_user(identity)
    if user is None:
        logger.warning(f"User not found in directory: {identity}")
        raise credentials_exception

    return public_user(user)


async def require_admin(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    """Dependency that only lets admins through"""
    if current_user.get("role") != Role.ADMIN.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


async def require_team(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    """Dependency for users who log sessions (team members and admins)"""
    if current_user.get("role") not in (Role.ADMIN.value, Role.TEAM.value):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Team access required")
    return current_user
