import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session, joinedload

from . import models
from .config import Settings
from .database import get_db

security_logger = logging.getLogger("hms.security")

pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__rounds=4,
    argon2__memory_cost=65536,
    argon2__parallelism=1,
)

bearer_scheme = HTTPBearer(auto_error=False)


# Password utilities
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unrecognised hash format
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


# JWT utilities
def create_access_token(settings: Settings, user: models.User, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed access token carrying the user id and role."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode = {
        "sub": str(user.id),
        "role": user.role.value,
        "type": "access",
        "iat": now,
        "exp": expire,
        "jti": secrets.token_urlsafe(16),
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def verify_token(settings: Settings, token: str, token_type: str = "access") -> Optional[Dict[str, Any]]:
    """Verify and decode JWT token"""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if payload.get("type") != token_type:
        return None
    return payload


# Dependencies for FastAPI
def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> models.User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_token(request.app.state.settings, credentials.credentials)
    if payload is None:
        security_logger.info(f"Rejected invalid or expired token on {request.url.path}")
        raise credentials_exception

    try:
        user_id = uuid.UUID(payload.get("sub", ""))
    except ValueError:
        raise credentials_exception

    user = db.query(models.User).options(
        joinedload(models.User.doctor_profile)
    ).filter(models.User.id == user_id).first()
    if user is None:
        raise credentials_exception
    if user.role.value != payload.get("role"):
        security_logger.warning(f"Token role mismatch for user {user.id}")
        raise credentials_exception
    return user


def require_role(*allowed_roles: models.UserRole):
    """Dependency factory for role-based access control"""
    def role_dependency(current_user: models.User = Depends(get_current_user)) -> models.User:
        if current_user.role not in allowed_roles:
            labels = " or ".join(role.value for role in allowed_roles)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access restricted to {labels}",
            )
        return current_user
    return role_dependency


require_admin = require_role(models.UserRole.hospital_admin)


def ensure_self_or_admin(current_user: models.User, user_id: uuid.UUID, action: str = "perform this action"):
    """Allow hospital admins, or the user the resource belongs to."""
    if current_user.role == models.UserRole.hospital_admin or current_user.id == user_id:
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=f"You do not have permission to {action}",
    )
