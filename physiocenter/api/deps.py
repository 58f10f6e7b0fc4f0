from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import logging

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.security import (
    security, verify_token, AuthenticationError,
    AuthorizationError, UserRole, TokenPayload
)
from ..models.patient import Patient
from ..models.user import User

logger = logging.getLogger(__name__)

async def get_current_user_token(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> TokenPayload:
    """Decode the bearer token. Refresh tokens are refused here."""
    token_payload = verify_token(credentials.credentials)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")
    if not token_payload.is_access:
        raise AuthenticationError("Invalid token type")
    return token_payload

async def get_current_user(
    token_payload: TokenPayload = Depends(get_current_user_token),
    db: Session = Depends(get_db)
) -> User:
    user = db.get(User, token_payload.sub) if token_payload.sub else None
    if not user:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("User account is deactivated")
    return user

def require_role(*allowed_roles: UserRole):
    """Dependency factory accepting only users holding one of ``allowed_roles``."""
    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise AuthorizationError(
                f"Access denied. Required roles: {[role.value for role in allowed_roles]}"
            )
        return current_user

    return role_checker

get_admin_user = require_role(UserRole.ADMIN)
get_staff_user = require_role(UserRole.KINE, UserRole.ADMIN)
get_patient_user = require_role(UserRole.PATIENT)

def ensure_can_view_patient(user: User, patient: Patient) -> None:
    """Admins see every patient, a kiné only the patients they follow, a patient only themself."""
    if user.role == UserRole.ADMIN or user.id == patient.user_id:
        return
    if user.role == UserRole.KINE and user.kine is not None and patient.kine_id == user.kine.id:
        return
    raise AuthorizationError("Access denied to this patient")

async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Fixed window limit per client IP and path, for the anonymous endpoints."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{request.url.path}:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, settings.RATE_LIMIT_WINDOW_SECONDS, 1)
        return

    if int(current_requests) >= settings.RATE_LIMIT_MAX_REQUESTS:
        logger.warning(f"Rate limit exceeded for {client_ip} on {request.url.path}")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please try again later."
        )
    redis_client.incr(key)
