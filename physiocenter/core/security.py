from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from pydantic import BaseModel
import hashlib
import secrets
import re
from enum import Enum

from .config import settings

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# JWT Security
security = HTTPBearer()

# At least 8 characters, one upper-case letter and one special character
STRONG_PASSWORD_RE = re.compile(r"^(?=.*[A-Z])(?=.*[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]).{8,}$")

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

class UserRole(str, Enum):
    ADMIN = "admin"
    KINE = "kine"
    PATIENT = "patient"

class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int

class TokenPayload(BaseModel):
    sub: Optional[str] = None  # user id
    email: Optional[str] = None
    role: Optional[str] = None
    exp: Optional[int] = None
    token_type: Optional[str] = None

    @property
    def is_access(self) -> bool:
        return self.token_type == ACCESS_TOKEN

    @property
    def is_refresh(self) -> bool:
        return self.token_type == REFRESH_TOKEN

# Passwords
def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def is_strong_password(password: str) -> bool:
    return bool(STRONG_PASSWORD_RE.match(password))

def generate_password_reset_token() -> str:
    """Random single-use token for password reset and kiné account setup links."""
    return secrets.token_urlsafe(32)

def hash_token(token: str) -> str:
    """Digest under which refresh tokens are stored."""
    return hashlib.sha256(token.encode()).hexdigest()

# JWT
def _encode(claims: Dict[str, Any], lifetime: timedelta, token_type: str, **extra: Any) -> str:
    payload = {
        **claims,
        **extra,
        "exp": datetime.utcnow() + lifetime,
        "token_type": token_type,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(data, lifetime, ACCESS_TOKEN)

def create_refresh_token(data: dict) -> str:
    # jti keeps two refresh tokens issued within the same second distinct
    return _encode(
        data,
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        REFRESH_TOKEN,
        jti=secrets.token_hex(8),
    )

def verify_token(token: str) -> Optional[TokenPayload]:
    """Decode a JWT, or return None when it is malformed, forged or expired."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    return TokenPayload(**payload)

def create_token_pair(user_id: str, email: str, role: UserRole) -> Token:
    claims = {
        "sub": str(user_id),
        "email": email,
        "role": UserRole(role).value,
    }

    return Token(
        access_token=create_access_token(claims),
        refresh_token=create_refresh_token(claims),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )

# Security exceptions
class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )
