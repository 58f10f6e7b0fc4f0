from datetime import datetime
from typing import Optional
from typing_extensions import Annotated
from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field

from ..core.security import UserRole, is_strong_password

PASSWORD_RULE = "Password must be at least 8 characters with one upper-case letter and one special character"

def _check_password(value: str) -> str:
    if not is_strong_password(value):
        raise ValueError(PASSWORD_RULE)
    return value

StrongPassword = Annotated[str, AfterValidator(_check_password)]

class UserRegister(BaseModel):
    email: EmailStr
    password: StrongPassword
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    gender: Optional[str] = Field(default=None, pattern="^[HF]$")
    date_of_birth: Optional[datetime] = None
    address: Optional[str] = None
    phone_number: Optional[str] = None

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: EmailStr
    first_name: str
    last_name: str
    role: UserRole
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse

class RefreshTokenRequest(BaseModel):
    refresh_token: str

class ChangePassword(BaseModel):
    current_password: str
    new_password: StrongPassword

class PasswordReset(BaseModel):
    email: EmailStr

class PasswordResetConfirm(BaseModel):
    token: str
    new_password: StrongPassword

class KineCreate(BaseModel):
    email: EmailStr
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    specialty: str = Field(min_length=1)
    rpps_number: str = Field(min_length=1)
    presentation: Optional[str] = None

class KineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    specialty: str
    rpps_number: str
    presentation: Optional[str] = None
    user: UserResponse
