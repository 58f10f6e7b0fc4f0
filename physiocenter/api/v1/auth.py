from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...core.security import TokenPayload
from ...api.deps import (
    get_current_user, get_admin_user, rate_limit_check, get_current_user_token
)
from ...services.auth_service import AuthService
from ...services.email_service import EmailService, get_email_service
from ...schemas.auth import (
    UserLogin, UserRegister, TokenResponse, UserResponse,
    RefreshTokenRequest, PasswordReset, PasswordResetConfirm,
    ChangePassword, KineCreate, KineResponse
)
from ...models.user import User, TokenPurpose

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Self-registration, always as a patient."""
    return UserResponse.model_validate(AuthService(db).register_user(user_data))

@router.post("/login", response_model=TokenResponse)
async def login(login_data: UserLogin, db: Session = Depends(get_db)):
    return AuthService(db).authenticate_user(login_data)

@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(refresh_data: RefreshTokenRequest, db: Session = Depends(get_db)):
    return AuthService(db).refresh_access_token(refresh_data.refresh_token)

@router.post("/logout")
async def logout(refresh_data: RefreshTokenRequest, db: Session = Depends(get_db)):
    revoked = AuthService(db).logout_user(refresh_data.refresh_token)
    return {"message": "Successfully logged out" if revoked else "Logout completed"}

@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    return UserResponse.model_validate(current_user)

@router.post("/change-password")
async def change_password(
    password_data: ChangePassword,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    AuthService(db).change_password(
        current_user, password_data.current_password, password_data.new_password
    )
    return {"message": "Password changed successfully"}

@router.post("/forgot-password")
async def forgot_password(
    reset_data: PasswordReset,
    db: Session = Depends(get_db),
    mailer: EmailService = Depends(get_email_service),
    _: None = Depends(rate_limit_check)
):
    """Email a reset link. The answer is the same whether the account exists or not."""
    AuthService(db, mailer).request_password_reset(reset_data.email)
    return {"message": "If the email exists, a password reset link has been sent"}

@router.post("/reset-password")
async def reset_password(reset_data: PasswordResetConfirm, db: Session = Depends(get_db)):
    AuthService(db).reset_password(reset_data)
    return {"message": "Password reset successfully"}

@router.post("/setup-account", response_model=TokenResponse)
async def setup_account(setup_data: PasswordResetConfirm, db: Session = Depends(get_db)):
    """Set the first password of a kiné account and log them in."""
    auth_service = AuthService(db)
    user = auth_service.reset_password(setup_data, TokenPurpose.SETUP)
    return auth_service.authenticate_user(
        UserLogin(email=user.email, password=setup_data.new_password)
    )

@router.post("/verify-token")
async def verify_token_endpoint(token_payload: TokenPayload = Depends(get_current_user_token)):
    return {
        "valid": True,
        "user_id": token_payload.sub,
        "email": token_payload.email,
        "role": token_payload.role,
        "expires": token_payload.exp
    }

# Administration
@router.get("/users", response_model=List[UserResponse])
async def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    _: User = Depends(get_admin_user)
):
    users = db.query(User).order_by(User.created_at).offset(skip).limit(limit).all()
    return [UserResponse.model_validate(user) for user in users]

@router.patch("/users/{user_id}/status")
async def update_user_status(
    user_id: str,
    is_active: bool,
    db: Session = Depends(get_db),
    _: User = Depends(get_admin_user)
):
    AuthService(db).set_user_status(user_id, is_active)
    return {"message": f"User {'activated' if is_active else 'deactivated'} successfully"}

@router.post("/kines", response_model=KineResponse, status_code=status.HTTP_201_CREATED)
async def create_kine(
    kine_data: KineCreate,
    db: Session = Depends(get_db),
    mailer: EmailService = Depends(get_email_service),
    _: User = Depends(get_admin_user)
):
    """Create a kiné account without password and email them the setup link."""
    return KineResponse.model_validate(AuthService(db, mailer).create_kine(kine_data))
