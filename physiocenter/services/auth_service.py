from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from datetime import datetime, timedelta
from typing import Optional
import logging

from ..core.config import settings
from ..models.user import User, RefreshToken, TokenPurpose
from ..models.patient import Patient
from ..models.kine import Kine
from ..core.security import (
    verify_password, get_password_hash, create_token_pair,
    verify_token, UserRole, generate_password_reset_token, hash_token,
    AuthenticationError
)
from ..schemas.auth import (
    UserLogin, UserRegister, TokenResponse, UserResponse,
    PasswordResetConfirm, KineCreate
)
from .email_service import EmailService, email_service

logger = logging.getLogger(__name__)

MAX_FAILED_LOGINS = 5
LOCKOUT_MINUTES = 30

class AuthService:
    def __init__(self, db: Session, mailer: Optional[EmailService] = None):
        self.db = db
        self.mailer = mailer or email_service

    def register_user(self, user_data: UserRegister) -> User:
        """Register a new patient together with their patient profile."""
        self._ensure_email_available(user_data.email)

        new_user = User(
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
            first_name=user_data.first_name,
            last_name=user_data.last_name,
            role=UserRole.PATIENT,
            is_active=True,
        )
        new_user.patient = Patient(
            gender=user_data.gender,
            date_of_birth=user_data.date_of_birth,
            address=user_data.address,
            phone_number=user_data.phone_number,
        )

        self.db.add(new_user)
        self.db.commit()
        self.db.refresh(new_user)

        logger.info(f"Registered patient {new_user.id}")
        return new_user

    def create_kine(self, kine_data: KineCreate) -> Kine:
        """Create a kiné account and email them an account setup link."""
        self._ensure_email_available(kine_data.email)

        setup_token = generate_password_reset_token()
        user = User(
            email=kine_data.email,
            first_name=kine_data.first_name,
            last_name=kine_data.last_name,
            role=UserRole.KINE,
            is_active=True,
            password_reset_token=setup_token,
            password_reset_expires=datetime.utcnow() + timedelta(hours=settings.SETUP_TOKEN_EXPIRE_HOURS),
            password_reset_purpose=TokenPurpose.SETUP,
        )
        kine = Kine(
            user=user,
            specialty=kine_data.specialty,
            rpps_number=kine_data.rpps_number,
            presentation=kine_data.presentation,
        )

        self.db.add(kine)
        self.db.commit()
        self.db.refresh(kine)

        if not self.mailer.send_account_setup(user.email, user.first_name, setup_token):
            logger.warning(f"Setup email could not be delivered to kine {kine.id}")

        logger.info(f"Created kine {kine.id}")
        return kine

    def authenticate_user(self, login_data: UserLogin) -> TokenResponse:
        """Check email and password, then issue a fresh token pair.

        Every wrong password counts towards the lockout, including the ones
        sent for a kiné account whose setup is not complete yet.
        """
        user = self.db.query(User).filter(User.email == login_data.email).first()
        if not user:
            raise AuthenticationError("Invalid email or password")

        if user.locked_until and user.locked_until > datetime.utcnow():
            raise HTTPException(
                status_code=status.HTTP_423_LOCKED,
                detail="Account is temporarily locked"
            )

        password_ok = bool(user.password_hash) and verify_password(login_data.password, user.password_hash)
        if not password_ok:
            self._handle_failed_login(user)
            raise AuthenticationError("Invalid email or password")

        if not user.is_active:
            raise AuthenticationError("Account is deactivated")

        user.failed_login_attempts = 0
        user.locked_until = None
        user.last_login = datetime.utcnow()

        return self._issue_tokens(user)

    def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        """Rotate a refresh token. The presented token stops working."""
        token_payload = verify_token(refresh_token)
        if not token_payload or not token_payload.is_refresh:
            raise AuthenticationError("Invalid refresh token")

        stored_token = self.db.query(RefreshToken).filter(
            RefreshToken.token_hash == hash_token(refresh_token),
            RefreshToken.is_revoked == False,  # noqa: E712
            RefreshToken.expires_at > datetime.utcnow()
        ).first()
        if not stored_token:
            raise AuthenticationError("Invalid or expired refresh token")

        user = self.db.get(User, token_payload.sub)
        if not user or not user.is_active:
            raise AuthenticationError("User not found or inactive")

        return self._issue_tokens(user)

    def logout_user(self, refresh_token: str) -> bool:
        """Logout user by revoking refresh token."""
        token_hash = hash_token(refresh_token)
        stored_token = self.db.query(RefreshToken).filter(
            RefreshToken.token_hash == token_hash
        ).first()

        if not stored_token:
            return False

        stored_token.is_revoked = True
        self.db.commit()
        return True

    def request_password_reset(self, email: str) -> bool:
        """Generate a password reset token and email it."""
        user = self.db.query(User).filter(User.email == email).first()
        if not user:
            # Don't reveal if email exists
            return True

        reset_token = generate_password_reset_token()
        user.password_reset_token = reset_token
        user.password_reset_expires = datetime.utcnow() + timedelta(hours=1)
        user.password_reset_purpose = TokenPurpose.RESET

        self.db.commit()

        return self.mailer.send_password_reset(user.email, reset_token)

    def reset_password(
        self, reset_data: PasswordResetConfirm, purpose: TokenPurpose = TokenPurpose.RESET
    ) -> User:
        """Set a new password from a one-time token issued for ``purpose``.

        A forgot-password token cannot complete a kiné account setup and the
        other way round.
        """
        user = self.db.query(User).filter(
            User.password_reset_token == reset_data.token,
            User.password_reset_purpose == purpose,
            User.password_reset_expires > datetime.utcnow()
        ).first()

        if not user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid or expired reset token"
            )

        user.password_hash = get_password_hash(reset_data.new_password)
        user.password_reset_token = None
        user.password_reset_expires = None
        user.password_reset_purpose = None
        user.failed_login_attempts = 0
        user.locked_until = None

        # Revoke all refresh tokens
        self.db.query(RefreshToken).filter(
            RefreshToken.user_id == user.id
        ).update({"is_revoked": True})

        self.db.commit()
        return user

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not user.password_hash or not verify_password(current_password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Current password is incorrect"
            )

        user.password_hash = get_password_hash(new_password)
        self.db.commit()

    def set_user_status(self, user_id: str, is_active: bool) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )

        user.is_active = is_active
        self.db.commit()
        return user

    def _ensure_email_available(self, email: str):
        existing_user = self.db.query(User).filter(User.email == email).first()
        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

    def _issue_tokens(self, user: User) -> TokenResponse:
        tokens = create_token_pair(user.id, user.email, user.role)
        self._store_refresh_token(user.id, tokens.refresh_token)

        self.db.commit()
        self.db.refresh(user)

        return TokenResponse(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_type=tokens.token_type,
            expires_in=tokens.expires_in,
            user=UserResponse.model_validate(user)
        )

    def _handle_failed_login(self, user: User):
        """Handle failed login attempt."""
        user.failed_login_attempts = (user.failed_login_attempts or 0) + 1

        if user.failed_login_attempts >= MAX_FAILED_LOGINS:
            user.locked_until = datetime.utcnow() + timedelta(minutes=LOCKOUT_MINUTES)
            logger.warning(f"Locked account {user.id} after {user.failed_login_attempts} failed logins")

        self.db.commit()

    def _store_refresh_token(self, user_id: str, refresh_token: str):
        """Store refresh token in database, revoking the previous ones."""
        token_hash = hash_token(refresh_token)

        token_payload = verify_token(refresh_token)
        expires_at = datetime.utcfromtimestamp(token_payload.exp) if token_payload and token_payload.exp else datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

        self.db.query(RefreshToken).filter(
            RefreshToken.user_id == user_id
        ).update({"is_revoked": True})

        self.db.add(RefreshToken(
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at
        ))
