"""
Authentication Use Case DTOs (Data Transfer Objects)

All Command and Response classes for the auth domain.
Provides type safety and clear contracts between layers.
"""

from datetime import datetime
from typing import List, Optional

from src.domain.base import CamelModel

from src.domain.entities import Session, TokenIdentity, User


# ============================================================================
# Command DTOs
# ============================================================================


class RegisterCommand(CamelModel):
    """Validated registration intent"""

    email: str
    password: str
    first_name: str
    last_name: str
    role: str = "agent"


class LoginCommand(CamelModel):
    """Validated login intent"""

    email: str
    password: str
    two_factor_code: Optional[str] = None


# ============================================================================
# Response DTOs
# ============================================================================


class UserInfo(CamelModel):
    """User information in authentication responses"""

    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    organization_id: str
    is_onboarding_completed: bool
    two_factor_enabled: bool
    last_login_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: User) -> "UserInfo":
        return cls(
            id=str(user.id),
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role.value if hasattr(user.role, "value") else str(user.role),
            organization_id=user.organization_id,
            is_onboarding_completed=user.is_onboarding_completed,
            two_factor_enabled=user.two_factor_enabled,
            last_login_at=user.last_login_at,
        )


class SessionInfo(CamelModel):
    """Session created by a login"""

    session_id: str
    device_id: str
    expires_at: datetime
    active_sessions: int


class RegisterResponse(CamelModel):
    user: UserInfo


class LoginResponse(CamelModel):
    """Response for user login use case"""

    user: UserInfo
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "Bearer"
    session: SessionInfo
    backup_codes_remaining: Optional[int] = None
    warning: Optional[str] = None


class RefreshTokenResponse(CamelModel):
    """Response for refresh token use case; the refresh token is not rotated"""

    access_token: str
    expires_in: int
    session_id: str
    token_type: str = "Bearer"


class SessionStatus(CamelModel):
    session_id: str
    device_id: str
    last_activity_at: Optional[datetime] = None
    active_sessions: int
    # Unknown to the registry but accepted on token validity
    unverified: bool = False


class VerifySessionResponse(CamelModel):
    user: UserInfo
    session: SessionStatus
    expires_at: datetime


class LogoutResponse(CamelModel):
    session_id: Optional[str] = None


class LogoutAllResponse(CamelModel):
    sessions_terminated: int


class ActivityResponse(CamelModel):
    session_id: str
    last_activity_at: datetime


class SessionView(CamelModel):
    session_id: str
    device_id: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime
    last_activity_at: datetime
    current: bool = False

    @classmethod
    def from_session(cls, session: Session, current_session_id: str) -> "SessionView":
        return cls(
            **session.model_dump(),
            current=session.session_id == current_session_id,
        )


class SessionListResponse(CamelModel):
    sessions: List[SessionView]
    total: int


class RevokeSessionResponse(CamelModel):
    session_id: str
    revoked: bool = True


def identity_from_user(user: User, device_id: str) -> TokenIdentity:
    return TokenIdentity(
        user_id=str(user.id),
        email=user.email,
        role=user.role.value if hasattr(user.role, "value") else str(user.role),
        organization_id=user.organization_id,
        device_id=device_id,
        is_onboarding_completed=user.is_onboarding_completed,
    )
