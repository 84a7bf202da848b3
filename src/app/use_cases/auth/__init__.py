"""
Authentication Use Cases

All authentication-related business logic.
"""

from .register_use_case import RegisterUseCase
from .login_use_case import LoginUseCase
from .logout_use_case import LogoutUseCase
from .logout_all_use_case import LogoutAllUseCase
from .refresh_token_use_case import RefreshTokenUseCase
from .verify_session_use_case import AuthenticatedCaller, VerifySessionUseCase
from .dtos import (
    ActivityResponse,
    LoginCommand,
    LoginResponse,
    LogoutAllResponse,
    LogoutResponse,
    RefreshTokenResponse,
    RegisterCommand,
    RegisterResponse,
    RevokeSessionResponse,
    SessionInfo,
    SessionListResponse,
    SessionStatus,
    SessionView,
    UserInfo,
    VerifySessionResponse,
)

__all__ = [
    # Use Cases
    "RegisterUseCase",
    "LoginUseCase",
    "LogoutUseCase",
    "LogoutAllUseCase",
    "RefreshTokenUseCase",
    "VerifySessionUseCase",
    "AuthenticatedCaller",
    # DTOs - Commands
    "RegisterCommand",
    "LoginCommand",
    # DTOs - Responses
    "RegisterResponse",
    "LoginResponse",
    "LogoutResponse",
    "LogoutAllResponse",
    "RefreshTokenResponse",
    "VerifySessionResponse",
    "ActivityResponse",
    "SessionListResponse",
    "RevokeSessionResponse",
    # DTOs - Nested Models
    "UserInfo",
    "SessionInfo",
    "SessionStatus",
    "SessionView",
]
