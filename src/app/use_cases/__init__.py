"""
Use Cases

Organized by domain folder:
- auth/: Registration, login, logout, refresh, session verification
- sessions/: Activity pings, session listing and revocation
- two_factor/: TOTP enrollment, verification and removal
- users/: User profile flags
- audit/: Audit logs
"""

from .auth import (
    LoginUseCase,
    LogoutAllUseCase,
    LogoutUseCase,
    RefreshTokenUseCase,
    RegisterUseCase,
    VerifySessionUseCase,
)
from .sessions import ListSessionsUseCase, RecordActivityUseCase, RevokeSessionUseCase
from .two_factor import DisableTwoFactorUseCase, SetupTwoFactorUseCase, VerifyTwoFactorUseCase
from .users import CompleteOnboardingUseCase
from .audit import GetAuditEventsUseCase

__all__ = [
    # Auth
    "RegisterUseCase",
    "LoginUseCase",
    "LogoutUseCase",
    "LogoutAllUseCase",
    "RefreshTokenUseCase",
    "VerifySessionUseCase",
    # Sessions
    "RecordActivityUseCase",
    "ListSessionsUseCase",
    "RevokeSessionUseCase",
    # Two-factor
    "SetupTwoFactorUseCase",
    "VerifyTwoFactorUseCase",
    "DisableTwoFactorUseCase",
    # Users
    "CompleteOnboardingUseCase",
    # Audit
    "GetAuditEventsUseCase",
]
