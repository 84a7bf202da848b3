"""
CRM Auth Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    AuditEventType,
    AuditOutcome,
    TwoFactorMethod,
    TwoFactorStatus,
    UserRole,
)

# Export all entities
from .user import User
from .audit_event import AuditEvent
from .session import DeviceInfo, Session
from .token import IssuedTokens, RefreshedAccess, TokenIdentity, TokenPayload, TokenType
from .rate_limit import RateLimitDecision, RateLimitEntry, RateLimitPolicy
from .two_factor import (
    TwoFactorConfig,
    TwoFactorDisabled,
    TwoFactorEnabled,
    TwoFactorPendingSetup,
    TwoFactorTemporarilyDisabled,
    dump_two_factor_config,
    parse_two_factor_config,
)

__all__ = [
    # Enums
    "AuditEventType",
    "AuditOutcome",
    "TwoFactorMethod",
    "TwoFactorStatus",
    "UserRole",
    # Entities
    "User",
    "AuditEvent",
    "Session",
    "DeviceInfo",
    # Value types
    "TokenIdentity",
    "TokenPayload",
    "TokenType",
    "IssuedTokens",
    "RefreshedAccess",
    "RateLimitPolicy",
    "RateLimitEntry",
    "RateLimitDecision",
    "TwoFactorConfig",
    "TwoFactorDisabled",
    "TwoFactorPendingSetup",
    "TwoFactorEnabled",
    "TwoFactorTemporarilyDisabled",
    "parse_two_factor_config",
    "dump_two_factor_config",
]
