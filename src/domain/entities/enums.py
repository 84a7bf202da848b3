"""
CRM Auth Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class UserRole(str, Enum):
    """CRM user role"""

    admin = "admin"
    manager = "manager"
    agent = "agent"


class TwoFactorStatus(str, Enum):
    """Two-factor enrollment state"""

    disabled = "disabled"
    pending_setup = "pending_setup"
    enabled = "enabled"
    temporarily_disabled = "temporarily_disabled"


class TwoFactorMethod(str, Enum):
    """Second factor delivery method"""

    totp = "totp"
    sms = "sms"
    email = "email"


class AuditEventType(str, Enum):
    """Security-relevant event kinds"""

    login_success = "LOGIN_SUCCESS"
    login_failure = "LOGIN_FAILURE"
    logout = "LOGOUT"
    logout_all = "LOGOUT_ALL"
    register_success = "REGISTER_SUCCESS"
    register_failure = "REGISTER_FAILURE"
    token_refresh = "TOKEN_REFRESH"
    session_revoked = "SESSION_REVOKED"
    two_factor_setup = "TWO_FACTOR_SETUP"
    two_factor_enabled = "TWO_FACTOR_ENABLED"
    two_factor_disabled = "TWO_FACTOR_DISABLED"
    two_factor_failure = "TWO_FACTOR_FAILURE"
    security_event = "SECURITY_EVENT"


class AuditOutcome(str, Enum):
    """Outcome flag recorded on every audit entry"""

    success = "success"
    failure = "failure"
