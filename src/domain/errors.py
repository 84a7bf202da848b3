"""
Domain Exceptions

Raised by services; use cases translate them into Result errors.
"""


class AuthCoreError(Exception):
    code = "INTERNAL_ERROR"


class TokenExpiredError(AuthCoreError):
    """Signature and claims are fine but exp is in the past"""

    code = "TOKEN_EXPIRED"


class TokenInvalidError(AuthCoreError):
    """Malformed token, wrong secret, wrong issuer/audience or wrong type"""

    code = "TOKEN_INVALID"


class StoreUnavailableError(AuthCoreError):
    code = "STORE_UNAVAILABLE"

    def __init__(self, message: str = "Backing store unavailable", retry_after: int = 5):
        super().__init__(message)
        self.retry_after = retry_after


class TwoFactorConfigError(AuthCoreError):
    code = "TWO_FACTOR_CONFIG_INVALID"
