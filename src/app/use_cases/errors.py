"""
Shared error factories for use cases.
"""

from libs.result import Error
from src.domain.errors import StoreUnavailableError

INVALID_CREDENTIALS = Error("INVALID_CREDENTIALS", "Invalid email or password")


def store_unavailable(exc: StoreUnavailableError) -> Error:
    return Error(
        "STORE_UNAVAILABLE",
        "Service temporarily unavailable. Please try again shortly.",
        {"retry_after": exc.retry_after},
    )


def rate_limited(message: str, retry_after: int) -> Error:
    return Error("RATE_LIMITED", message, {"retry_after": retry_after})
