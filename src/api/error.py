from typing import Dict, Optional

from fastapi import status
from libs.result import Error


class ClientError(Exception):
    def __init__(
        self,
        base_error: Error,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        headers: Optional[Dict[str, str]] = None,
        clear_cookies: bool = False,
    ):
        self.base_error = base_error
        self.status_code = status_code
        self.headers = headers or {}
        self.clear_cookies = clear_cookies
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error, clear_cookies: bool = False):
        self.base_error = base_error
        self.clear_cookies = clear_cookies
        super().__init__(base_error.message)


STATUS_BY_CODE = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "WEAK_PASSWORD": status.HTTP_400_BAD_REQUEST,
    "INVALID_ROLE": status.HTTP_400_BAD_REQUEST,
    "INVALID_CREDENTIALS": status.HTTP_401_UNAUTHORIZED,
    "TOKEN_MISSING": status.HTTP_401_UNAUTHORIZED,
    "TOKEN_EXPIRED": status.HTTP_401_UNAUTHORIZED,
    "TOKEN_INVALID": status.HTTP_401_UNAUTHORIZED,
    "SESSION_REVOKED": status.HTTP_401_UNAUTHORIZED,
    "TWO_FACTOR_REQUIRED": status.HTTP_401_UNAUTHORIZED,
    "TWO_FACTOR_INVALID_CODE": status.HTTP_401_UNAUTHORIZED,
    "ACCOUNT_INACTIVE": status.HTTP_403_FORBIDDEN,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "USER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "SESSION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "TWO_FACTOR_NOT_CONFIGURED": status.HTTP_400_BAD_REQUEST,
    "EMAIL_ALREADY_EXISTS": status.HTTP_409_CONFLICT,
    "TWO_FACTOR_ALREADY_ENABLED": status.HTTP_409_CONFLICT,
    "RATE_LIMITED": status.HTTP_429_TOO_MANY_REQUESTS,
    "STORE_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_error(
    error: Error,
    overrides: Optional[Dict[str, int]] = None,
    headers: Optional[Dict[str, str]] = None,
    clear_cookies: bool = False,
) -> Exception:
    """
    Map a use-case Error to the exception the app handlers render.

    Unknown codes become a generic ServerError. Errors carrying a
    retry_after detail get a Retry-After header.
    """
    status_code = (overrides or {}).get(error.code, STATUS_BY_CODE.get(error.code))
    if status_code is None:
        return ServerError(error, clear_cookies=clear_cookies)

    headers = dict(headers or {})
    retry_after = error.details.get("retry_after")
    if retry_after is not None:
        headers["Retry-After"] = str(retry_after)
    return ClientError(error, status_code, headers=headers, clear_cookies=clear_cookies)
