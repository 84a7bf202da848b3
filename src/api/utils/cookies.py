"""
Auth cookie helpers. Both cookies are HTTP-only and SameSite-restricted;
Secure follows COOKIE_SECURE.
"""

from typing import Optional

from fastapi import Response

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"


def _set(response: Response, config, key: str, value: str, max_age: int):
    response.set_cookie(
        key=key,
        value=value,
        max_age=max_age,
        path=config.COOKIE_PATH,
        secure=config.COOKIE_SECURE,
        httponly=True,
        samesite=config.COOKIE_SAMESITE,
    )


def set_auth_cookies(
    response: Response,
    config,
    access_token: Optional[str] = None,
    refresh_token: Optional[str] = None,
):
    if access_token:
        _set(response, config, ACCESS_TOKEN_COOKIE, access_token, config.ACCESS_TOKEN_TTL_SECONDS)
    if refresh_token:
        _set(response, config, REFRESH_TOKEN_COOKIE, refresh_token, config.REFRESH_TOKEN_TTL_SECONDS)


def clear_auth_cookies(response: Response, config):
    for key in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.delete_cookie(
            key=key,
            path=config.COOKIE_PATH,
            secure=config.COOKIE_SECURE,
            httponly=True,
            samesite=config.COOKIE_SAMESITE,
        )
