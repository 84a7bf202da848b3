"""
Token Service

Issues and verifies access/refresh JWTs signed with distinct secrets.
"""

import logging
import secrets
import time
from typing import Callable, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from src.domain.entities import (
    IssuedTokens,
    RefreshedAccess,
    TokenIdentity,
    TokenPayload,
    TokenType,
)
from src.domain.errors import TokenExpiredError, TokenInvalidError

logger = logging.getLogger(__name__)


class TokenService:
    """
    Signs and verifies the two token kinds.

    Business Rules:
    - Access tokens use the access secret, refresh tokens the refresh secret;
      the secrets must differ so one token kind never verifies as the other
    - Both carry the same issuer/audience and a `type` claim
    - The session id is the token jti and is shared by both tokens of a login
    - Refreshing mints a new access token only; the refresh token keeps its
      original expiry
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        issuer: str,
        audience: str,
        access_ttl_seconds: int = 15 * 60,
        refresh_ttl_seconds: int = 7 * 24 * 60 * 60,
        algorithm: str = "HS256",
        clock: Callable[[], float] = time.time,
    ):
        if not access_secret or not refresh_secret:
            raise ValueError("Both access and refresh secrets are required")
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh secrets must differ")
        self._secrets = {
            TokenType.access: access_secret,
            TokenType.refresh: refresh_secret,
        }
        self._ttls = {
            TokenType.access: access_ttl_seconds,
            TokenType.refresh: refresh_ttl_seconds,
        }
        self.issuer = issuer
        self.audience = audience
        self.algorithm = algorithm
        self.clock = clock

    @property
    def access_ttl_seconds(self) -> int:
        return self._ttls[TokenType.access]

    @property
    def refresh_ttl_seconds(self) -> int:
        return self._ttls[TokenType.refresh]

    @staticmethod
    def new_session_id() -> str:
        return secrets.token_urlsafe(24)

    def issue_tokens(
        self, identity: TokenIdentity, session_id: Optional[str] = None
    ) -> IssuedTokens:
        """
        Issue an access/refresh pair for a fresh login.

        Args:
            identity: Claims copied from the user record
            session_id: Session id to embed; a new one is generated if omitted

        Returns:
            IssuedTokens with both tokens, their lifetimes and the session id
        """
        session_id = session_id or self.new_session_id()
        return IssuedTokens(
            access_token=self._sign(identity, session_id, TokenType.access),
            refresh_token=self._sign(identity, session_id, TokenType.refresh),
            expires_in=self.access_ttl_seconds,
            refresh_expires_in=self.refresh_ttl_seconds,
            session_id=session_id,
        )

    def verify_access(self, token: str, allow_expired: bool = False) -> TokenPayload:
        return self._verify(token, TokenType.access, allow_expired=allow_expired)

    def verify_refresh(self, token: str, allow_expired: bool = False) -> TokenPayload:
        return self._verify(token, TokenType.refresh, allow_expired=allow_expired)

    def issue_access(self, identity: TokenIdentity, session_id: str) -> RefreshedAccess:
        """New access token for an existing session, e.g. after a profile change"""
        access_token = self._sign(identity, session_id, TokenType.access)
        return RefreshedAccess(
            access_token=access_token,
            expires_in=self.access_ttl_seconds,
            payload=self._verify(access_token, TokenType.access),
        )

    def refresh_access(
        self, refresh_token: str, identity: Optional[TokenIdentity] = None
    ) -> RefreshedAccess:
        """
        Mint a new access token from a valid refresh token.

        The new token carries the refresh token's session id. Identity claims
        come from `identity` when the caller re-read the user record (so role
        or onboarding changes show up), otherwise from the refresh token.
        """
        payload = self.verify_refresh(refresh_token)
        identity = identity or TokenIdentity(**payload.model_dump())
        access_token = self._sign(identity, payload.session_id, TokenType.access)
        return RefreshedAccess(
            access_token=access_token,
            expires_in=self.access_ttl_seconds,
            payload=self._verify(access_token, TokenType.access),
        )

    def _sign(self, identity: TokenIdentity, session_id: str, token_type: TokenType) -> str:
        now = int(self.clock())
        claims = identity.model_dump()
        claims.update(
            {
                "sub": identity.user_id,
                "session_id": session_id,
                "jti": session_id,
                "type": token_type.value,
                "iss": self.issuer,
                "aud": self.audience,
                "iat": now,
                "exp": now + self._ttls[token_type],
            }
        )
        return jwt.encode(claims, self._secrets[token_type], algorithm=self.algorithm)

    def _verify(self, token: str, token_type: TokenType, allow_expired: bool = False) -> TokenPayload:
        if not token:
            raise TokenInvalidError("Token is empty")
        try:
            claims = jwt.decode(
                token,
                self._secrets[token_type],
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
                options={"verify_exp": not allow_expired},
            )
        except ExpiredSignatureError as exc:
            raise TokenExpiredError(f"{token_type.value} token has expired") from exc
        except JWTError as exc:
            raise TokenInvalidError(f"{token_type.value} token is invalid") from exc

        if claims.get("type") != token_type.value:
            raise TokenInvalidError(f"Expected a {token_type.value} token")
        try:
            return TokenPayload(**claims)
        except ValidationError as exc:
            raise TokenInvalidError(f"{token_type.value} token claims are malformed") from exc
