"""
Token Payload

Claims embedded in access and refresh tokens.
"""

from enum import Enum

from pydantic import BaseModel


class TokenType(str, Enum):
    access = "access"
    refresh = "refresh"


class TokenIdentity(BaseModel):
    """Identity claims copied from the user record at issuance"""

    user_id: str
    email: str
    role: str
    organization_id: str
    device_id: str
    is_onboarding_completed: bool = False


class TokenPayload(TokenIdentity):
    """Decoded, verified token claims"""

    session_id: str
    type: TokenType
    iat: int
    exp: int


class IssuedTokens(BaseModel):
    access_token: str
    refresh_token: str
    expires_in: int
    refresh_expires_in: int
    session_id: str


class RefreshedAccess(BaseModel):
    access_token: str
    expires_in: int
    payload: TokenPayload
