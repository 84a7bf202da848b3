"""
Token extraction strategies.

Each strategy knows one place a token can travel in; an extractor tries
its strategies in priority order and returns the first token found.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from fastapi import Request

from .cookies import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE


class TokenExtractionStrategy(ABC):
    @abstractmethod
    def extract(self, request: Request) -> Optional[str]:
        pass


class BearerHeaderStrategy(TokenExtractionStrategy):
    """`Authorization: Bearer <token>` for non-browser clients"""

    def extract(self, request: Request) -> Optional[str]:
        header = request.headers.get("authorization")
        if not header:
            return None
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return None
        return token.strip()


class CookieStrategy(TokenExtractionStrategy):
    def __init__(self, cookie_name: str):
        self.cookie_name = cookie_name

    def extract(self, request: Request) -> Optional[str]:
        return request.cookies.get(self.cookie_name) or None


class TokenExtractor:
    def __init__(self, strategies: Iterable[TokenExtractionStrategy]):
        self.strategies: List[TokenExtractionStrategy] = list(strategies)

    def extract(self, request: Request) -> Optional[str]:
        for strategy in self.strategies:
            token = strategy.extract(request)
            if token:
                return token
        return None


access_token_extractor = TokenExtractor(
    [BearerHeaderStrategy(), CookieStrategy(ACCESS_TOKEN_COOKIE)]
)
refresh_token_extractor = TokenExtractor([CookieStrategy(REFRESH_TOKEN_COOKIE)])
