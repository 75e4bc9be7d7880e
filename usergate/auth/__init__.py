from usergate.auth.cookies import ACCESS_COOKIE, COOKIE_PATH, REFRESH_COOKIE, CookieSink, SessionCookieManager
from usergate.auth.exceptions import TokenSigningError
from usergate.auth.refresh import RefreshFlow, RefreshOutcome, RefreshState
from usergate.auth.tokens import ACCESS_TOKEN_TTL, REFRESH_TOKEN_TTL, TokenIssuer, TokenVerifier
from usergate.auth.types import Principal, TokenClaims, TokenInvalid, TokenKind, TokenPair

__all__ = [
    "ACCESS_COOKIE",
    "ACCESS_TOKEN_TTL",
    "COOKIE_PATH",
    "CookieSink",
    "Principal",
    "REFRESH_COOKIE",
    "REFRESH_TOKEN_TTL",
    "RefreshFlow",
    "RefreshOutcome",
    "RefreshState",
    "SessionCookieManager",
    "TokenClaims",
    "TokenInvalid",
    "TokenIssuer",
    "TokenKind",
    "TokenPair",
    "TokenSigningError",
    "TokenVerifier",
]
