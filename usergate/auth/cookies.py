from typing import Any, Dict, Optional, Protocol

from usergate.auth.tokens import TokenIssuer
from usergate.auth.types import Principal, TokenKind, TokenPair
from usergate.core import Usergate

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"
COOKIE_PATH = "/"


class CookieSink(Protocol):
    """Anything cookies can be written to, e.g. a Starlette ``Response``."""

    def set_cookie(self, key: str, value: str = "", max_age: Optional[int] = None, **kwargs: Any) -> None: ...

    def delete_cookie(self, key: str, **kwargs: Any) -> None: ...


def is_production(config) -> bool:
    return str(config.USERGATE.get("ENVIRONMENT", "")).strip().lower() == "production"


class SessionCookieManager(Usergate):
    """Writes and clears the access / refresh cookie pair.

    Both cookies are http-only and scoped to ``/``. In production they are ``Secure`` with ``SameSite=None`` so that a
    cross-site frontend can send them; elsewhere they use ``SameSite=Lax`` without ``Secure``. A ``SameSite=None``
    cookie without ``Secure`` is rejected by browsers, so the two flags always move together.

    Clearing uses exactly the attributes used when setting, otherwise browsers ignore the deletion.

    Args:
        issuer: Token issuer providing fresh tokens and their lifetimes.
        production: Force production cookie flags. Defaults to ``USERGATE__ENVIRONMENT == "production"``.
    """

    def __init__(self, issuer: TokenIssuer, *, production: Optional[bool] = None, **kwargs):
        super().__init__(**kwargs)
        self.issuer = issuer
        self.production = production if production is not None else is_production(self.config)

    def cookie_attributes(self) -> Dict[str, Any]:
        return {
            "path": COOKIE_PATH,
            "httponly": True,
            "secure": self.production,
            "samesite": "none" if self.production else "lax",
        }

    def set_session(self, response: CookieSink, principal: Principal) -> TokenPair:
        """Issue a fresh token pair for ``principal`` and write both cookies."""
        tokens = self.issuer.issue_both(principal)
        attributes = self.cookie_attributes()
        for name, token, kind in (
            (ACCESS_COOKIE, tokens.access_token, TokenKind.ACCESS),
            (REFRESH_COOKIE, tokens.refresh_token, TokenKind.REFRESH),
        ):
            response.set_cookie(name, token, max_age=self.issuer.ttl_for(kind), **attributes)
        self.logger.debug(f"Session cookies set for user {principal.id}")
        return tokens

    def clear_session(self, response: CookieSink) -> None:
        attributes = self.cookie_attributes()
        response.delete_cookie(ACCESS_COOKIE, **attributes)
        response.delete_cookie(REFRESH_COOKIE, **attributes)
