from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from usergate.auth.cookies import CookieSink, SessionCookieManager
from usergate.auth.tokens import TokenVerifier
from usergate.auth.types import Principal, TokenKind
from usergate.core import Usergate

PrincipalLookup = Callable[[str], Awaitable[Optional[Principal]]]


class RefreshState(str, Enum):
    AWAITING_REFRESH_COOKIE = "awaiting-refresh-cookie"
    VERIFYING = "verifying"
    RE_ISSUING = "re-issuing"
    DONE = "done"
    REJECTED = "rejected"


@dataclass
class RefreshOutcome:
    """Result of one pass through the refresh flow."""

    state: RefreshState
    status_code: int
    message: str
    principal: Optional[Principal] = None
    path: List[RefreshState] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state == RefreshState.DONE


class RefreshFlow(Usergate):
    """Rotates a session from its refresh cookie.

    States: awaiting-refresh-cookie -> verifying -> re-issuing -> done, with rejected reachable from the first two.

    - No refresh cookie: rejected with 401, cookies untouched.
    - Invalid, expired or wrong-kind token: rejected with 401, both cookies cleared.
    - Principal no longer exists: rejected with 404, both cookies cleared.
    - Otherwise both cookies are re-issued from the freshly looked-up principal.

    Args:
        verifier: Verifies the refresh token.
        cookies: Clears or re-issues the session cookies.
        lookup_principal: Coroutine returning the current principal for a subject id, or None if it is gone.
    """

    def __init__(
        self,
        verifier: TokenVerifier,
        cookies: SessionCookieManager,
        lookup_principal: PrincipalLookup,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.verifier = verifier
        self.cookies = cookies
        self.lookup_principal = lookup_principal

    async def run(self, refresh_token: Optional[str], response: CookieSink) -> RefreshOutcome:
        path = [RefreshState.AWAITING_REFRESH_COOKIE]

        if not refresh_token:
            path.append(RefreshState.REJECTED)
            return RefreshOutcome(RefreshState.REJECTED, 401, "Refresh token is required", path=path)

        path.append(RefreshState.VERIFYING)
        claims = self.verifier.verify(refresh_token, TokenKind.REFRESH)
        if not claims:
            self.logger.info(f"Refresh rejected: {claims.reason}")
            self.cookies.clear_session(response)
            path.append(RefreshState.REJECTED)
            return RefreshOutcome(RefreshState.REJECTED, 401, "Invalid or expired refresh token", path=path)

        principal = await self.lookup_principal(claims.id)
        if principal is None:
            self.logger.info(f"Refresh rejected: user {claims.id} no longer exists")
            self.cookies.clear_session(response)
            path.append(RefreshState.REJECTED)
            return RefreshOutcome(RefreshState.REJECTED, 404, "User not found", path=path)

        path.append(RefreshState.RE_ISSUING)
        self.cookies.set_session(response, principal)
        path.append(RefreshState.DONE)
        return RefreshOutcome(RefreshState.DONE, 200, "Token refreshed successfully", principal=principal, path=path)
