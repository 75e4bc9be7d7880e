import uuid
from datetime import UTC, datetime, timedelta
from typing import Any, Dict, Optional

import jwt
from pydantic import ValidationError

from usergate.auth.exceptions import TokenSigningError
from usergate.auth.types import Principal, TokenClaims, TokenInvalid, TokenKind, TokenPair
from usergate.core import Usergate, as_int

ACCESS_TOKEN_TTL = 15 * 60
REFRESH_TOKEN_TTL = 7 * 24 * 60 * 60


class TokenIssuer(Usergate):
    """Creates signed access and refresh JWTs for a principal.

    Both kinds share one envelope (``sub``/``id``, ``username``, ``role``, ``type``, ``iat``, ``exp``, ``jti``) and one
    secret; only the ``type`` claim and the lifetime differ. Every call produces a brand-new token, so rotating a
    session never reuses an old envelope.

    Args:
        secret: Signing secret. Defaults to ``USERGATE__JWT_SECRET``.
        algorithm: JWT algorithm. Defaults to ``USERGATE__JWT_ALGORITHM``.
        access_ttl: Access token lifetime in seconds (15 minutes unless configured otherwise).
        refresh_ttl: Refresh token lifetime in seconds (7 days unless configured otherwise).
    """

    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        access_ttl: Optional[int] = None,
        refresh_ttl: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        settings = self.config.USERGATE
        self.secret = secret if secret is not None else self.config.get_secret("USERGATE", "JWT_SECRET")
        self.algorithm = algorithm or settings.get("JWT_ALGORITHM") or "HS256"
        self.access_ttl = (
            access_ttl if access_ttl is not None else as_int(settings.get("ACCESS_TOKEN_TTL"), ACCESS_TOKEN_TTL)
        )
        self.refresh_ttl = (
            refresh_ttl if refresh_ttl is not None else as_int(settings.get("REFRESH_TOKEN_TTL"), REFRESH_TOKEN_TTL)
        )

    def issue_access(self, principal: Principal) -> str:
        return self._issue(principal, TokenKind.ACCESS, self.access_ttl)

    def issue_refresh(self, principal: Principal) -> str:
        return self._issue(principal, TokenKind.REFRESH, self.refresh_ttl)

    def issue_both(self, principal: Principal) -> TokenPair:
        return TokenPair(access_token=self.issue_access(principal), refresh_token=self.issue_refresh(principal))

    def ttl_for(self, kind: TokenKind) -> int:
        return self.access_ttl if kind == TokenKind.ACCESS else self.refresh_ttl

    def _issue(self, principal: Principal, kind: TokenKind, ttl: int) -> str:
        if not self.secret:
            raise TokenSigningError("JWT secret is not configured")
        now = datetime.now(UTC)
        payload: Dict[str, Any] = {
            "sub": principal.id,
            "id": principal.id,
            "username": principal.username,
            "role": principal.role,
            "type": kind.value,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=ttl)).timestamp()),
            "jti": uuid.uuid4().hex,
        }
        try:
            return jwt.encode(payload, self.secret, algorithm=self.algorithm)
        except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as e:
            raise TokenSigningError(f"Failed to sign {kind.value} token: {e}") from e


class TokenVerifier(Usergate):
    """Validates a token's signature, expiry and kind.

    :meth:`verify` fails closed and never raises for a bad token: malformed envelopes, bad signatures, expired tokens
    and kind mismatches all come back as a falsy :class:`TokenInvalid`. The kind check keeps a refresh token from being
    accepted where an access token is expected, and the reverse.

    Example:
        .. code-block:: python

            result = verifier.verify(token, TokenKind.ACCESS)
            if not result:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user_id = result.id
    """

    def __init__(self, secret: Optional[str] = None, algorithm: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.secret = secret if secret is not None else self.config.get_secret("USERGATE", "JWT_SECRET")
        self.algorithm = algorithm or self.config.USERGATE.get("JWT_ALGORITHM") or "HS256"

    def verify(self, token: Optional[str], expected_kind: TokenKind) -> TokenClaims | TokenInvalid:
        if not token or not isinstance(token, str):
            return TokenInvalid("missing token")
        if not self.secret:
            return TokenInvalid("verifier has no secret")

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            self.logger.debug(f"Rejected expired {expected_kind.value} token")
            return TokenInvalid("token expired")
        except jwt.InvalidTokenError as e:
            self.logger.debug(f"Token verification failed: {e}")
            return TokenInvalid(f"invalid token: {e}")

        try:
            claims = TokenClaims.model_validate(payload)
        except ValidationError as e:
            self.logger.debug(f"Token claims malformed: {e}")
            return TokenInvalid("malformed claims")

        if claims.kind != expected_kind:
            self.logger.warning(f"Token type mismatch: expected {expected_kind.value}, got {claims.kind.value}")
            return TokenInvalid("token kind mismatch")
        return claims
