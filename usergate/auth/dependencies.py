"""FastAPI dependencies for authenticating requests.

The access token is read from the ``access_token`` cookie first and, failing that, from an ``Authorization: Bearer``
header. The verifier is taken from ``request.app.state.context``, which :func:`usergate.api.app.create_app` installs.
"""

from typing import Callable, Optional

from fastapi import HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from usergate.auth.cookies import ACCESS_COOKIE
from usergate.auth.types import TokenClaims, TokenKind

bearer_scheme = HTTPBearer(
    auto_error=False,
    scheme_name="Bearer",
    description="JWT access token. Browsers send it as the access_token cookie instead.",
)


def extract_access_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    if credentials is not None and credentials.scheme.lower() == "bearer":
        return credentials.credentials
    return None


async def require_access(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> TokenClaims:
    """Verify the request's access token and return its claims.

    Raises:
        HTTPException: 401 if no token is present or it fails verification.
    """
    token = extract_access_token(request, credentials)
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")

    claims = request.app.state.context.verifier.verify(token, TokenKind.ACCESS)
    if not claims:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    return claims


def require_roles(*roles: str) -> Callable:
    """Build a dependency that admits only principals holding one of ``roles``.

    Example:
        .. code-block:: python

            @router.get("", dependencies=[Depends(require_roles("admin"))])
            async def list_users(): ...
    """
    allowed = set(roles)

    async def dependency(claims: TokenClaims = Security(require_access)) -> TokenClaims:
        if claims.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return claims

    return dependency
