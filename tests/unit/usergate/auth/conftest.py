from typing import Any, Dict, List, Optional

import pytest

from usergate.auth import Principal, SessionCookieManager, TokenIssuer, TokenVerifier

SECRET = "unit-test-secret"


class RecordingResponse:
    """Stand-in for a Starlette Response that records cookie operations."""

    def __init__(self):
        self.set_calls: List[Dict[str, Any]] = []
        self.deleted: List[Dict[str, Any]] = []

    def set_cookie(self, key: str, value: str = "", max_age: Optional[int] = None, **kwargs: Any) -> None:
        self.set_calls.append({"key": key, "value": value, "max_age": max_age, **kwargs})

    def delete_cookie(self, key: str, **kwargs: Any) -> None:
        self.deleted.append({"key": key, **kwargs})

    def cookie(self, key: str) -> Dict[str, Any]:
        return next(call for call in self.set_calls if call["key"] == key)


@pytest.fixture
def alice():
    return Principal(id="u-alice", username="alice", role="user")


@pytest.fixture
def issuer():
    return TokenIssuer(secret=SECRET)


@pytest.fixture
def verifier():
    return TokenVerifier(secret=SECRET)


@pytest.fixture
def cookies(issuer):
    return SessionCookieManager(issuer, production=False)


@pytest.fixture
def response():
    return RecordingResponse()
