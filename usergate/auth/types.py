from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field


class TokenKind(str, Enum):
    """Discriminator between access and refresh tokens, which otherwise share one envelope shape."""

    ACCESS = "access"
    REFRESH = "refresh"


class Principal(BaseModel):
    """The authenticated identity carried inside a token."""

    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    role: str


class TokenClaims(BaseModel):
    """Decoded, verified token payload."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    username: str
    role: str
    kind: TokenKind = Field(alias="type")
    iat: int
    exp: int
    jti: str | None = None

    @property
    def principal(self) -> Principal:
        return Principal(id=self.id, username=self.username, role=self.role)


@dataclass(frozen=True)
class TokenInvalid:
    """Verification outcome for a token that must not be trusted. Always falsy."""

    reason: str

    def __bool__(self) -> bool:
        return False


class TokenPair(NamedTuple):
    access_token: str
    refresh_token: str
