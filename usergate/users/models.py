from datetime import UTC, datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from usergate.auth.types import Principal


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class UserRecord(BaseModel):
    """A stored user, including the password hash. Never returned to clients as is; see :meth:`public`."""

    id: str
    username: str
    email: str
    password_hash: str = Field(repr=False)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Role = Role.USER
    theme: Theme = Theme.LIGHT
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "UserRecord":
        return cls(
            id=str(doc["_id"]),
            username=doc["username"],
            email=doc["email"],
            password_hash=doc["password"],
            first_name=doc.get("firstName"),
            last_name=doc.get("lastName"),
            role=doc.get("role") or Role.USER,
            theme=doc.get("theme") or Theme.LIGHT,
            created_at=doc.get("createdAt") or _utcnow(),
            updated_at=doc.get("updatedAt") or _utcnow(),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "username": self.username,
            "email": self.email,
            "password": self.password_hash,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "role": self.role.value,
            "theme": self.theme.value,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @property
    def principal(self) -> Principal:
        return Principal(id=self.id, username=self.username, role=self.role.value)

    def public(self) -> "PublicUser":
        return PublicUser(**self.model_dump(exclude={"password_hash"}))


class PublicUser(BaseModel):
    """Client-facing view of a user."""

    id: str
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Role
    theme: Theme
    created_at: datetime
    updated_at: datetime
