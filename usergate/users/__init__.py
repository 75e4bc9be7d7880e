from usergate.users.exceptions import UserAlreadyExistsError, UserNotFoundError
from usergate.users.models import PublicUser, Role, Theme, UserRecord
from usergate.users.password import hash_password, verify_password
from usergate.users.service import UserService

__all__ = [
    "hash_password",
    "PublicUser",
    "Role",
    "Theme",
    "UserAlreadyExistsError",
    "UserNotFoundError",
    "UserRecord",
    "UserService",
    "verify_password",
]
