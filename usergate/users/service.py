import asyncio
import uuid
from datetime import UTC, datetime
from typing import Any, Dict, List, Mapping, Optional

from usergate.auth.types import Principal
from usergate.core import Usergate
from usergate.database import QueryError, StorageService
from usergate.users.exceptions import UserAlreadyExistsError
from usergate.users.models import Role, Theme, UserRecord
from usergate.users.password import hash_password, verify_password

DUPLICATE_KEY_ERROR = 11000
UNIQUE_FIELDS = ("username", "email")

# Updatable attribute -> stored field name
UPDATABLE_FIELDS = {
    "email": "email",
    "first_name": "firstName",
    "last_name": "lastName",
    "role": "role",
    "theme": "theme",
}


class UserService(Usergate):
    """User persistence and credential checks on top of :class:`StorageService`.

    Every operation goes through ``storage.execute_raw_query`` with a plain MongoDB command document, and connects the
    storage first if it is not connected yet. Unique username and email indexes are created before the first command.
    Usernames are stripped, emails are stripped and lower-cased. Returned records carry the password hash; use
    :meth:`UserRecord.public` before handing them to clients.

    Args:
        storage: Storage facade to run commands against.
        collection: Collection holding user documents.
    """

    def __init__(self, storage: StorageService, *, collection: str = "users", **kwargs):
        super().__init__(**kwargs)
        self.storage = storage
        self.collection = collection
        self._indexes_ready = False
        self._indexes_lock = asyncio.Lock()

    async def create_user(
        self,
        username: str,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        role: Role | str = Role.USER,
        theme: Theme | str = Theme.LIGHT,
    ) -> UserRecord:
        """Store a new user with a hashed password.

        Raises:
            UserAlreadyExistsError: If the username or email is already taken.
        """
        username = username.strip()
        email = email.strip().lower()
        if await self._find_one({"$or": [{"username": username}, {"email": email}]}) is not None:
            raise UserAlreadyExistsError(f"User with username {username!r} or email {email!r} already exists")

        now = datetime.now(UTC)
        user = UserRecord(
            id=uuid.uuid4().hex,
            username=username,
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=Role(role),
            theme=Theme(theme),
            created_at=now,
            updated_at=now,
        )
        result = await self._run({"insert": self.collection, "documents": [user.to_document()]})
        self._raise_on_write_errors(result, username)
        self.logger.info(f"User created: {user.username}")
        return user

    async def find_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        return await self._find_one({"_id": user_id})

    async def find_user_by_username(self, username: str) -> Optional[UserRecord]:
        return await self._find_one({"username": username.strip()})

    async def find_user_by_email(self, email: str) -> Optional[UserRecord]:
        return await self._find_one({"email": email.strip().lower()})

    async def list_users(self, skip: int = 0, limit: int = 100) -> List[UserRecord]:
        result = await self._run(
            {
                "find": self.collection,
                "filter": {},
                "sort": {"createdAt": 1},
                "skip": max(skip, 0),
                "limit": max(limit, 1),
                "batchSize": max(limit, 1),
            }
        )
        return [UserRecord.from_document(doc) for doc in result["cursor"]["firstBatch"]]

    async def update_user(self, user_id: str, changes: Mapping[str, Any]) -> Optional[UserRecord]:
        """Apply ``changes`` to a user and return the updated record, or None if the user does not exist.

        Only email, first/last name, role and theme can be changed; other keys and None values are ignored.

        Raises:
            UserAlreadyExistsError: If the new email belongs to another user.
        """
        update: Dict[str, Any] = {}
        for attribute, value in changes.items():
            if attribute not in UPDATABLE_FIELDS or value is None:
                continue
            if attribute == "email":
                value = str(value).strip().lower()
                other = await self._find_one({"email": value, "_id": {"$ne": user_id}})
                if other is not None:
                    raise UserAlreadyExistsError(f"Email {value!r} is already in use")
            elif attribute == "role":
                value = Role(value).value
            elif attribute == "theme":
                value = Theme(value).value
            update[UPDATABLE_FIELDS[attribute]] = value

        if not update:
            return await self.find_user_by_id(user_id)

        update["updatedAt"] = datetime.now(UTC)
        try:
            result = await self._run(
                {
                    "findAndModify": self.collection,
                    "query": {"_id": user_id},
                    "update": {"$set": update},
                    "new": True,
                }
            )
        except QueryError as e:
            if getattr(e.__cause__, "code", None) == DUPLICATE_KEY_ERROR:
                raise UserAlreadyExistsError(f"Email {update.get('email')!r} is already in use") from e
            raise
        doc = result.get("value")
        if doc is None:
            return None
        user = UserRecord.from_document(doc)
        self.logger.info(f"User updated: {user.username}")
        return user

    async def delete_user(self, user_id: str) -> bool:
        result = await self._run({"delete": self.collection, "deletes": [{"q": {"_id": user_id}, "limit": 1}]})
        deleted = result.get("n", 0) > 0
        if deleted:
            self.logger.info(f"User deleted: {user_id}")
        return deleted

    async def authenticate_user(self, username: str, password: str) -> Optional[UserRecord]:
        """Return the user if ``password`` matches, else None. Unknown usernames and wrong passwords look the same."""
        user = await self.find_user_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            self.logger.info(f"Failed login attempt for {username!r}")
            return None
        return user

    async def lookup_principal(self, user_id: str) -> Optional[Principal]:
        user = await self.find_user_by_id(user_id)
        return user.principal if user is not None else None

    async def _find_one(self, query: Dict[str, Any]) -> Optional[UserRecord]:
        result = await self._run({"find": self.collection, "filter": query, "limit": 1, "singleBatch": True})
        batch = result["cursor"]["firstBatch"]
        return UserRecord.from_document(batch[0]) if batch else None

    async def ensure_indexes(self) -> None:
        """Create the unique username and email indexes once per service instance."""
        if self._indexes_ready:
            return
        async with self._indexes_lock:
            if self._indexes_ready:
                return
            await self.storage.ensure_connected()
            await self.storage.execute_raw_query(
                {
                    "createIndexes": self.collection,
                    "indexes": [
                        {"key": {field: 1}, "name": f"{field}_unique", "unique": True} for field in UNIQUE_FIELDS
                    ],
                }
            )
            self._indexes_ready = True
            self.logger.debug(f"Unique indexes ensured on {self.collection}")

    async def _run(self, command: Dict[str, Any]) -> Dict[str, Any]:
        await self.storage.ensure_connected()
        await self.ensure_indexes()
        return await self.storage.execute_raw_query(command)

    @staticmethod
    def _raise_on_write_errors(result: Mapping[str, Any], username: str) -> None:
        errors = result.get("writeErrors") or []
        if any(error.get("code") == DUPLICATE_KEY_ERROR for error in errors):
            raise UserAlreadyExistsError(f"User {username!r} already exists")
        if errors:
            raise QueryError(f"Failed to insert user {username!r}: {errors[0].get('errmsg')}")
