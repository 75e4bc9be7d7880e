from copy import deepcopy
from typing import Any, Dict, List, Mapping, Optional

import pytest

from usergate.database import BackendType
from usergate.users import UserService


def _matches(doc: Dict[str, Any], query: Mapping[str, Any]) -> bool:
    for key, condition in query.items():
        if key == "$or":
            if not any(_matches(doc, sub) for sub in condition):
                return False
        elif isinstance(condition, Mapping) and "$ne" in condition:
            if doc.get(key) == condition["$ne"]:
                return False
        elif doc.get(key) != condition:
            return False
    return True


class InMemoryStorage:
    """Interprets the handful of MongoDB commands the user service issues."""

    backend_type = BackendType.MONGODB

    def __init__(self):
        self.collections: Dict[str, List[Dict[str, Any]]] = {}
        self.commands: List[Dict[str, Any]] = []
        self.connected = False
        self.connect_calls = 0
        self.indexes: Dict[str, List[Dict[str, Any]]] = {}

    def is_connected(self) -> bool:
        return self.connected

    async def connect(self) -> None:
        self.connect_calls += 1
        self.connected = True

    async def ensure_connected(self) -> None:
        if not self.connected:
            await self.connect()

    async def execute_raw_query(self, query: Dict[str, Any], params: Optional[Mapping[str, Any]] = None) -> Any:
        assert self.connected, "command issued before connecting"
        self.commands.append(deepcopy(query))
        name = next(iter(query))
        docs = self.collections.setdefault(query[name], [])
        return getattr(self, f"_{name}")(docs, query)

    def _insert(self, docs, command):
        errors = []
        for index, doc in enumerate(command["documents"]):
            if any(d[key] == doc[key] for d in docs for key in ("_id", "username", "email")):
                errors.append({"index": index, "code": 11000, "errmsg": "E11000 duplicate key error"})
            else:
                docs.append(deepcopy(doc))
        result = {"n": len(command["documents"]) - len(errors), "ok": 1.0}
        if errors:
            result["writeErrors"] = errors
        return result

    def _createIndexes(self, docs, command):
        self.indexes.setdefault(command["createIndexes"], []).extend(deepcopy(command["indexes"]))
        return {"ok": 1.0}

    def _find(self, docs, command):
        found = [deepcopy(d) for d in docs if _matches(d, command.get("filter", {}))]
        if "sort" in command:
            key, direction = next(iter(command["sort"].items()))
            found.sort(key=lambda d: d[key], reverse=direction < 0)
        found = found[command.get("skip", 0) :]
        if command.get("limit"):
            found = found[: command["limit"]]
        return {"cursor": {"firstBatch": found, "id": 0}, "ok": 1.0}

    def _findAndModify(self, docs, command):
        for doc in docs:
            if _matches(doc, command["query"]):
                doc.update(command["update"]["$set"])
                return {"value": deepcopy(doc), "ok": 1.0}
        return {"value": None, "ok": 1.0}

    def _delete(self, docs, command):
        query = command["deletes"][0]["q"]
        before = len(docs)
        docs[:] = [d for d in docs if not _matches(d, query)]
        return {"n": before - len(docs), "ok": 1.0}


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def user_service(storage):
    return UserService(storage)
