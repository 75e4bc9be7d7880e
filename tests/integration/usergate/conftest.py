import os
from typing import Optional

import pytest
from pymongo import MongoClient
from pymongo.errors import PyMongoError

TEST_MONGO_URI = os.environ.get("USERGATE_TEST_MONGODB_URI", "mongodb://localhost:27017/usergate_test")


def _get_test_client() -> Optional[MongoClient]:
    """Return a client for the test MongoDB, or None if it is not reachable."""
    client = MongoClient(TEST_MONGO_URI, serverSelectionTimeoutMS=2000)
    try:
        client.admin.command("ping")
    except PyMongoError:
        client.close()
        return None
    return client


@pytest.fixture
def mongo_uri():
    client = _get_test_client()
    if client is None:
        pytest.skip(f"MongoDB not reachable at {TEST_MONGO_URI}")
    try:
        client.get_default_database().drop_collection("users")
        yield TEST_MONGO_URI
        client.get_default_database().drop_collection("users")
    finally:
        client.close()
