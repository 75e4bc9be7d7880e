from usergate.database.providers.base import DatabaseProvider
from usergate.database.providers.mongodb import MongoDBProvider

__all__ = ["DatabaseProvider", "MongoDBProvider"]
