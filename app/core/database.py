"""
MongoDB Database Manager
Provides centralized async database connection and collection access
"""
from typing import Optional

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)

from app.core.config import MongoConfig


class DatabaseManager:
    """Centralized database connection management"""

    def __init__(self, config: Optional[MongoConfig] = None):
        self.config = config or MongoConfig()
        self._client: Optional[AsyncIOMotorClient] = None
        self._db: Optional[AsyncIOMotorDatabase] = None

    @property
    def client(self) -> AsyncIOMotorClient:
        """Get MongoDB client with connection pooling"""
        if self._client is None:
            self._client = AsyncIOMotorClient(**self.config.get_connection_settings())
        return self._client

    @property
    def db(self) -> AsyncIOMotorDatabase:
        """Get database instance"""
        if self._db is None:
            self._db = self.client[self.config.DB]
        return self._db

    def get_collection(self, name: str) -> AsyncIOMotorCollection:
        """Get collection by name from config"""
        collection_name = self.config.COLLECTIONS.get(name)
        if not collection_name:
            raise ValueError(f"Collection {name} not found in config")
        return self.db[collection_name]

    def close(self):
        """Close database connection"""
        if self._client:
            self._client.close()
            self._client = None
            self._db = None
