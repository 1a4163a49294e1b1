"""
MongoDB Configuration
"""
from typing import Dict, Union
from pydantic import BaseModel, Field


class MongoConfig(BaseModel):
    """MongoDB connection and collection configuration"""

    # Connection Settings
    URI: str = Field(
        "mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    DB: str = Field("starter_kit", description="MongoDB database name")

    # Pool Settings
    MIN_POOL_SIZE: int = Field(1, ge=0, description="Minimum connection pool size")
    MAX_POOL_SIZE: int = Field(50, ge=1, description="Maximum connection pool size")
    MAX_IDLE_TIME_MS: int = Field(
        60000, ge=1000,
        description="Maximum connection idle time (ms)"
    )
    SERVER_SELECTION_TIMEOUT_MS: int = Field(
        5000, ge=100,
        description="How long to wait for a reachable server (ms)"
    )

    # Collection Names
    COLLECTIONS: Dict[str, str] = Field(
        default={
            "analytics_events": "analytics_events",
        },
        description="MongoDB collection names"
    )

    def get_connection_settings(self) -> Dict[str, Union[str, int]]:
        """Get MongoDB connection settings"""
        return {
            "host": self.URI,
            "minPoolSize": self.MIN_POOL_SIZE,
            "maxPoolSize": self.MAX_POOL_SIZE,
            "maxIdleTimeMS": self.MAX_IDLE_TIME_MS,
            "serverSelectionTimeoutMS": self.SERVER_SELECTION_TIMEOUT_MS,
        }
