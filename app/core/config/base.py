"""
Base configuration settings for the application
"""
from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import field_validator, Field
from pathlib import Path

from .analytics import AnalyticsConfig
from .logging import LogConfig
from .mongo import MongoConfig


class Settings(BaseSettings):
    """Base settings with common functionality and validation"""

    # API Settings
    API_V1_STR: str = Field("/api/v1", description="API version prefix")
    PROJECT_NAME: str = Field("Starter Kit Analytics", description="Project name")
    VERSION: str = Field("1.0.0", description="API version")
    DEBUG: bool = Field(False, description="Debug mode")
    DESCRIPTION: str = Field(
        "Privacy-focused page view analytics",
        description="API description"
    )

    # CORS Settings
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )

    # MongoDB Settings
    MONGO_URI: str = Field(
        "mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGO_DB: str = Field("starter_kit", description="MongoDB database name")

    # Cache Settings
    CACHE_BACKEND: str = Field(
        "memory", description="Cache backend: 'memory' or 'redis'"
    )
    REDIS_URL: Optional[str] = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (only used if CACHE_BACKEND='redis')",
    )

    # Analytics Settings
    ANALYTICS_ENABLED: bool = Field(True, description="Collect page view analytics")
    ANALYTICS_MAX_BATCH_SIZE: int = Field(
        500, ge=1, description="Buffered events that trigger a flush"
    )
    ANALYTICS_FLUSH_INTERVAL_MS: int = Field(
        1000, ge=10, description="Time between periodic flushes (ms)"
    )
    ANALYTICS_CACHE_KEY_PREFIX: str = Field(
        "analytics:event:", description="Buffer key prefix for pending events"
    )
    ANALYTICS_CACHE_CLEANUP_MS: int = Field(
        60000, ge=0, description="Expired entry cleanup interval (ms), 0 disables"
    )
    ANALYTICS_GENERALIZE_IDS: bool = Field(
        False, description="Replace numeric/UUID path segments with placeholders"
    )
    ANALYTICS_EXTRA_SENSITIVE_PARAMS: List[str] = Field(
        default_factory=list,
        description="Query parameter names stripped in addition to the defaults"
    )

    # Logging Settings
    LOG_LEVEL: str = Field("INFO", description="Logging level")
    LOG_ANALYTICS_LEVEL: Optional[str] = Field(
        None, description="Analytics pipeline logging level (defaults to LOG_LEVEL)"
    )
    LOG_LIBRARY_LEVEL: str = Field("WARNING", description="MongoDB/Redis driver logging level")
    LOG_TO_FILE: bool = Field(False, description="Enable file logging")
    LOG_FILE: Path = Field(Path("logs/app.log"), description="Log file used when LOG_TO_FILE is set")

    @field_validator("CACHE_BACKEND")
    @classmethod
    def validate_cache_backend(cls, v):
        if v.lower() not in ["memory", "redis"]:
            raise ValueError("Cache backend must be either 'memory' or 'redis'")
        return v.lower()

    @field_validator("LOG_LEVEL", "LOG_ANALYTICS_LEVEL", "LOG_LIBRARY_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        if v is None:
            return v
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v.upper()

    def get_mongo_config(self) -> MongoConfig:
        """Get MongoDB configuration"""
        return MongoConfig(URI=self.MONGO_URI, DB=self.MONGO_DB)

    def get_analytics_config(self) -> AnalyticsConfig:
        """Get analytics pipeline configuration"""
        return AnalyticsConfig(
            MAX_BATCH_SIZE=self.ANALYTICS_MAX_BATCH_SIZE,
            FLUSH_INTERVAL_MS=self.ANALYTICS_FLUSH_INTERVAL_MS,
            CACHE_KEY_PREFIX=self.ANALYTICS_CACHE_KEY_PREFIX,
            CACHE_CLEANUP_MS=self.ANALYTICS_CACHE_CLEANUP_MS,
            GENERALIZE_IDS=self.ANALYTICS_GENERALIZE_IDS,
            EXTRA_SENSITIVE_PARAMS=self.ANALYTICS_EXTRA_SENSITIVE_PARAMS,
        )

    def get_log_config(self) -> LogConfig:
        """Get logging configuration"""
        return LogConfig(
            LEVEL=self.LOG_LEVEL,
            ANALYTICS_LEVEL=self.LOG_ANALYTICS_LEVEL,
            LIBRARY_LEVEL=self.LOG_LIBRARY_LEVEL,
            FILE=self.LOG_FILE if self.LOG_TO_FILE else None,
        )

    model_config = {
        "case_sensitive": True,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "str_strip_whitespace": True,
        "validate_default": True,
        "env_prefix": "STARTER_",
        "validate_assignment": True,
        "extra": "ignore"
    }


# Create global settings instance
settings = Settings()
