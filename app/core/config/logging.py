"""
Logging Configuration
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from pathlib import Path

# Driver chatter that drowns out pipeline logs at DEBUG/INFO
LIBRARY_LOGGERS = ("pymongo", "motor", "redis")


class LogConfig(BaseModel):
    """Logging settings, rendered as a ``logging.config.dictConfig`` dictionary"""

    LEVEL: str = Field("INFO", description="Root logging level")
    ANALYTICS_LEVEL: Optional[str] = Field(
        None,
        description="Level for the app.analytics pipeline (defaults to LEVEL)"
    )
    LIBRARY_LEVEL: str = Field(
        "WARNING",
        description="Level for database and cache driver loggers"
    )
    FORMAT: str = Field(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        description="Log format string"
    )
    FILE: Optional[Path] = Field(None, description="Log file path (optional)")
    FILE_MAX_BYTES: int = Field(10 * 1024 * 1024, ge=0, description="Rotate the log file at this size")
    FILE_BACKUP_COUNT: int = Field(5, ge=0, description="Rotated log files to keep")

    def _handlers(self) -> Dict[str, dict]:
        handlers = {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'standard',
            }
        }
        if self.FILE:
            handlers['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'filename': str(self.FILE),
                'maxBytes': self.FILE_MAX_BYTES,
                'backupCount': self.FILE_BACKUP_COUNT,
                'encoding': 'utf-8',
                'formatter': 'standard',
            }
        return handlers

    def _loggers(self) -> Dict[str, dict]:
        loggers = {
            'app.analytics': {'level': self.ANALYTICS_LEVEL or self.LEVEL},
        }
        for name in LIBRARY_LOGGERS:
            loggers[name] = {'level': self.LIBRARY_LEVEL}
        return loggers

    @property
    def log_config(self) -> dict:
        """Complete dictConfig dictionary; handlers hang off the root logger only"""
        handlers = self._handlers()
        root_handlers: List[str] = list(handlers)
        return {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'standard': {'format': self.FORMAT},
            },
            'handlers': handlers,
            'root': {'handlers': root_handlers, 'level': self.LEVEL},
            'loggers': self._loggers(),
        }
