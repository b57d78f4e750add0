"""
Logging Configuration for the Fath-AI Server
Structured logging with a dedicated research trail
"""

import logging
import logging.config
import sys
from pathlib import Path
from datetime import datetime, timezone
from typing import List, Optional

from .settings import get_settings

settings = get_settings()


def setup_logging():
    """
    Set up logging for the Fath-AI server.
    Includes a separate research trail logger for completed searches.
    """

    # Ensure log directory exists
    log_path = Path(settings.log_path)
    log_path.mkdir(parents=True, exist_ok=True)

    # Define log file paths
    main_log_file = log_path / "fathai_server.log"
    research_log_file = log_path / "research.log"
    error_log_file = log_path / "errors.log"

    file_formatter = "json" if settings.structured_logging else "detailed"

    # Logging configuration
    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
            "detailed": {
                "format": "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(funcName)s() - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
            "research": {
                "format": "%(asctime)s [RESEARCH] %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s %(pathname)s %(lineno)d"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": settings.log_level,
                "formatter": "standard",
                "stream": sys.stdout
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "INFO",
                "formatter": file_formatter,
                "filename": str(main_log_file),
                "maxBytes": 10485760,  # 10MB
                "backupCount": 5,
                "encoding": "utf8"
            },
            "research_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "INFO",
                "formatter": "research",
                "filename": str(research_log_file),
                "maxBytes": 10485760,
                "backupCount": 5,
                "encoding": "utf8"
            },
            "error_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "ERROR",
                "formatter": "detailed",
                "filename": str(error_log_file),
                "maxBytes": 10485760,
                "backupCount": 10,
                "encoding": "utf8"
            }
        },
        "loggers": {
            "": {  # Root logger
                "level": settings.log_level,
                "handlers": ["console", "file", "error_file"],
                "propagate": False
            },
            "fathai_server": {
                "level": settings.log_level,
                "handlers": ["console", "file", "error_file"],
                "propagate": False
            },
            "research": {
                "level": "INFO",
                "handlers": ["research_file"],
                "propagate": False
            },
            "uvicorn": {
                "level": "INFO",
                "handlers": ["console", "file"],
                "propagate": False
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["file"],
                "propagate": False
            },
            "fastapi": {
                "level": "INFO",
                "handlers": ["console", "file"],
                "propagate": False
            },
            "httpx": {
                "level": "WARNING" if not settings.debug else "INFO",
                "handlers": ["file"],
                "propagate": False
            }
        }
    }

    # Apply configuration
    logging.config.dictConfig(logging_config)

    # Log startup information
    logger = logging.getLogger("fathai_server")
    logger.info("Logging system initialized")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Log directory: {settings.log_path}")


class ResearchTrailLogger:
    """
    One line per completed research request.
    Kept apart from the main log so search behaviour can be reviewed without noise.
    """

    def __init__(self):
        self.logger = logging.getLogger("research")

    def log_search_completed(
        self,
        question: str,
        mode: str,
        strategy: str,
        queries: List[str],
        result_count: int,
        duration_ms: float,
        fast_path: bool = False
    ):
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": "SEARCH_COMPLETED",
            "question": question[:120],
            "mode": mode,
            "strategy": strategy,
            "queries": queries,
            "result_count": result_count,
            "duration_ms": round(duration_ms, 1),
            "fast_path": fast_path,
        }
        self.logger.info(f"SEARCH_COMPLETED: {entry}")

    def log_degradation(
        self,
        component: str,
        reason: str,
        details: Optional[dict] = None
    ):
        """Record a component falling back to its degraded behaviour"""
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": "DEGRADED",
            "component": component,
            "reason": reason,
            "details": details or {},
        }
        self.logger.info(f"DEGRADED: {entry}")


# Global logger instance
research_logger = ResearchTrailLogger()


def get_research_logger() -> ResearchTrailLogger:
    """Get research trail logger instance"""
    return research_logger
