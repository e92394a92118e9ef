"""
Custom logging configuration to suppress kubelet polling logs
"""

import logging
import logging.config
from typing import Any, Dict, Tuple

# The kubelet polls these on every reconcile tick
QUIET_PATHS: Tuple[str, ...] = ("/v1alpha1/transitions/end", "/healthz")


class PollingAccessFilter(logging.Filter):
    """Filter to suppress access logs for polling endpoints."""

    def __init__(self, paths: Tuple[str, ...] = QUIET_PATHS):
        super().__init__()
        self.paths = paths

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter out successful polling requests from uvicorn access logs."""
        if record.name != "uvicorn.access":
            return True
        message = record.getMessage()
        if any(f" {path} " in message for path in self.paths) and " 200" in message:
            return False
        return True


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """Get logging configuration with polling suppression."""
    level = level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "polling_filter": {
                "()": PollingAccessFilter
            }
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "access": {
                "format": "%(message)s"
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr"
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stderr",
                "filters": ["polling_filter"]
            }
        },
        "loggers": {
            "uvicorn": {
                "handlers": ["default"],
                "level": "INFO",
                "propagate": False
            },
            "uvicorn.error": {
                "handlers": ["default"],
                "level": "INFO",
                "propagate": False
            },
            "uvicorn.access": {
                "handlers": ["access"],
                "level": "INFO",
                "propagate": False
            },
            "kubernetes": {
                "handlers": ["default"],
                "level": "WARNING",
                "propagate": False
            },
            "nodedrain": {
                "handlers": ["default"],
                "level": level,
                "propagate": False
            }
        },
        "root": {
            "level": "INFO",
            "handlers": ["default"]
        }
    }


def configure_logging(level: str = "INFO") -> None:
    """Apply the logging configuration."""
    logging.config.dictConfig(get_logging_config(level))
