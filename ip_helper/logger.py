import os
from logging import DEBUG, config, getLevelName, getLogger
from typing import Any

LOGGER_NAME = "ip_helper"
LOG_LEVEL = getLevelName(os.getenv("LOG_LEVEL", "INFO"))  # DEBUG, WARNING, ERROR


def build_log_config(level: int | str = LOG_LEVEL) -> dict[str, Any]:
    """dictConfig for the application logger and uvicorn's own loggers.

    The same dict is handed to uvicorn so access lines and application lines
    share one format.
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "access": {
                "()": "uvicorn.logging.AccessFormatter",
                "fmt": '%(levelprefix)s %(asctime)s - %(client_addr)s - "%(request_line)s" %(status_code)s',
                "datefmt": "%Y-%m-%d %H:%M:%S",
                "use_colors": True,
            },
            "default": {
                "()": "uvicorn.logging.DefaultFormatter",
                "fmt": "%(levelprefix)s %(asctime)s - %(name)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
                "use_colors": True,
            },
        },
        "handlers": {
            "access": {"class": "logging.StreamHandler", "formatter": "access", "stream": "ext://sys.stdout"},
            "default": {
                "formatter": "default",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            LOGGER_NAME: {"handlers": ["default"], "level": level, "propagate": False},
            "uvicorn": {"handlers": ["default"], "level": level, "propagate": True},
            "uvicorn.access": {"handlers": ["access"], "level": level, "propagate": False},
            "uvicorn.error": {"level": level, "propagate": False},
        },
    }


def configure_logging(debug: bool = False) -> dict[str, Any]:
    """Apply the logging config, switching everything to DEBUG in debug mode."""
    log_config = build_log_config(DEBUG if debug else LOG_LEVEL)
    config.dictConfig(log_config)
    return log_config


configure_logging()

logger = getLogger(LOGGER_NAME)
