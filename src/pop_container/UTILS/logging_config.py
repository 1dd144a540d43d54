"""
Logging setup for the command line.
"""
import logging
import logging.config

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "build": {
            "format": "[{levelname}] {message}",
            "style": "{",
        },
    },
    "handlers": {
        "stderr": {
            "class": "logging.StreamHandler",
            "formatter": "build",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        "pop_container": {
            "handlers": ["stderr"],
            "level": "INFO",
        },
    },
}


def setup_logging(level: str = "INFO") -> None:
    """
    Configures the package logger.

    :param level: Name of the minimum level to emit.
    """
    config = dict(LOGGING)
    config["loggers"] = {"pop_container": dict(LOGGING["loggers"]["pop_container"], level=level.upper())}
    logging.config.dictConfig(config)
