import logging
import logging.config
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILENAME = "firefly-sankey.log"

# Library loggers that get their own level and do not propagate to root
_LIBRARY_LEVELS = {
    "httpx": "WARNING",
    "uvicorn": "INFO",
    "uvicorn.error": "INFO",
    "uvicorn.access": "INFO",
}


class ColourizedFormatter(logging.Formatter):
    """
    Formatter that colours the level name of each record.
    """
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: "\x1b[90m",
        logging.INFO: "\x1b[32m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[31;1m",
    }

    def format(self, record: logging.LogRecord) -> str:
        colour = self.LEVEL_COLORS.get(record.levelno)
        if colour is None:
            return super().format(record)

        plain_levelname = record.levelname
        record.levelname = f"{colour}{plain_levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # The file handler formats the same record
            record.levelname = plain_levelname


def get_logging_config(stream: str = "ext://sys.stdout") -> dict:
    """dictConfig for the app. ``LOG_DIR`` adds an uncoloured file handler."""
    handlers: dict[str, dict] = {
        "console": {
            "class": "logging.StreamHandler",
            "stream": stream,
            "formatter": "colour",
        },
    }
    log_dir = os.getenv("LOG_DIR")
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": os.path.join(log_dir, LOG_FILENAME),
            "formatter": "plain",
        }
    handler_names = list(handlers)

    loggers: dict[str, dict] = {
        "": {"handlers": handler_names, "level": os.getenv("LOG_LEVEL", "INFO").upper()},
    }
    for name, level in _LIBRARY_LEVELS.items():
        loggers[name] = {"handlers": handler_names, "level": level, "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "colour": {"()": "firefly_sankey.logger.ColourizedFormatter", "format": LOG_FORMAT},
            "plain": {"format": LOG_FORMAT},
        },
        "handlers": handlers,
        "loggers": loggers,
    }


def setup_logging(stream: str = "ext://sys.stdout") -> None:
    logging.config.dictConfig(get_logging_config(stream))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
