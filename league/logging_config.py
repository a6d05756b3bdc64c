import logging, logging.config

def setup_logging(level: str = "INFO", access_log: bool = True, cli: bool = False):
    """Configure logging for the API process or, with ``cli=True``, a command-line run."""
    level = level.upper()
    loggers = {
        "league": {"level": level},
        # Season close progress is always reported
        "league.services.season_close_service": {"level": "INFO"},
        # aiosqlite logs every cursor operation at DEBUG
        "aiosqlite": {"level": "WARNING"},
    }
    if not cli:
        loggers["uvicorn.error"] = {"level": level, "handlers": ["console"], "propagate": False}
        loggers["uvicorn.access"] = {"level": ("INFO" if access_log else "WARNING"),
                                     "handlers": ["access"], "propagate": False}

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                        "datefmt": "%H:%M:%S"},
            "cli": {"format": "%(levelname)s %(message)s"},
            "access_simple": {"format": "%(message)s"},
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler",
                        "formatter": "cli" if cli else "default"},
            "access":  {"class": "logging.StreamHandler", "formatter": "access_simple"},
        },
        "loggers": loggers,
        "root": {"level": level, "handlers": ["console"]},
    })
