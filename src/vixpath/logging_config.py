import logging
import logging.config
import os


def build_logging_config(log_dir: str = "logs") -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": "INFO",
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": os.path.join(log_dir, "vixpath.log"),
                "maxBytes": 10_485_760,
                "backupCount": 5,
                "formatter": "standard",
                "level": "DEBUG",
            },
        },
        "root": {
            "level": "DEBUG",
            "handlers": ["console", "file"],
        },
    }


def setup_logging(log_dir: str = "logs", verbose: bool = False):
    os.makedirs(log_dir, exist_ok=True)
    logging.config.dictConfig(build_logging_config(log_dir))
    if verbose:
        for handler in logging.getLogger().handlers:
            if handler.get_name() == "console":
                handler.setLevel(logging.DEBUG)
