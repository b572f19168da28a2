import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# chatty at INFO: per-request access lines, SQL echo, bcrypt backend probing
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "passlib")
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def configure_logging(level: str = "INFO") -> None:
    """Send every service's log lines to stdout in one format."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger()
    root.handlers = [handler]
    level = level.upper()
    root.setLevel(level if level in LEVELS else "INFO")
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
