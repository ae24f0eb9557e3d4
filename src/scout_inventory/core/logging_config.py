import logging
import sys
from typing import Optional

from . import config


class NamespaceFilter(logging.Filter):
    def __init__(self, allowed_namespaces=None):
        super().__init__()
        self.allowed_namespaces = allowed_namespaces if allowed_namespaces is not None else []

    def filter(self, record):
        if not self.allowed_namespaces:
            return True # If no namespaces are specified, allow all records
        # Allow record if its name starts with any of the allowed namespaces
        return any(record.name.startswith(ns) for ns in self.allowed_namespaces)


log_formatter = logging.Formatter(
    fmt="%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

APP_LOGGER_NAME = "scout_inventory"


def setup_logging(
    level: Optional[str] = None, allowed_namespaces: Optional[list[str]] = None
) -> logging.Logger:
    """
    Configures the application logger.

    Every module logs through `logging.getLogger(__name__)`, so all records end
    up under the "scout_inventory" namespace and inherit its level unless a
    child logger sets its own. Calling this more than once replaces the handler
    instead of stacking duplicates.
    """
    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(level or config.LOG_LEVEL)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(log_formatter)

    namespaces = allowed_namespaces if allowed_namespaces is not None else config.LOG_NAMESPACES
    if namespaces:
        console_handler.addFilter(NamespaceFilter(namespaces))

    app_logger.handlers = [console_handler]

    # The migration run is the one place where per-record detail matters.
    logging.getLogger(f"{APP_LOGGER_NAME}.features.migration").setLevel(logging.DEBUG)

    return app_logger
