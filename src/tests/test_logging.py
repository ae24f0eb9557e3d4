import logging
import sys

import pytest

from scout_inventory.core.logging_config import (
    APP_LOGGER_NAME,
    NamespaceFilter,
    log_formatter,
    setup_logging,
)


class RecordingHandler(logging.Handler):
    """Keeps the formatted messages that made it through the handler's filters."""

    def __init__(self):
        super().__init__()
        self.setFormatter(logging.Formatter("%(name)s:%(levelname)s:%(message)s"))
        self.messages = []

    def emit(self, record):
        self.messages.append(self.format(record))


MANAGED_LOGGERS = [
    APP_LOGGER_NAME,
    "scout_inventory.features.inventory",
    "scout_inventory.features.requests",
    "scout_inventory.features.migration",
    "scout_inventory.backends.document",
    "scout_inventory.main",
]


@pytest.fixture
def logging_env():
    """
    A clean logging environment: the managed loggers start without handlers,
    filters or levels, and are reset again afterwards.

    Yields:
        RecordingHandler: attached to the application logger.
    """
    saved = {}
    for name in MANAGED_LOGGERS:
        logger = logging.getLogger(name)
        saved[name] = (logger.handlers[:], logger.filters[:], logger.level)
        logger.handlers = []
        logger.filters = []
        logger.setLevel(logging.NOTSET)

    handler = RecordingHandler()
    yield handler

    for name, (handlers, filters, level) in saved.items():
        logger = logging.getLogger(name)
        logger.handlers = handlers
        logger.filters = filters
        logger.setLevel(level)


def _attach(handler, level):
    logger = logging.getLogger(APP_LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers = [handler]
    return logger


def test_default_level_propagation(logging_env):
    _attach(logging_env, logging.INFO)

    inventory_logger = logging.getLogger("scout_inventory.features.inventory")
    requests_logger = logging.getLogger("scout_inventory.features.requests")

    inventory_logger.debug("Inventory debug message")
    inventory_logger.info("Inventory info message")
    requests_logger.warning("Requests warning message")

    assert logging_env.messages == [
        "scout_inventory.features.inventory:INFO:Inventory info message",
        "scout_inventory.features.requests:WARNING:Requests warning message",
    ]


def test_namespace_specific_level(logging_env):
    _attach(logging_env, logging.INFO)
    logging.getLogger("scout_inventory.features.migration").setLevel(logging.DEBUG)

    logging.getLogger("scout_inventory.features.migration").debug("Migrated record 1")
    logging.getLogger("scout_inventory.features.inventory").debug("Inventory debug specific")

    assert "scout_inventory.features.migration:DEBUG:Migrated record 1" in logging_env.messages
    assert not any("Inventory debug specific" in m for m in logging_env.messages)


def test_namespace_filter_allows_listed_namespaces(logging_env):
    _attach(logging_env, logging.DEBUG)
    logging_env.addFilter(NamespaceFilter(allowed_namespaces=["scout_inventory.backends"]))

    logging.getLogger("scout_inventory.backends.document").info("Document store connection closed.")
    logging.getLogger("scout_inventory.features.inventory").info("Item created")
    logging.getLogger("scout_inventory.main").info("Starting application...")

    assert logging_env.messages == [
        "scout_inventory.backends.document:INFO:Document store connection closed."
    ]


def test_namespace_filter_allows_all_if_empty(logging_env):
    _attach(logging_env, logging.DEBUG)
    logging_env.addFilter(NamespaceFilter(allowed_namespaces=[]))

    logging.getLogger("scout_inventory.features.requests").info("Request received")
    logging.getLogger("scout_inventory.features.inventory").info("Item created")

    assert len(logging_env.messages) == 2


def test_setup_logging_replaces_its_handler(logging_env):
    logger = setup_logging(level="WARNING", allowed_namespaces=["scout_inventory.features"])
    logger = setup_logging(level="WARNING", allowed_namespaces=["scout_inventory.features"])

    assert logger.name == APP_LOGGER_NAME
    assert logger.level == logging.WARNING
    [handler] = logger.handlers
    assert handler.stream is sys.stdout
    assert handler.formatter is log_formatter
    [namespace_filter] = handler.filters
    assert namespace_filter.allowed_namespaces == ["scout_inventory.features"]
    assert logging.getLogger("scout_inventory.features.migration").level == logging.DEBUG
