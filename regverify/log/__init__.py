"""
RegVerify — Logging
One stdlib logger per subsystem under the "regverify" root, configured once.
"""
import logging
from typing import Any, Dict

from regverify.config import LOG_LEVEL

ROOT_LOGGER = "regverify"
_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
    return root


_root = _configure_root()


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a subsystem, e.g. get_logger("intake")."""
    return _root.getChild(name)


def log_operation(logger: logging.Logger, operation: str, status: str,
                  details: Dict[str, Any] = None):
    """Log a structured operation record on a single line."""
    message = f"Operation: {operation}, Status: {status}"
    if details:
        message += f", Details: {details}"
    logger.info(message)
