import logging
import threading

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_handler: logging.Handler | None = None
_lock = threading.Lock()


def configure_logging(level: str | None = None) -> logging.Handler:
    """Install a single stream handler on the root logger.

    Safe to call more than once; later calls only adjust the level.
    """
    global _handler
    root = logging.getLogger()
    root.setLevel(level or settings.log_level)
    with _lock:
        if _handler is None:
            _handler = logging.StreamHandler()
            _handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root.addHandler(_handler)
    return _handler


def reset_logging() -> None:
    """Detach the handler installed by ``configure_logging``. For tests."""
    global _handler
    with _lock:
        if _handler is not None:
            logging.getLogger().removeHandler(_handler)
            _handler = None
