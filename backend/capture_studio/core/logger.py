import logging
import sys

from capture_studio.constants import LOG_LEVEL

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))
    root = logging.getLogger("capture_studio")
    root.addHandler(handler)
    root.setLevel(LOG_LEVEL.upper())
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger that writes under the ``capture_studio`` hierarchy.

    Args:
        name (str): Usually the calling module's ``__name__``.
    Returns:
        logging.Logger: The configured logger.
    """
    _configure_root()
    if not name.startswith("capture_studio"):
        name = f"capture_studio.{name}"
    return logging.getLogger(name)
