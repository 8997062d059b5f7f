import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_HANDLER_NAME = "sugarmama"


def configure_logging(level: str = "INFO") -> None:
    """Attach a single stderr handler to the ``app`` logger tree.

    Streamlit reruns the script on every interaction, so repeated calls only update
    the level.
    """
    logger = logging.getLogger("app")
    logger.setLevel(level)
    if any(handler.get_name() == _HANDLER_NAME for handler in logger.handlers):
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
