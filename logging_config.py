# logging_config.py
import logging

from config import get_config

config = get_config()
DEBUG_MODE = config["DEBUG_MODE"]
LOG_LEVEL = config.get("LOG_LEVEL") or ("DEBUG" if DEBUG_MODE else "INFO")

# Configure logging once for the entire application.
logging.basicConfig(
    level=getattr(logging, str(LOG_LEVEL).upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(message)s"
)

# Per-request access lines drown out checkpoint logs outside debug mode.
if not DEBUG_MODE:
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Returns a logger with the given name.
    """
    return logging.getLogger(name)
