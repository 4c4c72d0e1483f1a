# ------------------------------------------------------------------------------
# Main Script for the Baby-Care Session Tracker API
# main.py
# ------------------------------------------------------------------------------
import json
import os

from config import get_config
from logging_config import get_logger

config = get_config()
logger = get_logger(__name__)

# --------------------------------------------------------------------------
# Configuration Parameters
# --------------------------------------------------------------------------
_debug = config["DEBUG_MODE"]
output_dir = config["OUTPUT_DIR"]

logger.info(f"Debug mode is {'enabled' if _debug else 'disabled'}.")
logger.info(f"Configuration: {json.dumps(config, indent=2)}")

os.makedirs(output_dir, exist_ok=True)

# -----------------------------
# Build the tracking context
# -----------------------------
from core.tracking_core import build_tracking

tracking = build_tracking()

# Register the cleanup function
import atexit
atexit.register(tracking.manager.shutdown)

# -----------------------------
# Import and Run the Web Interface
# -----------------------------
from web.web_interface import create_web_interface

# Expose the Flask server as the WSGI app.
interface = create_web_interface(tracking)
app = interface["server"]

if __name__ == '__main__':
    try:
        interface["run"](debug=_debug)
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt received. Shutting down session tracker...")
        tracking.manager.shutdown()
