# ------------------------------------------------------------------------------
# web_interface.py
# ------------------------------------------------------------------------------

from flask import Flask, jsonify

from config import get_config
from logging_config import get_logger
from web.blueprints.api_v1 import api_v1
from web.services import tracking_service

logger = get_logger(__name__)


def create_web_interface(tracking_context=None):
    """
    Creates and returns the Flask server for the tracker API.

    Args:
        tracking_context: Optional TrackingContext; built from config on first
            request when not given.

    Returns:
        dict with the Flask ``server`` and a ``run`` function.
    """
    config = get_config()
    if tracking_context is not None:
        tracking_service.set_context(tracking_context)

    server = Flask(__name__)
    server.register_blueprint(api_v1)

    @server.route("/health")
    def health():
        return jsonify({"status": "ok"})

    # -----------------------------
    # Function to Start the Web Interface
    # -----------------------------
    def run(debug=None, host=None, port=None):
        host = host or config["API_HOST"]
        port = port or config["API_PORT"]
        debug = config["DEBUG_MODE"] if debug is None else debug
        logger.info(f"Starting tracker API on http://{host}:{port}")
        server.run(host=host, port=port, debug=debug, use_reloader=False)

    return {"server": server, "run": run}
