"""
Webhook receiver for mirrorpull.

A small Flask app that accepts GitLab or GitHub push notifications and
fetches the one mirror they refer to. Payloads are not authenticated; run
it behind something that is.
"""

import logging
import os
from typing import Optional

from flask import Flask, jsonify, request

from .config import MirrorSettings
from .exit_codes import MalformedPayload
from .services.mirror_service import MirrorRunner

logger = logging.getLogger(__name__)


def create_app(settings: MirrorSettings, runner: Optional[MirrorRunner] = None) -> Flask:
    """Create the Flask application."""
    app = Flask(__name__)
    app.config["MIRROR_RUNNER"] = runner or MirrorRunner(settings)

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"})

    @app.route("/webhook", methods=["POST"])
    def webhook():
        """Resolve the payload and fetch that mirror."""
        mirror: MirrorRunner = app.config["MIRROR_RUNNER"]
        payload = request.get_json(silent=True)
        if payload is None:
            return jsonify({"error": "Request body must be JSON", "type": "malformed_payload"}), 400

        try:
            repo_path = mirror.resolve_webhook(payload)
        except MalformedPayload as e:
            logger.warning(f"Rejected webhook: {e}")
            return jsonify({"error": str(e), "type": "malformed_payload"}), 400

        if not os.path.isdir(repo_path):
            return jsonify({"error": f"No mirror at {repo_path}", "type": "not_found"}), 404

        report = mirror.run([repo_path])
        return jsonify({
            "path": repo_path,
            "successes": report.successes,
            "failures": report.failures,
            "triggers": [t.to_dict() for t in report.triggers],
        })

    @app.errorhandler(500)
    def internal_server_error(e):
        """Return JSON for any unhandled 500 so hook senders get a parseable response."""
        logger.error(f"Unhandled 500 on {request.method} {request.path}: {e}")
        return jsonify({"error": f"Internal server error: {e}"}), 500

    return app


def run_server(settings: MirrorSettings, host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Serve the webhook receiver with Flask's built-in server."""
    app = create_app(settings)
    host = host or settings.server_host
    port = port or settings.server_port
    logger.info(f"Listening for webhooks on http://{host}:{port}/webhook")
    app.run(host=host, port=port, debug=False, use_reloader=False)
