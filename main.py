#!/usr/bin/env python3
"""
PMPortal - Project Mentorship Portal
====================================

Single-command run:  python main.py

See config.py for all environment-variable tunables.
"""

import logging

from flask import Flask, jsonify

import config
from db import init_db
from api import api_bp

logger = logging.getLogger(__name__)


def create_app(db_url: str | None = None) -> Flask:
    """Flask application factory."""

    app = Flask(__name__)
    app.secret_key = config.SECRET
    app.config["MAX_CONTENT_LENGTH"] = config.MAX_IMPORT_BYTES + 64 * 1024

    # ── Initialise database ─────────────────────────────────────────
    init_db(db_url or config.DB_URL)

    # ── Register blueprints ─────────────────────────────────────────
    app.register_blueprint(api_bp)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    # ── Error handlers ──────────────────────────────────────────────
    @app.errorhandler(404)
    def _404(_e):
        return jsonify({"success": False, "message": "not found"}), 404

    @app.errorhandler(413)
    def _413(_e):
        return jsonify({"success": False, "message": "upload too large"}), 413

    @app.errorhandler(500)
    def _500(_e):
        return jsonify({"success": False, "message": "internal server error"}), 500

    return app


def main():
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    app = create_app()
    logger.info("PMPortal listening on http://%s:%d", config.HOST, config.PORT)
    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)


if __name__ == "__main__":
    main()
