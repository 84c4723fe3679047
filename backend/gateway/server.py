"""
API gateway: combines auth, users and events blueprints.
This is the local entrypoint for development:

    python -m backend.gateway.server
"""

import logging
import os
import time

from dotenv import load_dotenv
from flask import Flask, Response, g, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

load_dotenv()

# Basic console logging during API requests
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="[%(levelname)s] %(asctime)s - %(message)s",
)


def _cors_origins():
    raw = os.getenv("CORS_ORIGINS", "*").strip()
    if raw == "*":
        return "*"
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def create_app() -> Flask:
    """
    Application factory for creating the Flask app.

    Returns:
        Flask: The configured Flask application.
    """
    app = Flask(__name__)
    app.json.sort_keys = False

    CORS(app, resources={
        r"/*": {
            "origins": _cors_origins(),
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
            "expose_headers": ["Content-Type", "Authorization"],
        }
    })

    # --- REGISTER BLUEPRINTS ---
    from backend.auth_service.routes import auth_bp
    from backend.database.db_connection import init_db
    from backend.events_service.routes import events_bp
    from backend.gateway.swagger import docs_bp
    from backend.users_service.routes import users_bp

    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(users_bp, url_prefix="/users")
    app.register_blueprint(events_bp, url_prefix="/events")
    app.register_blueprint(docs_bp)

    logging.info("All blueprints registered successfully.")

    init_db()
    logging.info("Database schema is up to date.")

    # --- REQUEST LOGGING ---
    @app.before_request
    def before_request() -> None:
        g.request_started = time.perf_counter()

    @app.after_request
    def after_request(response: Response) -> Response:
        """
        Log method, path, status and duration. Headers are never logged so
        bearer tokens stay out of the logs.
        """
        elapsed_ms = (time.perf_counter() - g.get("request_started", time.perf_counter())) * 1000
        logging.info(f"{request.method} {request.path} {response.status_code} {elapsed_ms:.1f} ms")
        return response

    # --- JSON ERRORS ---
    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        return jsonify({"message": error.description or error.name}), error.code

    @app.errorhandler(Exception)
    def internal_error(error: Exception):
        logging.exception(f"Unhandled error on {request.method} {request.path}: {error}")
        return jsonify({"message": "Internal Server Error"}), 500

    # --- BASIC HEALTH CHECKPOINTS ---
    @app.route("/")
    def ping():
        """
        Root URL for simple 'online' check.
        """
        return jsonify({"status": "gateway_ok"}), 200

    @app.route("/health")
    def health():
        """
        Health check endpoint.
        """
        return jsonify({"status": "ok"}), 200

    return app


if __name__ == "__main__":
    app = create_app()
    port = int(os.getenv("PORT", 3000))
    logging.info(f"API docs available at http://localhost:{port}/api-docs")
    app.run(host="0.0.0.0", port=port, debug=os.getenv("FLASK_DEBUG", "0") == "1")
