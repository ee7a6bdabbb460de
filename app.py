"""Application factory."""

import atexit
import logging
import os
import uuid

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from config import Config
from errors import InternalError
from mail import AbstractTransport, Mailer, build_transport
from models import db
from routes.auth import auth_bp
from routes.listings import listings_bp, search_bp
from services.auth_service import AuthService
from services.matching import CompatibilityScorer, SmartSearchParser, build_matchers
from utils.responses import current_request_id, error_response
from utils.token_guard import register_token_guard

migrate = Migrate()
jwt = JWTManager()
register_token_guard(jwt)


def create_app(
    config_class: type[Config] = Config,
    *,
    mail_transport: AbstractTransport | None = None,
    search_parser: SmartSearchParser | None = None,
    scorer: CompatibilityScorer | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Collaborators (mail transport, smart search parser, compatibility scorer)
    are built from configuration unless passed in.
    """
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    # CORS
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Rate limiting
    key_prefix = app.config.get("RATELIMIT_KEY_PREFIX") or str(uuid.uuid4())
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[lambda: app.config.get("RATE_LIMIT", "60 per minute")],
        storage_uri=app.config.get("RATELIMIT_STORAGE_URI", "memory://"),
        headers_enabled=app.config.get("RATELIMIT_HEADERS_ENABLED", True),
        key_prefix=key_prefix,
    )
    limiter.init_app(app)
    app.config["RATELIMIT_KEY_PREFIX"] = key_prefix

    # Services
    transport = mail_transport or build_transport(app.config)
    mailer = Mailer(transport, timeout=float(app.config.get("MAIL_TIMEOUT", 5)))
    atexit.register(mailer.shutdown)
    default_parser, default_scorer = build_matchers(app.config)
    app.extensions["uninest.mailer"] = mailer
    app.extensions["uninest.auth"] = AuthService(
        mailer,
        otp_length=int(app.config.get("OTP_LENGTH", 6)),
        otp_ttl_minutes=int(app.config.get("OTP_TTL_MINUTES", 10)),
    )
    app.extensions["uninest.search_parser"] = search_parser or default_parser
    app.extensions["uninest.scorer"] = scorer or default_scorer
    app.logger.info(
        "Mail transport: %s; AI provider: %s",
        type(transport).__name__,
        app.config.get("AI_PROVIDER", "local"),
    )

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(listings_bp, url_prefix="/api/listings")
    app.register_blueprint(search_bp, url_prefix="/api/search")

    # Health
    @app.route("/health", methods=["GET"])
    def health_check():
        return jsonify({"status": "ok"})

    # Errors
    _register_error_handlers(app)

    return app


def _register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers with request IDs."""

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.after_request
    def _add_request_id_header(response):
        response.headers.setdefault("X-Request-ID", current_request_id())
        return response

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        return error_response(error)

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        app.logger.exception("Unhandled application error", exc_info=error)
        return error_response(InternalError())


if __name__ == "__main__":
    logging.basicConfig(
        level=Config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    application = create_app()
    with application.app_context():
        db.create_all()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
