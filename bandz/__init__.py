import logging

from flask import Flask, request
from .extensions import db, cors
from .config import Config
from .errors import register_error_handlers

log = logging.getLogger(__name__)


def create_app(config_class: type = Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db.init_app(app)
    cors.init_app(app, origins=app.config.get("CORS_ORIGINS", "*"))
    register_error_handlers(app)

    @app.before_request
    def _log_req():
        log.info(
            "REQ %s %s | practice=%s | orthodontist=%s",
            request.method,
            request.path,
            request.headers.get("X-Practice-Id"),
            request.headers.get("X-Orthodontist-Id"),
        )

    @app.get("/health")
    def health():
        return {"status": "OK"}, 200

    # register blueprints
    from .routes.admin import admin_bp
    app.register_blueprint(admin_bp)

    from .routes.api_v1 import api_v1_bp
    app.register_blueprint(api_v1_bp)

    return app
