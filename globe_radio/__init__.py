from __future__ import annotations

import logging
from typing import Any

from flask import Flask, jsonify, render_template
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .api import build_api_blueprint
from .cache import RedisCache
from .config import Settings
from .directory import DirectoryClient
from .exceptions import AppError
from .security import RateLimiter, attach_security_headers, rate_limited
from .service import RadioService, StationDirectory


def create_app(
    settings: Settings | None = None,
    directory: StationDirectory | None = None,
) -> Flask:
    settings = settings or Settings.from_env()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    logger = logging.getLogger(__name__)

    app = Flask(__name__, template_folder="../templates")
    app.config["MAX_CONTENT_LENGTH"] = settings.max_request_bytes

    CORS(
        app,
        resources={r"/api/*": {"origins": settings.allowed_origins}},
        supports_credentials=False,
    )

    cache = RedisCache(settings.redis_url)
    service = RadioService(
        settings=settings,
        directory=directory or DirectoryClient(settings),
        cache=cache,
    )
    limiter = RateLimiter(
        settings.refresh_limit_per_window,
        settings.rate_limit_window_seconds,
        settings.redis_url,
    )

    app.extensions["settings"] = settings
    app.extensions["radio"] = service

    app.register_blueprint(build_api_blueprint(service, rate_limited(limiter)))

    @app.get("/")
    def index() -> Any:
        return render_template(
            "index.html",
            app_name=settings.app_name,
            rotation_speed=settings.rotation_speed,
            default_volume=settings.default_volume,
        )

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        return jsonify({"error": error.message}), error.status_code

    @app.errorhandler(404)
    def not_found(_: Any):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(_: Any):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(Exception)
    def unhandled_error(error: Exception):
        if isinstance(error, HTTPException):
            return jsonify({"error": error.description}), error.code
        logger.exception("Unhandled error: %s", error)
        return jsonify({"error": "Internal server error"}), 500

    @app.after_request
    def security_headers(response):
        return attach_security_headers(response)

    if settings.fetch_on_startup:
        report = service.refresh()
        logger.info(
            "Startup catalog load: status=%s stations=%s",
            report["status"],
            report["stations_total"],
        )

    logger.info(
        "App initialized | stations=%s | cache=%s | mirrors=%s",
        service.catalog.count,
        cache.backend,
        len(settings.directory_base_urls),
    )

    return app
