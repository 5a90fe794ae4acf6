from collections.abc import Mapping

from flask import Flask, jsonify
from flask_cors import CORS

from .config import Config
from .extensions import db
from .geocoding import StaticCityGeocoder
from .routes import register_routes


def create_app(config_object=None):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)

    if isinstance(config_object, Mapping):
        app.config.from_mapping(config_object)
    elif config_object:
        app.config.from_object(config_object)
    else:
        app.config.from_envvar("APP_SETTINGS", silent=True)

    app.logger.setLevel(app.config["LOG_LEVEL"])

    db.init_app(app)
    app.extensions["geocoder"] = app.config.get("GEOCODER") or StaticCityGeocoder()

    # Cookies carry the session, so origins must be explicit.
    CORS(app,
         origins=[origin.strip() for origin in app.config["CORS_ORIGINS"].split(",") if origin.strip()],
         supports_credentials=True,
         allow_headers=["Content-Type", "Authorization"],
         methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    )

    register_routes(app)

    @app.errorhandler(404)
    def not_found(_exc):
        return jsonify({"success": False, "error": "not_found", "message": "Route not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(_exc):
        return jsonify({"success": False, "error": "method_not_allowed", "message": "Method not allowed"}), 405

    return app
