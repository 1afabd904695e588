from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import cors
from .cli import register_commands
from .storage.document_store import DocumentStore
from .storage.errors import InvalidCollectionName, UpdateError


def create_app(config_class: type[Config] = Config, **overrides):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.config.update(overrides)
    # app.logger is the "coursify" logger, parent of the storage and utils loggers
    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Extensions
    cors.init_app(app)
    DocumentStore.from_config(app.config).init_app(app)

    # CLI
    register_commands(app)

    # Blueprints
    from .routes.api import bp as api
    from .routes.courses_api import bp as courses_api
    from .routes.lessons_api import bp as lessons_api
    from .routes.chapters_api import bp as chapters_api
    from .routes.quizzes_api import bp as quizzes_api

    app.register_blueprint(api, url_prefix="/api")
    app.register_blueprint(courses_api, url_prefix="/api")
    app.register_blueprint(lessons_api, url_prefix="/api")
    app.register_blueprint(chapters_api, url_prefix="/api")
    app.register_blueprint(quizzes_api, url_prefix="/api")

    # Errors: bad names and bad updates are the caller's fault, the rest (corrupt files included) is ours
    @app.errorhandler(InvalidCollectionName)
    @app.errorhandler(UpdateError)
    def handle_store_error(e):
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return e
        app.logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error"}), 500

    return app
