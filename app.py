import logging
from logging.config import dictConfig

import click
from flask import Flask, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from config import Config
from errors import ApiError, AuthenticationRequired, TransientStorageError
from models import db, Category
from models.Category import DEFAULT_CATEGORIES
from routes import api
from services.blob_store import LocalBlobStore

logger = logging.getLogger(__name__)

migrate = Migrate()
jwt = JWTManager()


def configure_logging(level):
    dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'default': {'format': '[%(asctime)s] %(levelname)s in %(name)s: %(message)s'},
        },
        'handlers': {
            'wsgi': {
                'class': 'logging.StreamHandler',
                'stream': 'ext://flask.logging.wsgi_errors_stream',
                'formatter': 'default',
            },
        },
        'root': {'level': level, 'handlers': ['wsgi']},
    })


def seed_categories():
    """Insert any missing default categories; returns how many were added."""
    existing = {name for (name,) in db.session.query(Category.name).all()}
    missing = [name for name in DEFAULT_CATEGORIES if name not in existing]
    for name in missing:
        db.session.add(Category(name=name))
    db.session.commit()
    return len(missing)


def _error_response(error):
    return jsonify(error.to_dict()), error.status_code


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(error):
        if error.status_code >= 500:
            app.logger.error("%s: %s", type(error).__name__, error.message)
        return _error_response(error)

    @app.errorhandler(SQLAlchemyError)
    def handle_storage_error(error):
        db.session.rollback()
        app.logger.exception("Unhandled storage error")
        return _error_response(TransientStorageError())

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        code = (error.name or 'error').lower().replace(' ', '_')
        return jsonify({"error": error.description, "code": code}), error.code


def register_jwt_callbacks(jwt_manager):
    @jwt_manager.unauthorized_loader
    def missing_token(reason):
        return _error_response(AuthenticationRequired(reason))

    @jwt_manager.invalid_token_loader
    def invalid_token(reason):
        return _error_response(AuthenticationRequired(f"Invalid token: {reason}"))

    @jwt_manager.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return _error_response(AuthenticationRequired("Token has expired"))


def register_commands(app):
    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables and seed the default categories."""
        db.create_all()
        added = seed_categories()
        click.echo(f"Database initialized ({added} categories added).")

    @app.cli.command('seed-categories')
    def seed_categories_command():
        """Insert the default categories that are missing."""
        added = seed_categories()
        click.echo(f"{added} categories added.")


def create_app(config_object=None):
    config_object = config_object or Config
    configure_logging(getattr(config_object, 'LOG_LEVEL', 'INFO'))

    app = Flask(__name__)
    app.config.from_object(config_object)

    CORS(app,
         resources={r"/api/*": {
             "origins": app.config['CORS_ORIGINS'],
             "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
             "allow_headers": ["Content-Type", "Authorization"]
         }},
         supports_credentials=True
    )

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    register_jwt_callbacks(jwt)

    app.extensions['blob_store'] = LocalBlobStore(app.config['UPLOAD_FOLDER'], app.config['UPLOAD_URL_PREFIX'])

    register_error_handlers(app)
    register_commands(app)
    app.register_blueprint(api)

    logger.info("Cook & Connect API ready (database: %s)", app.config['SQLALCHEMY_DATABASE_URI'].split('://')[0])
    return app


if __name__ == '__main__':
    create_app().run(host="0.0.0.0", port=5000, debug=True)
