import os

from flask import Flask

from amble.config import Config, load_environment
from amble.extensions import db, migrate
from amble.routes import convert, files, main
from amble.services.provider_factory import init_services
from amble.utils.logger import configure_logging


def init_extensions(app: Flask) -> None:
    """Initialize Flask extensions."""
    db.init_app(app)
    migrate.init_app(app, db)


def register_blueprints(app: Flask) -> None:
    """Register application blueprints."""
    app.register_blueprint(main.bp)
    app.register_blueprint(convert.bp)
    app.register_blueprint(files.bp)


def create_app(config_class: type = Config) -> Flask:
    """Flask application factory."""
    load_environment()
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Config is evaluated at import time, before load_environment has run
    db_uri = os.environ.get('DATABASE_URL')
    if db_uri and not app.testing:
        app.config['SQLALCHEMY_DATABASE_URI'] = db_uri

    uses_database = app.config.get('REPOSITORY_BACKEND', 'sqlalchemy') == 'sqlalchemy'
    if uses_database and not app.config.get('SQLALCHEMY_DATABASE_URI'):
        raise RuntimeError("SQLALCHEMY_DATABASE_URI is not set. Ensure DATABASE_URL is defined in the environment/.env.")

    init_extensions(app)
    register_blueprints(app)
    configure_logging(app)
    init_services(app)

    if uses_database:
        from amble import models  # noqa: F401
        with app.app_context():
            db.create_all()

    app.logger.info('Application startup')
    return app
