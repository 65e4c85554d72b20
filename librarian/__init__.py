import logging

from flask import Flask

from .config import Config
from .controllers.errors import register_error_handlers
from .controllers.loans import bp as loans_bp
from .controllers.reports import bp as reports_bp
from .models.store import Store


def create_app(config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.logger.setLevel(app.config["LOG_LEVEL"])

    if not app.config.get("TESTING"):
        Store.instance(app.config["DATA_PATH"])  # load data.pkl or start empty
    app.register_blueprint(loans_bp)
    app.register_blueprint(reports_bp)
    register_error_handlers(app)

    return app
