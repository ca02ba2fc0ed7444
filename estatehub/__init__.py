from flask import Flask, jsonify
from flask_migrate import Migrate
from flask_login import LoginManager
from werkzeug.exceptions import HTTPException
from estatehub.extensions import db
from estatehub.config import Config
from estatehub.errors import ServiceError
from estatehub.middleware import setup_auth_middleware
import click
import logging
import os

_log_handlers = [logging.StreamHandler()]
if os.environ.get('LOG_FILE', 'app.log'):
    _log_handlers.append(
        logging.FileHandler(os.environ.get('LOG_FILE', 'app.log')))

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=_log_handlers,
)

logger = logging.getLogger(__name__)

migrate = Migrate()
login_manager = LoginManager()

HTTP_ERROR_CODES = {
    400: 'VALIDATION',
    401: 'UNAUTHORIZED',
    403: 'FORBIDDEN',
    404: 'NOT_FOUND',
}


def register_error_handlers(app):

    @app.errorhandler(ServiceError)
    def handle_service_error(error):
        db.session.rollback()
        if error.status_code >= 500:
            logger.error("Service error: %s", error.message, exc_info=True)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        code = HTTP_ERROR_CODES.get(
            error.code, error.name.upper().replace(' ', '_'))
        return jsonify({'error': error.description, 'code': code}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        logger.error("Unhandled error: %s", error, exc_info=True)
        return jsonify({'error': 'Internal server error',
                        'code': 'INTERNAL'}), 500


def register_commands(app):

    @app.cli.command('expire-subscriptions')
    def expire_subscriptions_command():
        """Mark lapsed premium subscriptions as expired."""
        from estatehub.services.subscription_service import (
            sweep_expired_subscriptions,
        )
        count = sweep_expired_subscriptions()
        click.echo(f"Expired {count} subscription(s)")


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Setup user loader
    from estatehub.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Not logged in',
                        'code': 'UNAUTHORIZED'}), 401

    # Register blueprints
    from estatehub.blueprints import (
        admin,
        auth,
        contacts,
        listings,
        payments,
        reviews,
    )

    app.register_blueprint(auth.bp, url_prefix='/')
    app.register_blueprint(listings.bp, url_prefix='/')
    app.register_blueprint(reviews.bp, url_prefix='/')
    app.register_blueprint(payments.bp, url_prefix='/')
    app.register_blueprint(contacts.bp, url_prefix='/')
    app.register_blueprint(admin.bp, url_prefix='/')

    @app.route('/')
    def index():
        return jsonify({'message': 'estatehub API running'})

    # Setup authentication middleware (API-wide login protection)
    setup_auth_middleware(app)
    register_error_handlers(app)
    register_commands(app)

    # Note: Database tables are managed via Flask-Migrate
    # Use 'flask db upgrade' to create/update tables

    logger.info("Flask application initialized")
    return app
