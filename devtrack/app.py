# devtrack/app.py
"""
Main application file with Flask application factory pattern.
"""

import os
import logging
from datetime import datetime, timezone
from flask import Flask, redirect, url_for

from devtrack.core import database
from devtrack.core.logging_config import setup_flask_logging
from devtrack.core.errors import register_error_handlers
from devtrack.core.ui import inject_globals


logger = logging.getLogger(__name__)


def create_app(test_config=None):
    """
    Application factory function.
    Creates and configures the Flask application.
    """
    app = Flask(__name__)

    # ==================== Configuration ====================
    app.config.update(
        SECRET_KEY=os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production'),
        SESSION_COOKIE_SECURE=os.environ.get('SESSION_COOKIE_SECURE', '0') == '1',
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE='Lax',
        PERMANENT_SESSION_LIFETIME=3600 * 24 * 7,
        DATABASE=os.environ.get('DEVTRACK_DATABASE', str(database.DEFAULT_DB_PATH)),
        ADMIN_USERNAME=os.environ.get('ADMIN_USERNAME', 'admin'),
        ADMIN_PASSWORD=os.environ.get('ADMIN_PASSWORD', 'changeme'),
        ENV=os.environ.get('FLASK_ENV', 'production'),
        LOG_LEVEL=os.environ.get('LOG_LEVEL', 'INFO'),
        LOG_DIR=os.environ.get('LOG_DIR'),
    )
    if test_config:
        app.config.update(test_config)

    # ==================== Setup Logging ====================
    setup_flask_logging(app)
    logger.info("Application starting up...")

    # ==================== Setup Database ====================
    database.configure(app.config['DATABASE'])

    from devtrack.modules.auth.models import ensure_user_schema, ensure_first_admin
    from devtrack.modules.devices.models import ensure_schema as ensure_devices_schema
    from devtrack.modules.reference.models import ensure_schema as ensure_reference_schema

    ensure_user_schema()
    ensure_first_admin(app.config['ADMIN_USERNAME'], app.config['ADMIN_PASSWORD'])
    ensure_reference_schema()
    ensure_devices_schema()
    logger.info("Database schemas initialized")

    # ==================== Register Error Handlers ====================
    register_error_handlers(app)

    # ==================== Context Processors ====================
    app.context_processor(inject_globals)

    # ==================== Register Blueprints ====================
    from devtrack.modules.auth.views import bp as auth_bp
    from devtrack.modules.devices import bp as devices_bp
    from devtrack.modules.reference.views import bp as reference_bp
    from devtrack.modules.reports.views import bp as reports_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(devices_bp)
    app.register_blueprint(reference_bp)
    app.register_blueprint(reports_bp)
    logger.info("All blueprints registered successfully")

    # ==================== Home Route ====================
    @app.route("/")
    def home():
        return redirect(url_for("devices.index"))

    # ==================== Health Check ====================
    @app.route("/health")
    def health():
        """Health check endpoint"""
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    logger.info("Application initialization complete")

    return app


# ==================== Application Entry Point ====================
if __name__ == '__main__':
    application = create_app()

    port = int(os.environ.get('PORT', 5000))
    host = os.environ.get('HOST', '127.0.0.1')
    debug = os.environ.get('FLASK_ENV') == 'development'

    logger.info(f"Starting server on {host}:{port}")
    try:
        application.run(host=host, port=port, debug=debug, use_reloader=debug)
    finally:
        database.cleanup_all_pools()
