# devtrack/core/logging_config.py
"""
Centralized logging configuration for the application.
Provides structured logging with rotation and different levels.
"""

import logging
import logging.handlers
import os
import sys
import time
from pathlib import Path


class ColoredFormatter(logging.Formatter):
    """Add colors to console logging for better readability."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'
    }

    def format(self, record):
        if hasattr(sys.stdout, 'isatty') and sys.stdout.isatty():
            levelname = record.levelname
            if levelname in self.COLORS:
                record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        return super().format(record)


class SecurityFilter(logging.Filter):
    """Pass only authentication and audit records."""

    def filter(self, record):
        return 'SECURITY EVENT' in record.getMessage() or \
               record.name.endswith('security') or \
               record.name.endswith('auth')


class DatabaseFilter(logging.Filter):
    """Pass only records coming from the database layer."""

    def filter(self, record):
        return 'database' in record.name.lower() or \
               'sqlite' in record.getMessage().lower()


def _rotating(path: Path, level: int, backup_count: int, formatter: logging.Formatter):
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=backup_count,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(app_name: str = "devtrack", log_level: str = None, log_dir: str = None):
    """
    Configure application logging with file rotation and console output.

    Args:
        app_name: Application name for log files
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files (default: devtrack/logs)
    """
    if log_level is None:
        log_level = os.environ.get('LOG_LEVEL', 'INFO')

    level = getattr(logging, log_level.upper(), logging.INFO)

    if log_dir is None:
        log_dir = Path(__file__).parent.parent / 'logs'
    else:
        log_dir = Path(log_dir)

    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    # ============== Console Handler ==============
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(
        fmt='%(levelname)-8s [%(asctime)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(console_handler)

    file_format = logging.Formatter(
        fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # ============== File Handlers ==============
    root_logger.addHandler(_rotating(log_dir / f'{app_name}.log', logging.INFO, 5, file_format))
    root_logger.addHandler(_rotating(log_dir / f'{app_name}_errors.log', logging.ERROR, 10, file_format))

    # ============== Security Audit Handler ==============
    security_format = logging.Formatter(
        fmt='%(asctime)s | %(levelname)-8s | %(message)s | IP:%(ip_address)s | User:%(username)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        defaults={'ip_address': 'N/A', 'username': 'N/A'}
    )
    security_handler = _rotating(log_dir / f'{app_name}_security.log', logging.INFO, 20, security_format)
    security_handler.addFilter(SecurityFilter())
    root_logger.addHandler(security_handler)

    # ============== Database Handler ==============
    db_handler = _rotating(log_dir / f'{app_name}_database.log', logging.WARNING, 5, file_format)
    db_handler.addFilter(DatabaseFilter())
    root_logger.addHandler(db_handler)

    logging.getLogger('werkzeug').setLevel(logging.WARNING)

    logging.info(f"Logging initialized - Level: {log_level} | Directory: {log_dir}")

    return root_logger


def log_request(request, response, duration_ms: float):
    """
    Log HTTP request details.

    Args:
        request: Flask request object
        response: Flask response object
        duration_ms: Request duration in milliseconds
    """
    if request.path.startswith('/static') or request.path == '/health':
        return

    logging.getLogger('devtrack.requests').info(
        f"{request.method} {request.path} {response.status_code} {duration_ms:.2f}ms",
        extra={
            'method': request.method,
            'path': request.path,
            'status': response.status_code,
            'duration': f'{duration_ms:.2f}',
            'remote_addr': request.remote_addr,
        }
    )


def setup_flask_logging(app):
    """
    Integrate logging with Flask application.

    Args:
        app: Flask application instance
    """
    from flask import request, g

    # Test runs keep pytest's own capture handlers in place.
    if not app.testing:
        setup_logging(
            app_name='devtrack',
            log_level=app.config.get('LOG_LEVEL', 'INFO'),
            log_dir=app.config.get('LOG_DIR'),
        )

    @app.before_request
    def start_timer():
        g.start_time = time.time()

    @app.after_request
    def log_request_info(response):
        if hasattr(g, 'start_time'):
            duration_ms = (time.time() - g.start_time) * 1000
            log_request(request, response, duration_ms)
        return response

    logger = logging.getLogger(__name__)
    logger.info(f"Flask application started - Environment: {app.config.get('ENV', 'production')}")
    logger.info(f"Debug mode: {app.debug}")
