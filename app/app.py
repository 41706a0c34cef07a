"""
Speaker/content CMS backend
Application factory and initialization
"""
import os
import sys
import logging

import flask.cli
flask.cli.show_server_banner = lambda *args: None

from flask import Flask
import structlog

from constants import *
from settings import load_settings
from utils import ColoredFormatter, FilterRemoveDateFromWerkzeugLogs, get_or_create_secret_key
from dependencies import EXTENSION_KEY, build_services
from session_store import InMemorySessionStore, RedisSessionStore, ServerSideSessionInterface
from exceptions import register_exception_handlers
from auth import auth_blueprint, init_users, limiter, login_manager

# Routes
from routes.speakers import speakers_bp
from routes.content import content_bp
from routes.upload import upload_bp
from routes.users import users_bp
from routes.web import web_bp

logger = structlog.get_logger('main')

_logging_configured = False


def configure_logging():
    """Colored stdlib handler with structlog on top (JSON when LOG_FORMAT=json)"""
    global _logging_configured
    if _logging_configured:
        return

    formatter = ColoredFormatter(
        '[%(asctime)s.%(msecs)03d] %(levelname)s (%(module)s) %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=logging.INFO,
        handlers=[handler]
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if os.environ.get('LOG_FORMAT') == 'json' else structlog.dev.ConsoleRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Apply filter to hide date from http access logs
    logging.getLogger('werkzeug').addFilter(FilterRemoveDateFromWerkzeugLogs())
    _logging_configured = True


def build_session_store(session_settings, clock=None):
    redis_url = session_settings.get('redis_url')
    if redis_url:
        logger.info('Using Redis session store')
        return RedisSessionStore.from_url(redis_url)
    if clock is not None:
        return InMemorySessionStore(clock=clock)
    return InMemorySessionStore()


def resolve_secret_key(session_settings, data_dir):
    secret = session_settings.get('secret')
    if secret:
        return secret
    logger.warning('SESSION_SECRET is not set, using a generated key stored in the data directory')
    return get_or_create_secret_key(data_dir, SECRET_KEY_FILENAME)


def create_app(app_settings=None, clock=None, session_store=None, config=None):
    """
    Application factory

    Args:
        app_settings: settings mapping, defaults to load_settings()
        clock: time source shared by the caches and sessions (tests pass a fake one)
        session_store: SessionStore to use instead of the configured one
        config: extra Flask config values applied last
    """
    configure_logging()
    app_settings = app_settings or load_settings()

    paths = app_settings['paths']
    session_settings = app_settings['session']
    data_dir = paths['data_dir']

    app = Flask(__name__)
    app.config['SECRET_KEY'] = resolve_secret_key(session_settings, data_dir)
    app.config['SESSION_COOKIE_NAME'] = SESSION_COOKIE_NAME
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'
    app.config['SESSION_COOKIE_SECURE'] = bool(session_settings.get('cookie_secure'))
    # Multipart overhead on top of the image itself, the exact limit is checked per file
    app.config['MAX_CONTENT_LENGTH'] = MAX_UPLOAD_SIZE + 64 * 1024
    app.config['PUBLIC_DIR'] = paths['public_dir']
    app.config['RATELIMIT_ENABLED'] = bool(app_settings['ratelimit'].get('enabled', True))
    app.config['RATELIMIT_STORAGE_URI'] = session_settings.get('redis_url') or 'memory://'
    if config:
        app.config.update(config)

    # Caches, repositories and data files
    services = build_services(data_dir, paths['uploads_dir'], app_settings['cache']['ttl_seconds'], clock=clock)
    app.extensions[EXTENSION_KEY] = services
    services.speakers_document.ensure()
    services.content_document.ensure()
    init_users(app, app_settings['admin'])

    # Sessions and login
    store = session_store or build_session_store(session_settings, clock=clock)
    interface_kwargs = {'clock': clock} if clock is not None else {}
    app.session_interface = ServerSideSessionInterface(store, session_settings['ttl_seconds'], **interface_kwargs)
    login_manager.init_app(app)
    limiter.init_app(app)

    register_exception_handlers(app)

    app.register_blueprint(auth_blueprint)
    app.register_blueprint(speakers_bp)
    app.register_blueprint(content_bp)
    app.register_blueprint(upload_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(web_bp)

    logger.info(f'Application ready, data directory: {data_dir}')
    return app


def main():
    app = create_app()
    port = int(os.environ.get('PORT', 3000))
    logger.info(f'Build Version: {BUILD_VERSION}')
    logger.info(f'Starting server on port {port}...')
    logger.info(f'Admin page at http://localhost:{port}/admin')
    app.run(host="0.0.0.0", port=port, debug=False, use_reloader=False)


if __name__ == '__main__':
    main()
