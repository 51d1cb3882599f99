"""
Video Upload Service Flask Application Factory
"""
import os

from flask import Flask, current_app
from flask_cors import CORS

from .config import get_config


def create_app(config_class=None, registry=None, encoder=None):
    """
    Application factory for creating Flask app instance.

    Args:
        config_class: Configuration class to use (optional)
        registry: FileRegistry shared with the lifecycle controller (optional,
            a fresh empty registry is created when omitted)
        encoder: VideoEncoder to use instead of the configured FFmpeg one

    Returns:
        Flask application instance
    """
    # Static files are served by the static blueprint from STATIC_DIR
    app = Flask(__name__, static_folder=None)

    # Load configuration
    if config_class is None:
        config_class = get_config()
    app.config.from_object(config_class)

    # Blueprints resolve relative paths against the package, not the cwd
    for key in ('UPLOAD_DIR', 'STATIC_DIR', 'VIDEOSTORE_DIR', 'SNAPSHOT_PATH'):
        app.config[key] = os.path.abspath(app.config[key])

    # Enable CORS
    CORS(app, resources={
        r"/*": {
            "origins": "*",
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": ["Content-Type"]
        }
    })

    # Ensure directories exist
    config_class.ensure_directories()

    # Initialize services
    _init_services(app, config_class, registry, encoder)

    # Register blueprints
    _register_blueprints(app)

    return app


def _init_services(app, config_class, registry, encoder):
    """Initialize application services and store in app context"""
    from logging_service import get_logging_service, get_logger
    from file_registry import FileRegistry
    from snapshot_service import RegistrySnapshotter
    from upload_storage import UploadStorage
    from video_processing import VideoEncoder
    from job_coordinator import JobCoordinator

    # Initialize logging first
    logging_service = get_logging_service()
    logger = get_logger('videoservice.app')

    resolutions = config_class.resolutions()

    if registry is None:
        registry = FileRegistry()

    snapshotter = RegistrySnapshotter(registry, app.config['SNAPSHOT_PATH'])
    storage = UploadStorage(app.config['UPLOAD_DIR'])

    if encoder is None:
        encoder = VideoEncoder(
            app.config['VIDEOSTORE_DIR'],
            ffmpeg_binary=app.config['FFMPEG_BINARY'],
            timeout=app.config.get('ENCODE_TIMEOUT')
        )

    coordinator = JobCoordinator(
        registry,
        encoder,
        storage,
        resolutions,
        max_workers=app.config['MAX_CONCURRENT_JOBS'],
        snapshotter=snapshotter if app.config.get('SNAPSHOT_ON_JOB_END') else None
    )
    labels = ', '.join(label for label, _ in resolutions)
    logger.info(f"Job coordinator initialized (resolutions: {labels})")

    # Store services in app extensions
    app.extensions['services'] = {
        'logging': logging_service,
        'registry': registry,
        'snapshotter': snapshotter,
        'storage': storage,
        'encoder': encoder,
        'coordinator': coordinator
    }

    # Store logger for easy access
    app.logger = logger


def _register_blueprints(app):
    """Register all route blueprints"""
    from .routes import register_blueprints
    register_blueprints(app)


# Convenience functions to get services
def get_service(name):
    """Get a service from current app context"""
    return current_app.extensions.get('services', {}).get(name)


def get_registry():
    return get_service('registry')


def get_storage():
    return get_service('storage')


def get_coordinator():
    return get_service('coordinator')


def get_logging():
    return get_service('logging')
