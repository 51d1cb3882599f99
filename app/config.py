"""
Application Configuration
Loads settings from environment variables
"""
import os
from dotenv import load_dotenv

from errors import ConfigError
from video_processing import parse_resolution_labels

# Load .env file
load_dotenv()


def _env_bool(name, default):
    return os.getenv(name, default).lower() in ('1', 'true', 'yes')


def _env_float(name, default=None):
    value = os.getenv(name)
    if value is None or value == '':
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {value!r}")


class Config:
    """Base configuration"""

    # Server
    HOST = os.getenv('HOST', '0.0.0.0')
    PORT = int(os.getenv('PORT', '8001'))

    # Storage paths
    UPLOAD_DIR = os.getenv('UPLOAD_DIR', './upload')
    STATIC_DIR = os.getenv('STATIC_DIR', './static')
    VIDEOSTORE_DIR = os.getenv('VIDEOSTORE_DIR', os.path.join(STATIC_DIR, 'videostore'))
    SNAPSHOT_PATH = os.getenv('SNAPSHOT_PATH', './fileMap.json')

    # Encoding
    ENABLED_RESOLUTIONS = os.getenv('ENABLED_RESOLUTIONS', '144p')
    FFMPEG_BINARY = os.getenv('FFMPEG_BINARY', 'ffmpeg')
    ENCODE_TIMEOUT = _env_float('ENCODE_TIMEOUT')  # seconds, None = no limit
    MAX_CONCURRENT_JOBS = int(os.getenv('MAX_CONCURRENT_JOBS', '4'))

    # Persistence / shutdown
    SNAPSHOT_ON_JOB_END = _env_bool('SNAPSHOT_ON_JOB_END', 'true')
    SHUTDOWN_TIMEOUT = _env_float('SHUTDOWN_TIMEOUT', 30.0)

    # Largest single upload request Flask will accept
    MAX_CONTENT_LENGTH = int(os.getenv('MAX_CONTENT_LENGTH', str(64 * 1024 * 1024)))

    @classmethod
    def resolutions(cls):
        """Enabled (label, scale) pairs."""
        return parse_resolution_labels(cls.ENABLED_RESOLUTIONS)

    @classmethod
    def ensure_directories(cls):
        """Create necessary directories"""
        os.makedirs(cls.UPLOAD_DIR, exist_ok=True)
        os.makedirs(cls.STATIC_DIR, exist_ok=True)
        os.makedirs(cls.VIDEOSTORE_DIR, exist_ok=True)


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


class TestingConfig(Config):
    """Test configuration"""
    TESTING = True
    SNAPSHOT_ON_JOB_END = False


# Configuration mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': ProductionConfig
}


def get_config():
    """Get configuration based on environment"""
    env = os.getenv('FLASK_ENV', 'production')
    return config.get(env, config['default'])
