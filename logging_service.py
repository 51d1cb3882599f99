"""
Logging Service for the video upload service.
Provides file-based logging with rotation and an in-memory buffer of
recent entries for the log API.
"""

import os
import sys
import logging
import threading
from datetime import datetime
from pathlib import Path
from logging.handlers import RotatingFileHandler
from collections import deque

# Configuration
LOG_FILE_NAME = 'videoservice.log'
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5
MAX_MEMORY_LINES = 1000  # Keep last 1000 lines in memory
LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s'


class LogBuffer:
    """Thread-safe circular buffer for storing recent log lines."""

    def __init__(self, max_size: int = MAX_MEMORY_LINES):
        self._buffer = deque(maxlen=max_size)
        self._lock = threading.Lock()

    def append(self, log_entry: dict):
        with self._lock:
            self._buffer.append(log_entry)

    def get_recent(self, count: int = 100) -> list:
        """Get the most recent log entries."""
        if count <= 0:
            return []
        with self._lock:
            return list(self._buffer)[-count:]


# Global log buffer
log_buffer = LogBuffer()


class BufferedHandler(logging.Handler):
    """Custom handler that writes to the in-memory buffer."""

    def __init__(self, buffer: LogBuffer):
        super().__init__()
        self.buffer = buffer

    def emit(self, record):
        try:
            self.buffer.append({
                'timestamp': datetime.fromtimestamp(record.created).isoformat(),
                'level': record.levelname,
                'logger': record.name,
                'message': record.getMessage(),
                'module': record.module,
                'line': record.lineno
            })
        except Exception:
            self.handleError(record)


class LoggingService:
    """Central logging service for the application."""

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._initialized = True
        self._setup_logging()

    def _setup_logging(self):
        """Configure logging with file, console and buffer handlers."""
        self.log_dir = os.path.abspath(os.getenv('LOG_DIR', './logs'))
        self.log_file = os.path.join(self.log_dir, LOG_FILE_NAME)
        console_level = os.getenv('LOG_LEVEL', 'INFO').upper()

        formatter = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)

        # Clear existing handlers
        root_logger.handlers.clear()

        try:
            os.makedirs(self.log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                self.log_file,
                maxBytes=MAX_LOG_SIZE,
                backupCount=BACKUP_COUNT,
                encoding='utf-8'
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            # Console and buffer logging still work without a writable log dir
            sys.stderr.write(f"Could not open log file {self.log_file}: {e}\n")
            self.log_file = None

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, console_level, logging.INFO))
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        buffer_handler = BufferedHandler(log_buffer)
        buffer_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(buffer_handler)

        # werkzeug logs every request at INFO
        logging.getLogger('werkzeug').setLevel(logging.WARNING)

        self.logger = root_logger

    def get_logger(self, name: str) -> logging.Logger:
        """Get a named logger."""
        return logging.getLogger(name)

    def get_recent_logs(self, count: int = 100) -> list:
        """Get recent log entries from memory."""
        return log_buffer.get_recent(count)

    def get_log_files(self) -> list:
        """Get list of available log files."""
        files = []
        if not self.log_file:
            return files
        for f in Path(self.log_dir).glob(f'{LOG_FILE_NAME}*'):
            stat = f.stat()
            files.append({
                'name': f.name,
                'size': stat.st_size,
                'modified': datetime.fromtimestamp(stat.st_mtime).isoformat()
            })
        return sorted(files, key=lambda x: x['name'])


# Singleton instance
_logging_service = None


def get_logging_service() -> LoggingService:
    """Get the logging service singleton."""
    global _logging_service
    if _logging_service is None:
        _logging_service = LoggingService()
    return _logging_service


def get_logger(name: str) -> logging.Logger:
    """Convenience function to get a named logger."""
    get_logging_service()  # Ensure logging is initialized
    return logging.getLogger(name)
