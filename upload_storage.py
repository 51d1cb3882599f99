"""
Upload Storage
Appends uploaded chunks to the per-file upload path.
"""

import os
import shutil
from typing import BinaryIO

from errors import UploadError
from logging_service import get_logger

logger = get_logger('videoservice.uploads')

COPY_BUFFER_SIZE = 1024 * 1024  # 1MB


def upload_file_name(file_id: str, file_name: str) -> str:
    """On-disk name shared by the upload file and the encoder outputs."""
    return f"{file_id}_{file_name}"


def is_safe_name(value: str) -> bool:
    """True if value can be used as a single path component."""
    if not value or value in ('.', '..'):
        return False
    if '/' in value or '\\' in value or '\x00' in value:
        return False
    return True


class UploadStorage:
    """Append-only chunk storage rooted at one directory."""

    def __init__(self, upload_dir: str):
        self.upload_dir = upload_dir
        os.makedirs(self.upload_dir, exist_ok=True)

    def path_for(self, file_id: str, file_name: str) -> str:
        return os.path.join(self.upload_dir, upload_file_name(file_id, file_name))

    def append_chunk(self, file_id: str, file_name: str, stream: BinaryIO) -> int:
        """
        Append the contents of stream to the upload file.

        Returns:
            Number of bytes written

        Raises:
            UploadError: the file could not be opened or written
        """
        path = self.path_for(file_id, file_name)
        try:
            dst = open(path, 'ab')
        except OSError as e:
            logger.error(f"Error creating or opening destination file {path}: {e}")
            raise UploadError('Error creating or opening destination file') from e

        with dst:
            start = dst.tell()
            try:
                shutil.copyfileobj(stream, dst, COPY_BUFFER_SIZE)
            except OSError as e:
                logger.error(f"Error copying chunk into {path}: {e}")
                raise UploadError('Error copying file') from e
            written = dst.tell() - start

        logger.debug(f"Appended {written} bytes to {path}")
        return written

    def size_of(self, file_id: str, file_name: str) -> int:
        path = self.path_for(file_id, file_name)
        return os.path.getsize(path) if os.path.exists(path) else 0
