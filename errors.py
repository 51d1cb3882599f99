"""
Exception types shared by the video service components.
"""


class VideoServiceError(Exception):
    """Base class for all service errors."""


class UnknownFileError(VideoServiceError, KeyError):
    """A status change was requested for a file id the registry never saw."""

    def __init__(self, file_id: str):
        super().__init__(file_id)
        self.file_id = file_id

    def __str__(self):
        return f"File Id {self.file_id} not present"


class SnapshotError(VideoServiceError):
    """The registry snapshot could not be written or read."""


class SnapshotFormatError(SnapshotError):
    """The snapshot file exists but does not hold a valid file map."""


class ConfigError(VideoServiceError):
    """Invalid service configuration."""


class UploadError(VideoServiceError):
    """A chunk could not be appended to its upload file."""
