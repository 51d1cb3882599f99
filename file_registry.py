"""
File Registry for uploaded videos.

This module provides:
- FileRecord dataclass holding the per-file status flags
- FileRegistry, the thread-safe map from client file id to FileRecord

The registry is the single owner of every record. All reads and writes go
through its methods, each of which holds the registry lock for its full
duration. Reads return copies, so callers never alias registry storage.

Wire format (shared by the snapshot file and the /file-info response):

    {"<fileId>": {"file_name": "...", "is_processed": false, "is_processing": false}}
"""

import json
import threading
from dataclasses import dataclass, asdict, replace
from typing import Dict, Any, List, Optional

from errors import UnknownFileError, SnapshotFormatError
from logging_service import get_logger

logger = get_logger('videoservice.registry')


@dataclass
class FileRecord:
    """Status of one uploaded file. The file id is the registry key."""
    file_name: str
    is_processed: bool = False
    is_processing: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FileRecord':
        if not isinstance(data, dict):
            raise SnapshotFormatError(f"Record must be an object, got {type(data).__name__}")
        if not isinstance(data.get('file_name'), str):
            raise SnapshotFormatError("Record is missing a string 'file_name'")
        for flag in ('is_processed', 'is_processing'):
            if not isinstance(data.get(flag, False), bool):
                raise SnapshotFormatError(f"Record field '{flag}' must be a boolean")
        return cls(
            file_name=data['file_name'],
            is_processed=data.get('is_processed', False),
            is_processing=data.get('is_processing', False)
        )


class FileRegistry:
    """
    Thread-safe map of file id -> FileRecord.

    Usage:
        registry = FileRegistry()
        registry.ensure(file_id, file_name)
        if registry.mark_processing_start(file_id):
            ...
            registry.mark_processing_end(file_id)
            registry.mark_processed(file_id)

        payload = registry.serialize()
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._records: Dict[str, FileRecord] = {}

    def __len__(self):
        with self._lock:
            return len(self._records)

    def __contains__(self, file_id):
        with self._lock:
            return file_id in self._records

    # ==================== Record Creation ====================

    def ensure(self, file_id: str, file_name: str) -> bool:
        """
        Create a record for file_id if none exists.

        The name of an existing record is never overwritten.

        Returns:
            True if a new record was created
        """
        with self._lock:
            if file_id in self._records:
                return False
            self._records[file_id] = FileRecord(file_name=file_name)
        logger.info(f"Registered file {file_id} ({file_name})")
        return True

    # ==================== Reads ====================

    def lookup(self, file_id: str) -> Optional[FileRecord]:
        """Get a copy of the record for file_id, or None if absent."""
        with self._lock:
            record = self._records.get(file_id)
            return replace(record) if record is not None else None

    def processing_ids(self) -> List[str]:
        """File ids whose is_processing flag is currently set."""
        with self._lock:
            return sorted(fid for fid, rec in self._records.items() if rec.is_processing)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Copy of the whole map in wire format."""
        with self._lock:
            return {fid: asdict(rec) for fid, rec in self._records.items()}

    def serialize(self) -> bytes:
        """Stable JSON encoding of the full map, taken under the lock."""
        with self._lock:
            data = {fid: asdict(rec) for fid, rec in self._records.items()}
            return json.dumps(data, sort_keys=True).encode('utf-8')

    # ==================== Status Transitions ====================

    def _get(self, file_id: str) -> FileRecord:
        # Caller holds the lock
        record = self._records.get(file_id)
        if record is None:
            raise UnknownFileError(file_id)
        return record

    def mark_processing_start(self, file_id: str) -> bool:
        """
        Set is_processing for file_id.

        Returns:
            True if the flag went from false to true, False if a job was
            already marked as running.

        Raises:
            UnknownFileError: no record exists for file_id
        """
        with self._lock:
            record = self._get(file_id)
            if record.is_processing:
                return False
            record.is_processing = True
            return True

    def mark_processing_end(self, file_id: str) -> None:
        """Clear is_processing for file_id."""
        with self._lock:
            self._get(file_id).is_processing = False

    def mark_processed(self, file_id: str) -> None:
        """Set is_processed for file_id. Never cleared once set."""
        with self._lock:
            self._get(file_id).is_processed = True

    # ==================== Snapshot Loading ====================

    def load(self, payload: bytes) -> int:
        """
        Replace the registry contents with a serialized file map.

        The payload is fully validated before anything is replaced.

        Returns:
            Number of records loaded

        Raises:
            SnapshotFormatError: payload is not a valid file map
        """
        try:
            data = json.loads(payload)
        except (ValueError, UnicodeDecodeError) as e:
            raise SnapshotFormatError(f"Snapshot is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise SnapshotFormatError("Snapshot root must be an object")

        records = {}
        for file_id, entry in data.items():
            try:
                records[file_id] = FileRecord.from_dict(entry)
            except SnapshotFormatError as e:
                raise SnapshotFormatError(f"Invalid record for {file_id}: {e}") from e

        with self._lock:
            self._records = records
        return len(records)

    @classmethod
    def from_json(cls, payload: bytes) -> 'FileRegistry':
        registry = cls()
        registry.load(payload)
        return registry
