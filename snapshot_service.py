"""
Snapshot persistence for the file registry.

The registry is written as a single JSON file. Each write goes to a sibling
temp file which is then renamed over the snapshot, so a crash mid-write
leaves the previous snapshot in place.
"""

import os
import tempfile
import threading

from errors import SnapshotError
from file_registry import FileRegistry
from logging_service import get_logger

logger = get_logger('videoservice.snapshot')

DEFAULT_SNAPSHOT_PATH = './fileMap.json'


class RegistrySnapshotter:
    """Writes and restores the registry snapshot file."""

    def __init__(self, registry: FileRegistry, snapshot_path: str = DEFAULT_SNAPSHOT_PATH):
        """
        Args:
            registry: Registry to persist
            snapshot_path: Location of the JSON snapshot
        """
        self.registry = registry
        self.snapshot_path = snapshot_path
        # Held from serialize through rename so writes land in call order
        self._write_lock = threading.Lock()

    def persist(self) -> None:
        """
        Atomically replace the snapshot with the current registry contents.

        Concurrent calls are serialized, so the file always ends up holding
        the newest payload.

        Raises:
            SnapshotError: the snapshot could not be written
        """
        with self._write_lock:
            try:
                payload = self.registry.serialize()
            except (TypeError, ValueError) as e:
                logger.error(f"Error occured while marshalling json {e}")
                raise SnapshotError(f"Could not serialize registry: {e}") from e

            directory = os.path.dirname(os.path.abspath(self.snapshot_path))
            tmp_path = None
            try:
                os.makedirs(directory, exist_ok=True)
                fd, tmp_path = tempfile.mkstemp(
                    prefix='.' + os.path.basename(self.snapshot_path) + '.',
                    suffix='.tmp',
                    dir=directory
                )
                with os.fdopen(fd, 'wb') as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.snapshot_path)
                tmp_path = None
            except OSError as e:
                logger.error(f"Error occured while writing snapshot {self.snapshot_path}: {e}")
                raise SnapshotError(f"Could not write snapshot {self.snapshot_path}: {e}") from e
            finally:
                if tmp_path is not None and os.path.exists(tmp_path):
                    os.remove(tmp_path)

        logger.info(f"Data written to file {self.snapshot_path} ({len(self.registry)} records)")

    def restore(self) -> int:
        """
        Load the snapshot into the registry.

        Returns:
            Number of records restored

        Raises:
            SnapshotError: the snapshot is missing, unreadable or malformed
        """
        try:
            with open(self.snapshot_path, 'rb') as f:
                payload = f.read()
        except OSError as e:
            logger.error(f"Not able to read from the file {self.snapshot_path}: {e}")
            raise SnapshotError(f"Could not read snapshot {self.snapshot_path}: {e}") from e

        try:
            count = self.registry.load(payload)
        except SnapshotError as e:
            logger.error(f"Not able to read from the file {self.snapshot_path}: {e}")
            raise

        stale = self.registry.processing_ids()
        if stale:
            # Jobs cut off by a previous shutdown are not reconciled
            logger.warning(f"Restored {len(stale)} files still marked as processing: {stale}")
        logger.info(f"Restored {count} records from {self.snapshot_path}")
        return count

    def initialize(self) -> bool:
        """
        Write an empty snapshot if none exists yet.

        Returns:
            True if a new snapshot file was created
        """
        if os.path.exists(self.snapshot_path):
            return False
        RegistrySnapshotter(FileRegistry(), self.snapshot_path).persist()
        logger.info(f"Created empty snapshot at {self.snapshot_path}")
        return True
