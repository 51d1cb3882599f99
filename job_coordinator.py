"""
Processing Job Coordinator.

Runs one processing job per uploaded file:
1. Flip the file's is_processing flag (synchronously, before the request returns)
2. Fan out one encoder run per enabled resolution in parallel
3. Wait for every encoder to finish
4. Clear is_processing and set is_processed

Jobs run on a bounded worker pool. At most one job per file id is in flight;
a second request for the same file is rejected while the first runs.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, Future, as_completed, wait as wait_futures
from enum import Enum
from typing import Dict, List, Optional, Tuple

from errors import UnknownFileError, SnapshotError
from file_registry import FileRegistry
from logging_service import get_logger
from upload_storage import UploadStorage, upload_file_name
from video_processing import VideoEncoder, EncodeResult

logger = get_logger('videoservice.jobs')


class JobStartResult(str, Enum):
    """Outcome of a start_job request."""
    STARTED = 'started'
    ALREADY_RUNNING = 'already_running'
    UNKNOWN_FILE = 'unknown_file'
    SHUTTING_DOWN = 'shutting_down'


class JobCoordinator:
    """
    Starts and tracks processing jobs.

    Usage:
        coordinator = JobCoordinator(registry, encoder, storage, [('144p', '256:144')])
        result = coordinator.start_job(file_id)

        coordinator.outstanding_jobs()
        coordinator.shutdown(wait=False)
    """

    def __init__(
        self,
        registry: FileRegistry,
        encoder: VideoEncoder,
        storage: UploadStorage,
        resolutions: List[Tuple[str, str]],
        max_workers: int = 4,
        snapshotter=None
    ):
        """
        Args:
            registry: File registry holding the status flags
            encoder: Encoder used for every resolution
            storage: Upload storage the input files live in
            resolutions: Enabled (label, scale) pairs
            max_workers: Number of jobs that may run at once
            snapshotter: Optional RegistrySnapshotter persisted after each job
        """
        self.registry = registry
        self.encoder = encoder
        self.storage = storage
        self.resolutions = list(resolutions)
        self.snapshotter = snapshotter

        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix='video-job'
        )
        self._jobs: Dict[str, Future] = {}
        # Lock order: coordinator lock, then registry lock
        self._lock = threading.Lock()
        self._accepting = True

    # ==================== Job Submission ====================

    def start_job(self, file_id: str) -> JobStartResult:
        """
        Mark file_id as processing and queue its job.

        The is_processing flag is set before this returns, so a status poll
        issued after the response already sees it.
        """
        with self._lock:
            if not self._accepting:
                logger.warning(f"Rejected processing for {file_id}: shutting down")
                return JobStartResult.SHUTTING_DOWN

            if file_id in self._jobs:
                logger.info(f"Processing for {file_id} already in progress")
                return JobStartResult.ALREADY_RUNNING

            try:
                transitioned = self.registry.mark_processing_start(file_id)
            except UnknownFileError as e:
                logger.warning(f"{e}, nothing to process")
                return JobStartResult.UNKNOWN_FILE

            if not transitioned:
                # Flag left set by a job that never finished (process stopped mid-job)
                logger.warning(f"File {file_id} was marked as processing with no running job, restarting")

            try:
                future = self._executor.submit(self._run_job, file_id)
            except RuntimeError:
                self.registry.mark_processing_end(file_id)
                logger.warning(f"Rejected processing for {file_id}: worker pool is closed")
                return JobStartResult.SHUTTING_DOWN

            self._jobs[file_id] = future

        future.add_done_callback(lambda f: self._on_job_done(file_id, f))
        logger.info(f"Queued processing for file {file_id}")
        return JobStartResult.STARTED

    def _on_job_done(self, file_id: str, future: Future):
        if future.cancelled():
            # Dropped from the queue by shutdown, _run_job never ran
            with self._lock:
                if self._jobs.get(file_id) is future:
                    del self._jobs[file_id]
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Processing job for {file_id} crashed: {error!r}")

    # ==================== Job Body ====================

    def _run_job(self, file_id: str) -> List[EncodeResult]:
        record = self.registry.lookup(file_id)
        if record is None:
            # start_job already flipped the flag, so this is a bug
            logger.error(f"File Id {file_id} not present, aborting job")
            with self._lock:
                self._jobs.pop(file_id, None)
            return []

        name = upload_file_name(file_id, record.file_name)
        input_path = self.storage.path_for(file_id, record.file_name)
        logger.info(f"STARTED: Processing for file {name}")

        results: List[EncodeResult] = []
        try:
            results = self._encode_all(input_path)
        finally:
            with self._lock:
                self._jobs.pop(file_id, None)
                self.registry.mark_processing_end(file_id)
                self.registry.mark_processed(file_id)

        failed = [r for r in results if not r.success]
        if failed:
            labels = ', '.join(r.label for r in failed)
            logger.warning(f"Processing for file {name} had {len(failed)} failed encodes: {labels}")
        logger.info(f"FINISHED: Processing for file {name}")

        self._persist_snapshot()
        return results

    def _encode_all(self, input_path: str) -> List[EncodeResult]:
        """Run every enabled resolution in parallel and wait for all of them."""
        if not self.resolutions:
            return []

        results = []
        with ThreadPoolExecutor(max_workers=len(self.resolutions), thread_name_prefix='ffmpeg') as pool:
            futures = {
                pool.submit(self.encoder.transcode, input_path, label, scale): label
                for label, scale in self.resolutions
            }
            for future in as_completed(futures):
                label = futures[future]
                try:
                    results.append(future.result())
                except Exception as e:
                    logger.exception(f"Encoder for {label} raised")
                    results.append(EncodeResult(
                        label, self.encoder.output_path_for(input_path, label), False, error=str(e)
                    ))
        return results

    def _persist_snapshot(self):
        if self.snapshotter is None:
            return
        try:
            self.snapshotter.persist()
        except SnapshotError as e:
            logger.warning(f"Snapshot after job failed: {e}")

    # ==================== Introspection / Shutdown ====================

    def outstanding_jobs(self) -> List[str]:
        """File ids with a job queued or running."""
        with self._lock:
            return sorted(self._jobs)

    def wait_for_jobs(self, timeout: Optional[float] = None) -> bool:
        """
        Block until all outstanding jobs finish.

        Returns:
            True if nothing is left running
        """
        with self._lock:
            futures = list(self._jobs.values())
        if not futures:
            return True
        _, not_done = wait_futures(futures, timeout=timeout)
        return not not_done

    def shutdown(self, wait: bool = False) -> List[str]:
        """
        Stop accepting jobs.

        Running encoders are not awaited unless wait is True.

        Returns:
            File ids that were still outstanding
        """
        with self._lock:
            self._accepting = False
            outstanding = sorted(self._jobs)
        if outstanding:
            logger.warning(f"Shutting down with {len(outstanding)} unfinished jobs: {outstanding}")
        self._executor.shutdown(wait=wait, cancel_futures=not wait)
        return outstanding
