"""
Lifecycle Controller

Boot:     create the app, restore the registry snapshot (fatal on failure)
Serve:    run the HTTP server on a background thread
Shutdown: on SIGINT/SIGTERM stop the server and job pool, then persist the
          snapshot, all within SHUTDOWN_TIMEOUT seconds

Running encoder subprocesses are not awaited. Files they were working on are
still marked as processing in the snapshot.
"""

import signal
import threading
import time
from typing import Callable, Dict, Optional

from werkzeug.serving import make_server

from app import create_app
from app.config import get_config
from logging_service import get_logger

logger = get_logger('videoservice.lifecycle')


class LifecycleController:
    """Owns the app, its HTTP server and the shutdown sequence."""

    def __init__(self, config_class=None, encoder=None):
        self.config_class = config_class or get_config()
        self.encoder = encoder
        self.app = None
        self._server = None
        self._server_thread: Optional[threading.Thread] = None
        self._stop = threading.Event()

    # ==================== Boot ====================

    def boot(self):
        """
        Build the app and load the snapshot into its registry.

        Raises:
            SnapshotError: the snapshot is missing or unreadable
        """
        self.app = create_app(self.config_class, encoder=self.encoder)
        count = self.service('snapshotter').restore()
        logger.info(f"Booted with {count} files from {self.app.config['SNAPSHOT_PATH']}")
        return self.app

    def service(self, name):
        return self.app.extensions['services'][name]

    # ==================== Serve ====================

    def serve(self, host: Optional[str] = None, port: Optional[int] = None):
        """Start the threaded HTTP server in the background."""
        host = host or self.app.config['HOST']
        port = self.app.config['PORT'] if port is None else port
        self._server = make_server(host, port, self.app, threaded=True)
        self._server_thread = threading.Thread(
            target=self._server.serve_forever,
            name='http-server',
            daemon=True
        )
        self._server_thread.start()
        logger.info(f"Listening on http://{host}:{self._server.server_port}")
        return self._server.server_port

    # ==================== Interrupt ====================

    def install_signal_handlers(self):
        """Route SIGINT and SIGTERM to request_stop. Main thread only."""
        signal.signal(signal.SIGINT, self._on_signal)
        signal.signal(signal.SIGTERM, self._on_signal)

    def _on_signal(self, signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}")
        self.request_stop()

    def request_stop(self):
        self._stop.set()

    def wait_for_interrupt(self, poll_interval: float = 1.0):
        """Block until a stop is requested."""
        while not self._stop.wait(poll_interval):
            pass

    # ==================== Shutdown ====================

    def shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Run the cleanup operations with a deadline.

        Returns:
            True if every operation finished in time and succeeded
        """
        if timeout is None:
            timeout = self.app.config.get('SHUTDOWN_TIMEOUT', 30.0)
        deadline = time.monotonic() + timeout
        logger.info("shutting down")

        coordinator = self.service('coordinator')
        snapshotter = self.service('snapshotter')

        stop_ops: Dict[str, Callable[[], object]] = {
            'job-pool': lambda: coordinator.shutdown(wait=False),
        }
        if self._server is not None:
            stop_ops['http-server'] = self._server.shutdown

        ok = self._run_operations(stop_ops, deadline)
        ok = self._run_operations({'snapshot': snapshotter.persist}, deadline) and ok
        return ok

    def _run_operations(self, ops: Dict[str, Callable[[], object]], deadline: float) -> bool:
        """Run ops concurrently, each on its own thread, until the deadline."""
        failures = []
        threads = []

        def run(key, op):
            logger.info(f"cleaning up: {key}")
            try:
                op()
            except Exception as e:
                logger.error(f"{key}: clean up failed: {e}")
                failures.append(key)
                return
            logger.info(f"{key} was shutdown gracefully")

        for key, op in ops.items():
            thread = threading.Thread(target=run, args=(key, op), name=f'cleanup-{key}', daemon=True)
            thread.start()
            threads.append((key, thread))

        for key, thread in threads:
            thread.join(max(0.0, deadline - time.monotonic()))
            if thread.is_alive():
                logger.error(f"{key}: timeout has been elapsed, force exit")
                failures.append(key)

        return not failures
