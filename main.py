#!/usr/bin/env python3
"""
Video Upload Service
Accepts chunked uploads, tracks file status and transcodes videos with FFmpeg.

Run with: python main.py
Pass --init-snapshot on first start to create an empty fileMap.json.
"""

import argparse
import logging
import os
import sys

from errors import SnapshotError, ConfigError
from lifecycle import LifecycleController
from logging_service import get_logger

logger = get_logger('videoservice.main')


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Chunked video upload and transcode service")
    parser.add_argument("--host", help="Bind address (default: HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Bind port (default: PORT or 8001)")
    parser.add_argument(
        "--init-snapshot",
        action="store_true",
        help="Create an empty snapshot file if none exists before booting"
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    try:
        controller = LifecycleController()
        if args.init_snapshot:
            from snapshot_service import RegistrySnapshotter
            from file_registry import FileRegistry
            RegistrySnapshotter(FileRegistry(), controller.config_class.SNAPSHOT_PATH).initialize()
        app = controller.boot()
    except (SnapshotError, ConfigError) as e:
        logger.critical(f"Startup failed: {e}")
        return 1

    print("=" * 60)
    print("Video Upload Service Starting...")
    print("=" * 60)
    print(f"Uploads:   {app.config['UPLOAD_DIR']}")
    print(f"Outputs:   {app.config['VIDEOSTORE_DIR']}")
    print(f"Snapshot:  {app.config['SNAPSHOT_PATH']}")
    print("=" * 60)

    controller.serve(args.host, args.port)
    controller.install_signal_handlers()
    controller.wait_for_interrupt()

    return 0 if controller.shutdown() else 1


def run():
    """Console entry point: exit without joining encoder threads."""
    code = main()
    logging.shutdown()
    sys.stdout.flush()
    os._exit(code)


if __name__ == '__main__':
    run()
