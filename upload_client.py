#!/usr/bin/env python3
"""
Upload a local video to the service in sequential chunks.

Run with: python upload_client.py path/to/clip.mp4
Optionally pass --process to start transcoding once the upload finishes,
and --wait to poll /file-info until processing completes.
"""

import argparse
import os
import sys
import time
import uuid

import requests
from dotenv import load_dotenv

# Load .env file
load_dotenv()

SERVICE_URL = os.getenv("VIDEO_SERVICE_URL", "http://localhost:8001")

# Chunk size for uploads
CHUNK_SIZE = 8 * 1024 * 1024  # 8MB
REQUEST_TIMEOUT = 60  # seconds


class UploadClient:
    """Talks to the upload, processing and status endpoints."""

    def __init__(self, base_url=SERVICE_URL, session=None, chunk_size=CHUNK_SIZE):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.chunk_size = chunk_size

    def iter_chunks(self, path):
        """Yield the file's bytes in chunk_size pieces."""
        with open(path, 'rb') as f:
            while True:
                data = f.read(self.chunk_size)
                if not data:
                    break
                yield data

    def upload(self, path, file_id=None, file_name=None, progress=None):
        """
        Upload path chunk by chunk.

        Returns:
            The file id used for the upload
        """
        file_id = file_id or uuid.uuid4().hex
        file_name = file_name or os.path.basename(path)
        total = os.path.getsize(path)
        sent = 0

        for index, data in enumerate(self.iter_chunks(path)):
            response = self.session.post(
                f"{self.base_url}/upload",
                data={'fileId': file_id, 'fileName': file_name},
                files={'fileChunk': (file_name, data, 'application/octet-stream')},
                timeout=REQUEST_TIMEOUT
            )
            response.raise_for_status()
            sent += len(data)
            if progress:
                progress(index + 1, sent, total)

        return file_id

    def process(self, file_id):
        response = self.session.post(
            f"{self.base_url}/process-video",
            data={'fileId': file_id},
            timeout=REQUEST_TIMEOUT
        )
        response.raise_for_status()
        return response.text

    def file_info(self):
        response = self.session.get(f"{self.base_url}/file-info", timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        return response.json()

    def wait_until_processed(self, file_id, poll_interval=2.0, timeout=None):
        """
        Poll /file-info until file_id is processed and idle.

        Returns:
            The final status record, or None on timeout
        """
        started = time.monotonic()
        while True:
            info = self.file_info().get(file_id)
            if info and info['is_processed'] and not info['is_processing']:
                return info
            if timeout is not None and time.monotonic() - started > timeout:
                return None
            time.sleep(poll_interval)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Upload a video to the transcode service in chunks")
    parser.add_argument("path", help="Video file to upload")
    parser.add_argument("--url", default=SERVICE_URL, help=f"Service URL (default: {SERVICE_URL})")
    parser.add_argument("--file-id", help="File id to use (default: random)")
    parser.add_argument("--chunk-size", type=int, default=CHUNK_SIZE, help="Chunk size in bytes")
    parser.add_argument("--process", action="store_true", help="Start processing after upload")
    parser.add_argument("--wait", action="store_true", help="Wait for processing to finish")
    args = parser.parse_args(argv)

    if not os.path.isfile(args.path):
        print(f"ERROR: File not found: {args.path}")
        return 1

    client = UploadClient(args.url, chunk_size=args.chunk_size)

    def show_progress(chunks, sent, total):
        percent = (sent / total * 100) if total else 100
        print(f"  Chunk {chunks}: {sent}/{total} bytes ({percent:.0f}%)")

    print(f"Uploading {args.path} to {args.url}")
    try:
        file_id = client.upload(args.path, file_id=args.file_id, progress=show_progress)
        print(f"Uploaded as {file_id}")

        if args.process or args.wait:
            print(client.process(file_id))

        if args.wait:
            info = client.wait_until_processed(file_id)
            print(f"Processed: {info}")
    except requests.RequestException as e:
        print(f"ERROR: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
