"""Shared fixtures for the video service tests."""

import os
import tempfile
import threading

# Keep test logs out of the working tree; must run before logging_service is imported
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="videoservice-logs-"))

import pytest

from app import create_app
from app.config import TestingConfig
from video_processing import VideoEncoder, EncodeResult


class FakeEncoder(VideoEncoder):
    """Encoder that writes a marker file instead of running FFmpeg."""

    def __init__(self, output_dir, fail_labels=(), raise_labels=()):
        super().__init__(output_dir)
        self.fail_labels = set(fail_labels)
        self.raise_labels = set(raise_labels)
        self.calls = []
        self.calls_lock = threading.Lock()
        self.started = threading.Event()
        # Cleared to hold every transcode until the test releases it
        self.gate = threading.Event()
        self.gate.set()

    def transcode(self, input_path, label, scale):
        with self.calls_lock:
            self.calls.append((input_path, label, scale))
        self.started.set()
        assert self.gate.wait(10), "encoder gate was never released"

        output_path = self.output_path_for(input_path, label)
        if label in self.raise_labels:
            raise RuntimeError(f"encoder blew up for {label}")
        if label in self.fail_labels:
            return EncodeResult(label, output_path, False, returncode=1, error="FFmpeg exited with status 1")

        with open(output_path, "wb") as f:
            f.write(f"{label} {scale}".encode())
        return EncodeResult(label, output_path, True, returncode=0)


def make_config(base_dir, **overrides):
    """TestingConfig rooted at base_dir."""
    base_dir = str(base_dir)
    static_dir = os.path.join(base_dir, "static")
    attrs = {
        "UPLOAD_DIR": os.path.join(base_dir, "upload"),
        "STATIC_DIR": static_dir,
        "VIDEOSTORE_DIR": os.path.join(static_dir, "videostore"),
        "SNAPSHOT_PATH": os.path.join(base_dir, "fileMap.json"),
        "ENABLED_RESOLUTIONS": "144p",
        "MAX_CONCURRENT_JOBS": 2,
        "SHUTDOWN_TIMEOUT": 5.0,
    }
    attrs.update(overrides)
    return type("LocalTestConfig", (TestingConfig,), attrs)


@pytest.fixture
def config(tmp_path):
    return make_config(tmp_path)


@pytest.fixture
def encoder(config):
    return FakeEncoder(config.VIDEOSTORE_DIR)


@pytest.fixture
def app(config, encoder):
    app = create_app(config, encoder=encoder)
    yield app
    encoder.gate.set()
    app.extensions["services"]["coordinator"].shutdown(wait=True)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return app.extensions["services"]
