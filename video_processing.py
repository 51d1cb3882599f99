"""
Video Processing Module for resolution transcoding.

This module provides functionality to:
- Describe the resolution table (label -> ffmpeg scale spec)
- Transcode an uploaded video to one resolution with FFmpeg

Output file naming:
    {videostore_dir}/{label}_{input basename}

Example:
    upload/abc_clip.mp4 -> static/videostore/144p_abc_clip.mp4
"""

import os
import subprocess
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from errors import ConfigError
from logging_service import get_logger

logger = get_logger('videoservice.encoder')

# Every resolution the encoder knows how to produce
RESOLUTIONS: Dict[str, str] = {
    '144p': '256:144',
    '240p': '426:240',
    '360p': '640:360',
    '480p': '854:480',
    '720p': '1280:720',
    '1080p': '1920:1080',
    '2k': '2560:1440',
    '4k': '3840:2160',
}

DEFAULT_RESOLUTIONS = ('144p',)


def parse_resolution_labels(value: Optional[str]) -> List[Tuple[str, str]]:
    """
    Turn a comma separated label list into (label, scale) pairs.

    Args:
        value: e.g. "144p,720p". Empty or None selects the defaults.

    Raises:
        ConfigError: a label is not in RESOLUTIONS
    """
    labels = [part.strip() for part in (value or '').split(',') if part.strip()]
    if not labels:
        labels = list(DEFAULT_RESOLUTIONS)

    table = []
    for label in labels:
        if label not in RESOLUTIONS:
            known = ', '.join(RESOLUTIONS)
            raise ConfigError(f"Unknown resolution '{label}' (known: {known})")
        if label not in dict(table):
            table.append((label, RESOLUTIONS[label]))
    return table


@dataclass
class EncodeResult:
    """Outcome of one encoder run."""
    label: str
    output_path: str
    success: bool
    returncode: Optional[int] = None
    error: Optional[str] = None
    duration_seconds: float = 0.0


class VideoEncoder:
    """Runs one FFmpeg subprocess per (input, resolution) pair."""

    def __init__(self, output_dir: str, ffmpeg_binary: str = 'ffmpeg', timeout: Optional[float] = None):
        """
        Initialize VideoEncoder.

        Args:
            output_dir: Directory encoded files are written to
            ffmpeg_binary: FFmpeg executable name or path
            timeout: Seconds before an encode is abandoned (None waits forever)
        """
        self.output_dir = output_dir
        self.ffmpeg_binary = ffmpeg_binary
        self.timeout = timeout
        os.makedirs(self.output_dir, exist_ok=True)

    def output_path_for(self, input_path: str, label: str) -> str:
        """Destination for the label rendition of input_path."""
        return os.path.join(self.output_dir, f"{label}_{os.path.basename(input_path)}")

    def build_command(self, input_path: str, scale: str, output_path: str) -> List[str]:
        """FFmpeg argv: scale the video, stream-copy audio."""
        return [
            self.ffmpeg_binary,
            '-y',  # Overwrite output from an earlier pass
            '-i', input_path,
            '-vf', f'scale={scale}',
            '-c:a', 'copy',
            output_path
        ]

    def transcode(self, input_path: str, label: str, scale: str) -> EncodeResult:
        """
        Transcode input_path to one resolution.

        Blocks until the subprocess exits. Failures are logged and returned
        in the result, never raised.
        """
        output_path = self.output_path_for(input_path, label)
        cmd = self.build_command(input_path, scale, output_path)
        name = os.path.basename(output_path)

        logger.info(f"STARTED: ffmpeg process for {name}")
        started = time.monotonic()

        try:
            result = subprocess.run(
                cmd,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                errors='replace',
                timeout=self.timeout
            )
        except FileNotFoundError:
            error = f"FFmpeg binary not found: {self.ffmpeg_binary}"
            logger.error(f"Failed to execute command: {' '.join(cmd)} ({error})")
            return EncodeResult(label, output_path, False, error=error)
        except subprocess.TimeoutExpired:
            error = f"FFmpeg timed out after {self.timeout}s"
            logger.error(f"Failed to execute command: {' '.join(cmd)} ({error})")
            return EncodeResult(label, output_path, False, error=error,
                                duration_seconds=time.monotonic() - started)

        elapsed = time.monotonic() - started

        if result.returncode != 0:
            stderr_tail = (result.stderr or '').strip().splitlines()[-5:]
            logger.error(f"Failed to execute command: {' '.join(cmd)}")
            if stderr_tail:
                logger.error(f"FFmpeg error: {' | '.join(stderr_tail)}")
            return EncodeResult(
                label, output_path, False,
                returncode=result.returncode,
                error=f"FFmpeg exited with status {result.returncode}",
                duration_seconds=elapsed
            )

        logger.info(f"FINISHED: ffmpeg process for {name} took {elapsed:.1f}s")
        return EncodeResult(label, output_path, True, returncode=0, duration_seconds=elapsed)
