"""
Audio extraction and temporary audio file handling using ffmpeg.
"""

import contextlib
import logging
import os
import secrets
import subprocess
import time
from collections.abc import Iterator
from pathlib import Path

from pydub import AudioSegment

from .errors import ExtractionFailed, TranscriptFileNotFound

logger = logging.getLogger("reelscribe")


def run(cmd: list[str], *, check: bool = True, timeout: float | None = None) -> str:
    """Run a command and return its combined stdout/stderr."""
    logger.debug("Running: %s", " ".join(map(str, cmd)))
    proc = subprocess.run(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        check=False,
        timeout=timeout,
    )
    if proc.returncode != 0 and check:
        logger.error("Command failed with code %d: %s", proc.returncode, proc.stdout)
        msg = f"Command failed with code {proc.returncode}"
        raise RuntimeError(msg)
    return proc.stdout


def ensure_dir(path: str) -> None:
    """Ensure directory exists."""
    if path:
        Path(path).mkdir(parents=True, exist_ok=True)


def extraction_command(
    input_video: str,
    out_audio: str,
    *,
    ffmpeg_path: str = "ffmpeg",
    sample_rate: int = 16000,
    codec: str = "libmp3lame",
) -> list[str]:
    """ffmpeg arguments for a mono, audio-only copy of the input."""
    return [
        ffmpeg_path,
        "-y",
        "-i",
        input_video,
        "-vn",
        "-acodec",
        codec,
        "-ar",
        str(sample_rate),
        "-ac",
        "1",
        out_audio,
    ]


def extract_audio(
    input_video: str,
    out_audio: str,
    *,
    ffmpeg_path: str = "ffmpeg",
    sample_rate: int = 16000,
    codec: str = "libmp3lame",
    timeout: float | None = None,
) -> str:
    """Extract the audio track of a video into out_audio.

    Raises TranscriptFileNotFound for a missing source and ExtractionFailed
    when ffmpeg fails or leaves no output file. Never deletes out_audio.
    """
    if not os.path.exists(input_video):
        raise TranscriptFileNotFound(input_video, kind="Video")

    ensure_dir(str(Path(out_audio).parent))
    cmd = extraction_command(
        input_video, out_audio, ffmpeg_path=ffmpeg_path, sample_rate=sample_rate, codec=codec
    )
    logger.info("Extracting audio from %s …", input_video)
    try:
        run(cmd, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise ExtractionFailed(input_video, f"ffmpeg timed out after {e.timeout}s") from e
    except (RuntimeError, OSError) as e:
        raise ExtractionFailed(input_video, str(e)) from e

    if not os.path.exists(out_audio):
        raise ExtractionFailed(input_video, "ffmpeg produced no output file")
    return out_audio


def make_temp_audio_path(temp_dir: str, suffix: str = ".mp3") -> str:
    """Unique path for an intermediate audio file (timestamp + random token)."""
    name = f"audio-{int(time.time() * 1000)}-{secrets.token_hex(4)}{suffix}"
    return os.path.join(temp_dir, name)


def remove_quietly(path: str) -> None:
    """Delete a temporary file; failures are logged, never raised."""
    if not os.path.exists(path):
        return
    try:
        os.unlink(path)
        logger.debug("Removed temp file %s", path)
    except OSError as e:
        logger.warning("Failed to clean up temp file %s: %s", path, e)


@contextlib.contextmanager
def temporary_audio(temp_dir: str, suffix: str = ".mp3") -> Iterator[str]:
    """Yield a fresh temp audio path and delete whatever is there on exit."""
    ensure_dir(temp_dir)
    path = make_temp_audio_path(temp_dir, suffix)
    try:
        yield path
    finally:
        remove_quietly(path)


def audio_duration(path: str) -> float | None:
    """Length of an audio file in seconds, or None when it cannot be decoded."""
    try:
        return len(AudioSegment.from_file(path)) / 1000.0
    except Exception as e:
        logger.warning("Could not probe duration of %s: %s", path, e)
        return None
