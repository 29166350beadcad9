"""
Explicit configuration objects for transcription and formatting.
"""

import os
import tempfile
from dataclasses import dataclass, field

from .errors import ConfigurationError


@dataclass
class WhisperConfig:
    """Settings for the recognition service and audio extraction."""

    api_key: str
    model: str = "whisper-1"
    language: str | None = None  # None or "auto" -> let Whisper detect
    temperature: float = 0.0
    response_format: str = "json"  # json | text | verbose_json
    base_url: str | None = None
    timeout: float = 300.0  # seconds, per request
    max_retries: int = 2

    # ffmpeg extraction
    ffmpeg_path: str = "ffmpeg"
    temp_dir: str = field(default_factory=lambda: os.path.join(tempfile.gettempdir(), "reelscribe"))
    sample_rate: int = 16000
    audio_codec: str = "libmp3lame"
    audio_suffix: str = ".mp3"
    extract_timeout: float | None = 600.0

    # Fill in a missing duration by decoding the audio
    probe_duration: bool = True

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ConfigurationError("OPENAI_API_KEY is required for Whisper API")
        if self.response_format not in ("json", "text", "verbose_json"):
            raise ConfigurationError(f"Unsupported response format: {self.response_format}")
        if self.temperature < 0 or self.temperature > 1:
            raise ConfigurationError(f"Temperature must be within 0..1, got {self.temperature}")

    @classmethod
    def from_env(cls, **overrides) -> "WhisperConfig":
        """Build a config from OPENAI_API_KEY / WHISPER_* environment variables."""
        temperature = os.getenv("WHISPER_TEMPERATURE")
        try:
            temperature_value = float(temperature) if temperature else 0.0
        except ValueError:
            raise ConfigurationError(f"Invalid WHISPER_TEMPERATURE: {temperature}") from None

        values = {
            "api_key": os.getenv("OPENAI_API_KEY", ""),
            "model": os.getenv("WHISPER_MODEL") or "whisper-1",
            "language": os.getenv("WHISPER_LANGUAGE") or None,
            "temperature": temperature_value,
            "base_url": os.getenv("OPENAI_BASE_URL") or None,
        }
        temp_dir = os.getenv("REELSCRIBE_TEMP_DIR")
        if temp_dir:
            values["temp_dir"] = temp_dir
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass
class FormatConfig:
    """Heuristics used when rendering a transcription."""

    words_per_line: int = 10
    fallback_sentence_secs: float = 10.0
    summary_max_length: int = 300
    include_summary: bool = True
    markdown_timestamps: bool = True

    def __post_init__(self) -> None:
        if self.words_per_line < 1:
            raise ConfigurationError("words_per_line must be at least 1")
        if self.fallback_sentence_secs <= 0:
            raise ConfigurationError("fallback_sentence_secs must be positive")
        if self.summary_max_length < 0:
            raise ConfigurationError("summary_max_length must not be negative")
