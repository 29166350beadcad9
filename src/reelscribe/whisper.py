"""
Speech-to-text transcription with the OpenAI Whisper API.
"""

import dataclasses
import logging
import os

import httpx
import openai
from openai import OpenAI
from tqdm import tqdm

from .audio import audio_duration, extract_audio, temporary_audio
from .config import WhisperConfig
from .errors import TranscriptFileNotFound, TranscriptionFailed
from .models import BatchItem, Segment, TranscriptionResult

logger = logging.getLogger("reelscribe")

VIDEO_EXTENSIONS = {".mp4", ".mov", ".avi", ".mkv"}
AUDIO_EXTENSIONS = {".mp3", ".mpeg", ".mpga", ".wav", ".m4a", ".aac", ".ogg", ".oga", ".webm", ".flac"}

# Common language names mapped to the ISO-639-1 codes Whisper expects
LANG_MAP = {
    "ru": "ru", "russian": "ru",
    "de": "de", "german": "de",
    "fr": "fr", "french": "fr",
    "es": "es", "spanish": "es",
    "it": "it", "italian": "it",
    "pt": "pt", "portuguese": "pt",
    "ja": "ja", "japanese": "ja",
    "ko": "ko", "korean": "ko",
    "zh": "zh", "chinese": "zh",
    "ar": "ar", "arabic": "ar",
    "hi": "hi", "hindi": "hi",
    "en": "en", "english": "en",
}


def normalize_language(language: str | None) -> str | None:
    """Map a language hint to a Whisper code; None means auto-detect."""
    if not language:
        return None
    key = language.strip().lower()
    if key in ("", "auto"):
        return None
    return LANG_MAP.get(key, key)


def is_video(path: str) -> bool | None:
    """True for video, False for audio, None for an unknown extension."""
    ext = os.path.splitext(path)[1].lower()
    if ext in VIDEO_EXTENSIONS:
        return True
    if ext in AUDIO_EXTENSIONS:
        return False
    return None


def build_request(config: WhisperConfig, verbose: bool, language: str | None = None) -> dict:
    """Keyword arguments for audio.transcriptions.create (without the file)."""
    response_format = "verbose_json" if verbose else config.response_format
    kwargs = {
        "model": config.model,
        "temperature": config.temperature,
        "response_format": response_format,
    }
    lang = normalize_language(language or config.language)
    if lang:
        kwargs["language"] = lang
    return kwargs


def make_http_timeout(config: WhisperConfig) -> httpx.Timeout:
    return httpx.Timeout(config.timeout, connect=min(10.0, config.timeout))


def _get(obj, key: str, default=None):
    """Read a field from an SDK model or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def _optional_float(value) -> float | None:
    return None if value is None else float(value)


def _segment_from_response(seg, index: int) -> Segment:
    seg_id = _get(seg, "id")
    seek = _get(seg, "seek")
    return Segment(
        id=int(seg_id) if seg_id is not None else index,
        start=float(_get(seg, "start", 0.0)),
        end=float(_get(seg, "end", 0.0)),
        text=str(_get(seg, "text", "") or ""),
        avg_logprob=_optional_float(_get(seg, "avg_logprob")),
        no_speech_prob=_optional_float(_get(seg, "no_speech_prob")),
        seek=int(seek) if seek is not None else None,
        temperature=_optional_float(_get(seg, "temperature")),
        compression_ratio=_optional_float(_get(seg, "compression_ratio")),
        tokens=tuple(int(t) for t in (_get(seg, "tokens") or ())),
    )


def result_from_response(resp, *, segments_requested: bool = False) -> TranscriptionResult:
    """Normalize a Whisper response (SDK object, dict or plain text) into a TranscriptionResult."""
    if isinstance(resp, str):
        return TranscriptionResult(text=resp, segments=[] if segments_requested else None)

    text = _get(resp, "text")
    if text is None:
        raise TranscriptionFailed("response has no 'text' field")

    try:
        raw_segments = _get(resp, "segments")
        if raw_segments is not None:
            segments = [_segment_from_response(s, i) for i, s in enumerate(raw_segments)]
        elif segments_requested:
            segments = []
        else:
            segments = None
        duration = _optional_float(_get(resp, "duration"))
    except (TypeError, ValueError) as e:
        raise TranscriptionFailed(f"unparsable response: {e}") from e

    return TranscriptionResult(
        text=str(text),
        language=_get(resp, "language"),
        duration=duration,
        segments=segments,
    )


def wrap_api_error(e: Exception) -> TranscriptionFailed:
    """Turn an openai SDK error into TranscriptionFailed with the service message."""
    if isinstance(e, openai.APIStatusError):
        message = e.message
        body = e.body
        if isinstance(body, dict):
            err = body.get("error", body)
            if isinstance(err, dict) and err.get("message"):
                message = err["message"]
        return TranscriptionFailed(message, status_code=e.status_code)
    return TranscriptionFailed(str(e) or e.__class__.__name__)


class WhisperClient:
    """Whisper API client for audio and video transcription."""

    def __init__(self, config: WhisperConfig, client: OpenAI | None = None):
        self.config = config
        self.client = client or OpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=make_http_timeout(config),
            max_retries=config.max_retries,
        )

    def transcribe_audio(
        self, audio_path: str, verbose: bool = False, language: str | None = None
    ) -> TranscriptionResult:
        """Transcribe an audio file; segments are requested only when verbose."""
        if not os.path.exists(audio_path):
            raise TranscriptFileNotFound(audio_path, kind="Audio")

        kwargs = build_request(self.config, verbose, language)
        segments_requested = kwargs["response_format"] == "verbose_json"
        logger.info(
            "Transcribing %s with %s (language: %s) …",
            audio_path,
            kwargs["model"],
            kwargs.get("language", "auto"),
        )
        try:
            with open(audio_path, "rb") as f:
                resp = self.client.audio.transcriptions.create(file=f, **kwargs)
        except openai.APIError as e:
            raise wrap_api_error(e) from e
        except OSError as e:
            raise TranscriptionFailed(f"cannot read {audio_path}: {e}") from e

        result = result_from_response(resp, segments_requested=segments_requested)
        return self._finish(result, audio_path)

    def _finish(self, result: TranscriptionResult, audio_path: str) -> TranscriptionResult:
        if result.timing_missing:
            logger.warning("Segment timing was requested but the response contained none")
        if result.duration is None and self.config.probe_duration:
            result = dataclasses.replace(result, duration=audio_duration(audio_path))
        logger.info(
            "Transcription done: %d chars, %s segments",
            len(result.text),
            len(result.segments) if result.segments is not None else "no",
        )
        return result

    def transcribe_video(
        self, video_path: str, verbose: bool = False, language: str | None = None
    ) -> TranscriptionResult:
        """Extract the audio track to a temp file, transcribe it, always delete the temp file."""
        if not os.path.exists(video_path):
            raise TranscriptFileNotFound(video_path, kind="Video")

        cfg = self.config
        with temporary_audio(cfg.temp_dir, cfg.audio_suffix) as audio_path:
            extract_audio(
                video_path,
                audio_path,
                ffmpeg_path=cfg.ffmpeg_path,
                sample_rate=cfg.sample_rate,
                codec=cfg.audio_codec,
                timeout=cfg.extract_timeout,
            )
            return self.transcribe_audio(audio_path, verbose, language)

    def transcribe_file(
        self, path: str, verbose: bool = False, language: str | None = None
    ) -> TranscriptionResult:
        """Pick the audio or video route from the file extension."""
        kind = is_video(path)
        if kind is None:
            logger.warning("Unsupported extension for %s; trying it as video", path)
            kind = True
        if kind:
            return self.transcribe_video(path, verbose, language)
        return self.transcribe_audio(path, verbose, language)

    def transcribe_multiple(
        self, paths: list[str], verbose: bool = False, language: str | None = None
    ) -> list[BatchItem]:
        """Transcribe files one after another.

        A failing file does not stop the batch: its item carries the error and
        an empty placeholder result. Output order matches input order.
        """
        items: list[BatchItem] = []
        for path in tqdm(paths, desc="Transcribe", disable=len(paths) < 2):
            try:
                result = self.transcribe_file(path, verbose, language)
                items.append(BatchItem(path=path, result=result))
            except Exception as e:
                logger.error("Error transcribing %s: %s", path, e)
                items.append(BatchItem(path=path, result=TranscriptionResult.empty(), error=e))
        return items
