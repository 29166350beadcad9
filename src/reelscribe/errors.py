"""
Exceptions raised by the transcription pipeline.
"""


class ReelscribeError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(ReelscribeError):
    """Missing API key or invalid setting."""


class TranscriptFileNotFound(ReelscribeError, FileNotFoundError):
    """Input audio or video file does not exist."""

    def __init__(self, path: str, kind: str = "Input"):
        super().__init__(f"{kind} file not found: {path}")
        self.path = path


class ExtractionFailed(ReelscribeError):
    """ffmpeg could not produce an audio track from the source."""

    def __init__(self, source: str, detail: str = ""):
        msg = f"Failed to extract audio from {source}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)
        self.source = source
        self.detail = detail


class TranscriptionFailed(ReelscribeError):
    """The recognition service returned an error or an unusable body."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(f"Whisper API error: {message}")
        self.message = message
        self.status_code = status_code
