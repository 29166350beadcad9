"""
Data models for the transcription pipeline.
"""

from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class Segment:
    """A single transcribed segment with timing and text."""

    id: int
    start: float  # seconds
    end: float  # seconds
    text: str
    avg_logprob: float | None = None
    no_speech_prob: float | None = None
    seek: int | None = None
    temperature: float | None = None
    compression_ratio: float | None = None
    tokens: tuple[int, ...] = ()

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class TranscriptionResult:
    """
    Canonical transcription returned by the recognition service.

    ``segments`` is None when per-segment timing was not requested and an
    empty list when it was requested but the service returned none.
    """

    text: str
    language: str | None = None
    duration: float | None = None
    segments: list[Segment] | None = None

    @property
    def has_segments(self) -> bool:
        return bool(self.segments)

    @property
    def timing_missing(self) -> bool:
        """True when timing was requested but the service sent no segments."""
        return self.segments is not None and not self.segments

    @classmethod
    def empty(cls) -> "TranscriptionResult":
        """Placeholder used for failed batch items."""
        return cls(text="", language=None)


@dataclass
class SubtitleEntry:
    """One SRT cue."""

    index: int  # 1-based
    start: str  # HH:MM:SS,mmm
    end: str
    text: str


@dataclass
class ScriptEntry:
    """A timestamped line of a transcript script."""

    timestamp: str
    duration: float
    text: str


@dataclass
class FormattedTranscript:
    """All renderings of one transcription."""

    raw: str
    markdown: str
    srt: str
    script: list[ScriptEntry] = field(default_factory=list)
    duration: float | None = None
    language: str | None = None
    summary: str | None = None

    def to_dict(self) -> dict:
        data = asdict(self)
        if self.summary is None:
            data.pop("summary")
        return data


@dataclass
class BatchItem:
    """Outcome of one input of a batch transcription."""

    path: str
    result: TranscriptionResult
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
