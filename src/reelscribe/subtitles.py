"""
Subtitle chunking: timed segments (or plain text) to SRT cues.

Cue timing inside a segment is a linear interpolation over word positions,
i.e. it assumes a uniform speaking rate. It is an approximation, not
word-level alignment.
"""

import logging
import re

from .config import FormatConfig
from .models import Segment, SubtitleEntry, TranscriptionResult
from .timecode import to_srt_clock

logger = logging.getLogger("reelscribe")

# Terminal punctuation only; abbreviations and decimals split too.
# A trailing fragment without punctuation is kept as its own sentence.
_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+|[^.!?]+$")


def split_sentences(text: str) -> list[str]:
    """Split text on . ! ? keeping punctuation and leading whitespace.

    Falls back to [text] when no sentence can be matched.
    """
    sentences = [m.group(0) for m in _SENTENCE_RE.finditer(text) if m.group(0).strip()]
    return sentences or [text]


def chunk_words(
    words: list[str], start: float, end: float, words_per_line: int
) -> list[tuple[float, float, str]]:
    """Group words into lines of words_per_line and spread [start, end] over them."""
    n = len(words)
    span = max(0.0, end - start)
    chunks = []
    for lo in range(0, n, words_per_line):
        hi = min(lo + words_per_line, n)
        chunk_start = start + (lo / n) * span
        chunk_end = start + (hi / n) * span
        chunks.append((chunk_start, chunk_end, " ".join(words[lo:hi])))
    return chunks


def _entries(chunks: list[tuple[float, float, str]]) -> list[SubtitleEntry]:
    return [
        SubtitleEntry(index=i, start=to_srt_clock(s), end=to_srt_clock(e), text=text)
        for i, (s, e, text) in enumerate(chunks, 1)
    ]


def chunk_segments(segments: list[Segment], words_per_line: int = 10) -> list[SubtitleEntry]:
    """One cue per word chunk, in segment order then chunk order."""
    chunks: list[tuple[float, float, str]] = []
    for seg in segments:
        if seg.end < seg.start:
            logger.debug("Segment %s ends before it starts (%.3f < %.3f)", seg.id, seg.end, seg.start)
        words = seg.text.split()
        chunks.extend(chunk_words(words, seg.start, seg.end, words_per_line))
    return _entries(chunks)


def chunk_text(
    text: str, words_per_line: int = 10, sentence_secs: float = 10.0
) -> list[SubtitleEntry]:
    """Cues for untimed text: every sentence gets a fixed window, back to back."""
    chunks: list[tuple[float, float, str]] = []
    window_start = 0.0
    for sentence in split_sentences(text):
        words = sentence.split()
        if not words:
            continue
        window_end = window_start + sentence_secs
        chunks.extend(chunk_words(words, window_start, window_end, words_per_line))
        window_start = window_end
    return _entries(chunks)


def to_subtitles(result: TranscriptionResult, config: FormatConfig | None = None) -> list[SubtitleEntry]:
    config = config or FormatConfig()
    if result.has_segments:
        return chunk_segments(result.segments, config.words_per_line)
    return chunk_text(result.text, config.words_per_line, config.fallback_sentence_secs)


def render_srt(entries: list[SubtitleEntry]) -> str:
    """SRT blocks "{index}\\n{start} --> {end}\\n{text}\\n" separated by a blank line."""
    return "\n".join(f"{e.index}\n{e.start} --> {e.end}\n{e.text}\n" for e in entries)
