"""
Timed script entries from a transcription.
"""

from .models import ScriptEntry, TranscriptionResult
from .timecode import to_clock


def to_script(result: TranscriptionResult) -> list[ScriptEntry]:
    """One entry per segment, or a single whole-duration entry without segments."""
    if not result.has_segments:
        return [ScriptEntry(timestamp="00:00:00", duration=result.duration or 0, text=result.text)]

    return [
        ScriptEntry(
            timestamp=to_clock(seg.start),
            duration=seg.end - seg.start,
            text=seg.text.strip(),
        )
        for seg in result.segments
    ]
