"""
Rendering a transcription into text, markdown, SRT, script or a complete bundle.
"""

import logging

from .config import FormatConfig
from .models import FormattedTranscript, ScriptEntry, TranscriptionResult
from .script import to_script
from .subtitles import render_srt, to_subtitles
from .summary import summarize
from .timecode import to_clock

logger = logging.getLogger("reelscribe")

FORMATS = ("text", "markdown", "srt", "script", "complete")


def format_text(result: TranscriptionResult) -> str:
    return result.text.strip()


def format_markdown(result: TranscriptionResult, include_timestamps: bool = False) -> str:
    """Markdown with optional language/duration header lines.

    Segments become "**MM:SS** text" lines when timestamps are requested;
    otherwise the raw text goes under the Transcript heading.
    """
    lines: list[str] = []
    if result.language:
        lines.append(f"**Language**: {result.language}\n")
    if result.duration:
        lines.append(f"**Duration**: {to_clock(result.duration)}\n")

    lines.append("## Transcript\n")
    if include_timestamps and result.has_segments:
        for seg in result.segments:
            lines.append(f"**{to_clock(seg.start)}** {seg.text.strip()}")
    else:
        lines.append(result.text)
    return "\n".join(lines)


def format_srt(result: TranscriptionResult, config: FormatConfig | None = None) -> str:
    return render_srt(to_subtitles(result, config))


def format_script(result: TranscriptionResult) -> list[ScriptEntry]:
    return to_script(result)


def format_complete(result: TranscriptionResult, config: FormatConfig | None = None) -> FormattedTranscript:
    """Every rendering plus duration, language and (optionally) a summary."""
    config = config or FormatConfig()
    return FormattedTranscript(
        raw=format_text(result),
        markdown=format_markdown(result, config.markdown_timestamps),
        srt=format_srt(result, config),
        script=format_script(result),
        duration=result.duration,
        language=result.language,
        summary=summarize(result.text, config.summary_max_length) if config.include_summary else None,
    )


def render(
    result: TranscriptionResult, fmt: str = "text", config: FormatConfig | None = None
) -> str | list[ScriptEntry] | FormattedTranscript:
    """Dispatch to one of FORMATS."""
    config = config or FormatConfig()
    logger.debug("Rendering transcript as %s", fmt)
    if fmt == "text":
        return format_text(result)
    if fmt == "markdown":
        return format_markdown(result, config.markdown_timestamps)
    if fmt == "srt":
        return format_srt(result, config)
    if fmt == "script":
        return format_script(result)
    if fmt == "complete":
        return format_complete(result, config)
    raise ValueError(f"Unknown format {fmt!r}; expected one of {', '.join(FORMATS)}")
