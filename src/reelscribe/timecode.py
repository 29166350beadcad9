"""
Seconds <-> clock string conversions.
"""

import math

# Absorbs binary float error (2.3 * 1000 == 2299.9999999999995)
_MS_EPSILON = 1e-6


def _clamp(seconds: float) -> float:
    if seconds is None or math.isnan(seconds) or seconds < 0:
        return 0.0
    return float(seconds)


def to_clock(seconds: float) -> str:
    """Format seconds as HH:MM:SS, or MM:SS when under an hour."""
    total = int(_clamp(seconds))
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def to_srt_clock(seconds: float) -> str:
    """Format seconds as an SRT timestamp HH:MM:SS,mmm (milliseconds truncated)."""
    total_ms = math.floor(_clamp(seconds) * 1000 + _MS_EPSILON)
    hours, rest = divmod(total_ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    secs, ms = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{ms:03d}"
