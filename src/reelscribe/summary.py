"""
Extractive summary: leading sentences that fit in a character budget.
"""

import re

from .subtitles import split_sentences

_TERMINATED_RE = re.compile(r"[.!?]\s*$")


def summarize(text: str, max_length: int = 300) -> str:
    """Concatenate complete sentences in order while the total stays within max_length.

    A trailing fragment without terminal punctuation is never part of the
    summary. When no sentence fits, return text[:max_length].
    """
    if max_length <= 0:
        return ""

    summary = ""
    for sentence in split_sentences(text):
        if not _TERMINATED_RE.search(sentence):
            break
        if len(summary + sentence) > max_length:
            break
        summary += sentence

    return summary.strip() or text[:max_length]
