"""
Reelscribe - transcription and transcript formatting pipeline.

A small pipeline for:
- Extracting audio tracks from videos with ffmpeg
- Transcribing speech with the OpenAI Whisper API
- Rendering transcripts as text, markdown, SRT subtitles and timed scripts
- Building a "complete" bundle with an extractive summary
"""

__version__ = "0.1.0"
