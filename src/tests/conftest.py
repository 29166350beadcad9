"""
Shared fixtures: a test config and fake OpenAI clients (no network).
"""

import pytest

from reelscribe.config import WhisperConfig


class FakeTranscriptions:
    """Stands in for client.audio.transcriptions; replays canned responses."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def _next(self, kwargs):
        call = dict(kwargs)
        call["file"] = kwargs["file"].name
        self.calls.append(call)
        resp = self.responses.pop(0)
        if isinstance(resp, BaseException):
            raise resp
        if callable(resp):
            return resp(call)
        return resp

    def create(self, **kwargs):
        return self._next(kwargs)


class FakeAsyncTranscriptions(FakeTranscriptions):
    async def create(self, **kwargs):
        resp = self._next(kwargs)
        if hasattr(resp, "__await__"):
            return await resp
        return resp


class FakeOpenAI:
    def __init__(self, *responses, asynchronous=False):
        cls = FakeAsyncTranscriptions if asynchronous else FakeTranscriptions
        self.transcriptions = cls(responses)
        self.audio = self

    @property
    def calls(self):
        return self.transcriptions.calls


@pytest.fixture
def whisper_config(tmp_path):
    return WhisperConfig(
        api_key="sk-test",
        temp_dir=str(tmp_path / "tmp"),
        probe_duration=False,
    )


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "clip.mp3"
    path.write_bytes(b"ID3fake-audio")
    return str(path)


@pytest.fixture
def video_file(tmp_path):
    path = tmp_path / "reel.mp4"
    path.write_bytes(b"fake-video")
    return str(path)


@pytest.fixture
def fake_openai():
    """Factory: fake_openai(resp1, resp2, ..., asynchronous=False)."""
    return FakeOpenAI
