"""
Tests for the Whisper client (fake OpenAI client, no network or ffmpeg).
"""

import os

import httpx
import openai
import pytest

from reelscribe import whisper
from reelscribe.errors import ExtractionFailed, TranscriptFileNotFound, TranscriptionFailed
from reelscribe.whisper import WhisperClient, build_request, is_video, normalize_language, result_from_response

VERBOSE_RESPONSE = {
    "text": " Hello there. General Kenobi.",
    "language": "english",
    "duration": 4.2,
    "segments": [
        {"id": 0, "seek": 0, "start": 0.0, "end": 1.5, "text": " Hello there.", "tokens": [1, 2],
         "temperature": 0.0, "avg_logprob": -0.2, "compression_ratio": 1.1, "no_speech_prob": 0.01},
        {"id": 1, "seek": 0, "start": 1.5, "end": 4.2, "text": " General Kenobi.", "tokens": [3],
         "temperature": 0.0, "avg_logprob": -0.3, "compression_ratio": 1.0, "no_speech_prob": 0.02},
    ],
}


def status_error(code, message):
    request = httpx.Request("POST", "https://api.openai.com/v1/audio/transcriptions")
    response = httpx.Response(code, request=request)
    return openai.APIStatusError(message, response=response, body={"error": {"message": message}})


def test_normalize_language():
    assert normalize_language(None) is None
    assert normalize_language("auto") is None
    assert normalize_language("English") == "en"
    assert normalize_language("ja") == "ja"
    assert normalize_language("nl") == "nl"


def test_is_video():
    assert is_video("clip.MP4") is True
    assert is_video("clip.mkv") is True
    assert is_video("clip.m4a") is False
    assert is_video("clip.xyz") is None


def test_build_request(whisper_config):
    whisper_config.language = "japanese"
    assert build_request(whisper_config, verbose=False) == {
        "model": "whisper-1",
        "temperature": 0.0,
        "response_format": "json",
        "language": "ja",
    }
    assert build_request(whisper_config, verbose=True, language="auto")["response_format"] == "verbose_json"


def test_transcribe_audio_verbose(fake_openai, whisper_config, audio_file):
    fake = fake_openai(VERBOSE_RESPONSE)
    client = WhisperClient(whisper_config, client=fake)

    result = client.transcribe_audio(audio_file, verbose=True)

    assert fake.calls[0]["response_format"] == "verbose_json"
    assert fake.calls[0]["file"] == audio_file
    assert "language" not in fake.calls[0]
    assert result.text == " Hello there. General Kenobi."
    assert result.language == "english"
    assert result.duration == 4.2
    assert [(s.id, s.start, s.end) for s in result.segments] == [(0, 0.0, 1.5), (1, 1.5, 4.2)]
    assert result.segments[0].avg_logprob == -0.2
    assert result.segments[1].no_speech_prob == 0.02
    assert result.segments[0].tokens == (1, 2)


def test_transcribe_audio_plain(fake_openai, whisper_config, audio_file):
    fake = fake_openai({"text": "just text"})
    result = WhisperClient(whisper_config, client=fake).transcribe_audio(audio_file, language="de")

    assert fake.calls[0]["response_format"] == "json"
    assert fake.calls[0]["language"] == "de"
    assert result.text == "just text"
    assert result.segments is None
    assert result.duration is None
    assert not result.timing_missing


def test_transcribe_audio_text_response(fake_openai, whisper_config, audio_file):
    whisper_config.response_format = "text"
    fake = fake_openai("raw transcript\n")

    result = WhisperClient(whisper_config, client=fake).transcribe_audio(audio_file)

    assert result.text == "raw transcript\n"
    assert result.segments is None


def test_verbose_without_segments_is_flagged(fake_openai, whisper_config, audio_file, caplog):
    fake = fake_openai({"text": "no timing", "language": "en"})

    result = WhisperClient(whisper_config, client=fake).transcribe_audio(audio_file, verbose=True)

    assert result.segments == []
    assert result.timing_missing
    assert "timing was requested" in caplog.text


def test_missing_duration_is_probed(fake_openai, whisper_config, audio_file, monkeypatch):
    whisper_config.probe_duration = True
    monkeypatch.setattr(whisper, "audio_duration", lambda path: 7.5)

    result = WhisperClient(whisper_config, client=fake_openai({"text": "x"})).transcribe_audio(audio_file)

    assert result.duration == 7.5


def test_transcribe_audio_missing_file(fake_openai, whisper_config, tmp_path):
    client = WhisperClient(whisper_config, client=fake_openai())

    with pytest.raises(TranscriptFileNotFound):
        client.transcribe_audio(str(tmp_path / "nope.mp3"))
    with pytest.raises(FileNotFoundError):
        client.transcribe_audio(str(tmp_path / "nope.mp3"))


def test_api_error_is_wrapped(fake_openai, whisper_config, audio_file):
    fake = fake_openai(status_error(400, "Invalid file format."))

    with pytest.raises(TranscriptionFailed) as exc:
        WhisperClient(whisper_config, client=fake).transcribe_audio(audio_file)

    assert exc.value.status_code == 400
    assert "Invalid file format." in str(exc.value)


def test_connection_error_is_wrapped(fake_openai, whisper_config, audio_file):
    request = httpx.Request("POST", "https://api.openai.com/v1/audio/transcriptions")
    fake = fake_openai(openai.APIConnectionError(request=request))

    with pytest.raises(TranscriptionFailed):
        WhisperClient(whisper_config, client=fake).transcribe_audio(audio_file)


def test_unparsable_response(fake_openai, whisper_config, audio_file):
    with pytest.raises(TranscriptionFailed):
        WhisperClient(whisper_config, client=fake_openai({"error": "?"})).transcribe_audio(audio_file)

    with pytest.raises(TranscriptionFailed):
        result_from_response({"text": "x", "segments": [{"start": "soon"}]})


@pytest.fixture
def fake_extract(monkeypatch):
    """Replace ffmpeg with a function that writes the output file."""
    created = []

    def extract(video, out, **kwargs):
        with open(out, "wb") as f:
            f.write(b"audio")
        created.append(out)
        return out

    monkeypatch.setattr(whisper, "extract_audio", extract)
    return created


def test_transcribe_video_cleans_up_on_success(fake_openai, whisper_config, video_file, fake_extract):
    fake = fake_openai(lambda call: {"text": "ok", "seen": os.path.exists(call["file"])})

    result = WhisperClient(whisper_config, client=fake).transcribe_video(video_file)

    assert result.text == "ok"
    assert len(fake_extract) == 1
    assert fake.calls[0]["file"] == fake_extract[0]
    assert fake_extract[0].startswith(whisper_config.temp_dir)
    assert not os.path.exists(fake_extract[0])
    assert os.path.exists(video_file)


def test_transcribe_video_cleans_up_on_failure(fake_openai, whisper_config, video_file, fake_extract):
    fake = fake_openai(status_error(500, "Server exploded"))

    with pytest.raises(TranscriptionFailed, match="Server exploded"):
        WhisperClient(whisper_config, client=fake).transcribe_video(video_file)

    assert not os.path.exists(fake_extract[0])


def test_transcribe_video_extraction_failure(fake_openai, whisper_config, video_file, monkeypatch):
    def extract(video, out, **kwargs):
        with open(out, "wb") as f:
            f.write(b"partial")
        raise ExtractionFailed(video, "ffmpeg exited with code 1")

    monkeypatch.setattr(whisper, "extract_audio", extract)

    with pytest.raises(ExtractionFailed):
        WhisperClient(whisper_config, client=fake_openai()).transcribe_video(video_file)

    assert os.listdir(whisper_config.temp_dir) == []


def test_transcribe_video_missing_file(fake_openai, whisper_config, tmp_path):
    with pytest.raises(TranscriptFileNotFound):
        WhisperClient(whisper_config, client=fake_openai()).transcribe_video(str(tmp_path / "gone.mp4"))


def test_unknown_extension_tries_video(fake_openai, whisper_config, tmp_path, fake_extract, caplog):
    odd = tmp_path / "clip.xyz"
    odd.write_bytes(b"?")

    result = WhisperClient(whisper_config, client=fake_openai({"text": "odd"})).transcribe_file(str(odd))

    assert result.text == "odd"
    assert len(fake_extract) == 1
    assert "Unsupported extension" in caplog.text


def test_transcribe_multiple_isolates_failures(fake_openai, whisper_config, audio_file, tmp_path):
    second = tmp_path / "second.wav"
    second.write_bytes(b"RIFF")
    missing = str(tmp_path / "missing.mp3")
    fake = fake_openai({"text": "first"}, {"text": "third"})

    items = WhisperClient(whisper_config, client=fake).transcribe_multiple([audio_file, missing, str(second)])

    assert [item.path for item in items] == [audio_file, missing, str(second)]
    assert [item.ok for item in items] == [True, False, True]
    assert items[0].result.text == "first"
    assert items[2].result.text == "third"
    assert items[1].result.text == ""
    assert items[1].result.language is None
    assert isinstance(items[1].error, TranscriptFileNotFound)


def test_transcribe_multiple_service_failure(fake_openai, whisper_config, audio_file):
    fake = fake_openai(status_error(429, "Rate limit"), {"text": "retry later worked"})

    items = WhisperClient(whisper_config, client=fake).transcribe_multiple([audio_file, audio_file])

    assert isinstance(items[0].error, TranscriptionFailed)
    assert items[1].result.text == "retry later worked"


def test_unreadable_audio_path_is_wrapped(fake_openai, whisper_config, tmp_path):
    folder = tmp_path / "looks_like.mp3"
    folder.mkdir()

    with pytest.raises(TranscriptionFailed, match="cannot read"):
        WhisperClient(whisper_config, client=fake_openai()).transcribe_audio(str(folder))
