"""
Asynchronous Whisper transcription with cancellable extraction and requests.
"""

import asyncio
import dataclasses
import logging
import os

import openai
from openai import AsyncOpenAI
from tqdm.asyncio import tqdm

from .audio import audio_duration, ensure_dir, extraction_command, temporary_audio
from .config import WhisperConfig
from .errors import ExtractionFailed, TranscriptFileNotFound, TranscriptionFailed
from .models import BatchItem, TranscriptionResult
from .whisper import build_request, is_video, make_http_timeout, result_from_response, wrap_api_error

logger = logging.getLogger("reelscribe")


async def extract_audio_async(
    input_video: str,
    out_audio: str,
    *,
    ffmpeg_path: str = "ffmpeg",
    sample_rate: int = 16000,
    codec: str = "libmp3lame",
    timeout: float | None = None,
) -> str:
    """Async counterpart of audio.extract_audio; the ffmpeg process is killed on cancel."""
    if not os.path.exists(input_video):
        raise TranscriptFileNotFound(input_video, kind="Video")
    ensure_dir(os.path.dirname(out_audio))

    cmd = extraction_command(
        input_video, out_audio, ffmpeg_path=ffmpeg_path, sample_rate=sample_rate, codec=codec
    )
    logger.debug("Running: %s", " ".join(cmd))
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.STDOUT
        )
    except OSError as e:
        raise ExtractionFailed(input_video, str(e)) from e

    try:
        stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        await _kill(proc)
        raise ExtractionFailed(input_video, f"ffmpeg timed out after {timeout}s") from e
    except asyncio.CancelledError:
        await _kill(proc)
        raise

    if proc.returncode != 0:
        output = stdout.decode(errors="replace") if stdout else ""
        logger.error("Command failed with code %d: %s", proc.returncode, output)
        raise ExtractionFailed(input_video, f"ffmpeg exited with code {proc.returncode}")
    if not os.path.exists(out_audio):
        raise ExtractionFailed(input_video, "ffmpeg produced no output file")
    return out_audio


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        proc.kill()
        await proc.wait()


class AsyncWhisperClient:
    """Whisper API client built on AsyncOpenAI; cancelling a call also cancels its work."""

    def __init__(self, config: WhisperConfig, client: AsyncOpenAI | None = None):
        self.config = config
        self.client = client or AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=make_http_timeout(config),
            max_retries=config.max_retries,
        )

    async def transcribe_audio(
        self, audio_path: str, verbose: bool = False, language: str | None = None
    ) -> TranscriptionResult:
        if not os.path.exists(audio_path):
            raise TranscriptFileNotFound(audio_path, kind="Audio")

        kwargs = build_request(self.config, verbose, language)
        logger.info("Transcribing %s with %s (async) …", audio_path, kwargs["model"])
        try:
            with open(audio_path, "rb") as f:
                resp = await self.client.audio.transcriptions.create(file=f, **kwargs)
        except openai.APIError as e:
            raise wrap_api_error(e) from e
        except OSError as e:
            raise TranscriptionFailed(f"cannot read {audio_path}: {e}") from e

        result = result_from_response(
            resp, segments_requested=kwargs["response_format"] == "verbose_json"
        )
        if result.timing_missing:
            logger.warning("Segment timing was requested but the response contained none")
        if result.duration is None and self.config.probe_duration:
            duration = await asyncio.to_thread(audio_duration, audio_path)
            result = dataclasses.replace(result, duration=duration)
        return result

    async def transcribe_video(
        self, video_path: str, verbose: bool = False, language: str | None = None
    ) -> TranscriptionResult:
        if not os.path.exists(video_path):
            raise TranscriptFileNotFound(video_path, kind="Video")

        cfg = self.config
        with temporary_audio(cfg.temp_dir, cfg.audio_suffix) as audio_path:
            await extract_audio_async(
                video_path,
                audio_path,
                ffmpeg_path=cfg.ffmpeg_path,
                sample_rate=cfg.sample_rate,
                codec=cfg.audio_codec,
                timeout=cfg.extract_timeout,
            )
            return await self.transcribe_audio(audio_path, verbose, language)

    async def transcribe_file(
        self, path: str, verbose: bool = False, language: str | None = None
    ) -> TranscriptionResult:
        kind = is_video(path)
        if kind is None:
            logger.warning("Unsupported extension for %s; trying it as video", path)
            kind = True
        if kind:
            return await self.transcribe_video(path, verbose, language)
        return await self.transcribe_audio(path, verbose, language)

    async def transcribe_multiple(
        self,
        paths: list[str],
        verbose: bool = False,
        language: str | None = None,
        max_concurrent: int = 3,
    ) -> list[BatchItem]:
        """Transcribe files concurrently (bounded); results keep input order."""
        semaphore = asyncio.Semaphore(max(1, max_concurrent))
        bar = tqdm(total=len(paths), desc="Transcribe (async)", disable=len(paths) < 2)

        async def process_single(path: str) -> BatchItem:
            async with semaphore:
                try:
                    result = await self.transcribe_file(path, verbose, language)
                    item = BatchItem(path=path, result=result)
                except Exception as e:
                    logger.error("Error transcribing %s: %s", path, e)
                    item = BatchItem(path=path, result=TranscriptionResult.empty(), error=e)
            bar.update(1)
            return item

        with bar:
            tasks = [asyncio.create_task(process_single(path)) for path in paths]
            try:
                return list(await asyncio.gather(*tasks))
            except asyncio.CancelledError:
                # Children must finish their cleanup before the batch reports cancelled
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise
