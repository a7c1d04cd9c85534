from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from app.services.scratch_workspace import ScratchWorkspace

logger = logging.getLogger(__name__)

AUDIO_OUTPUT_EXTENSION = ".mp3"


class ExtractionFailed(Exception):
    def __init__(self, message: str, *, stderr: str | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr


@dataclass(frozen=True)
class ExtractedAudio:
    audio_bytes: bytes
    filename: str
    encoding: str


class AudioExtractor:
    def __init__(
        self,
        ffmpeg_binary: str = "ffmpeg",
        audio_codec: str = "libmp3lame",
        audio_bitrate: str = "192k",
    ) -> None:
        self.ffmpeg_binary = ffmpeg_binary
        self.audio_codec = audio_codec
        self.audio_bitrate = audio_bitrate

    async def extract(
        self,
        recording_bytes: bytes,
        source_filename: str,
        workspace: ScratchWorkspace,
    ) -> ExtractedAudio:
        if not recording_bytes:
            raise ExtractionFailed("Audio extraction failed: recording is empty.")

        input_path = workspace.path_for(f"rec_in_{source_filename}")
        output_filename = build_output_filename(source_filename)
        output_path = workspace.path_for(output_filename)

        try:
            input_path.write_bytes(recording_bytes)
            logger.info(
                "Starting audio extraction meeting_id=%s input_bytes=%s output=%s",
                workspace.meeting_id,
                len(recording_bytes),
                output_path.name,
            )
            await self._run_ffmpeg(input_path, output_path)
            try:
                audio_bytes = output_path.read_bytes()
            except OSError as exc:
                raise ExtractionFailed(
                    "Audio extraction failed: could not read extracted audio after conversion.",
                ) from exc
        finally:
            _remove_quietly(input_path)
            _remove_quietly(output_path)

        logger.info(
            "Audio extraction finished meeting_id=%s audio_bytes=%s",
            workspace.meeting_id,
            len(audio_bytes),
        )
        return ExtractedAudio(
            audio_bytes=audio_bytes,
            filename=output_path.name,
            encoding=f"mp3/{self.audio_bitrate}",
        )

    def build_command(self, input_path: Path, output_path: Path) -> list[str]:
        return [
            self.ffmpeg_binary,
            "-y",
            "-hide_banner",
            "-loglevel",
            "error",
            "-i",
            str(input_path),
            "-vn",
            "-acodec",
            self.audio_codec,
            "-b:a",
            self.audio_bitrate,
            str(output_path),
        ]

    async def _run_ffmpeg(self, input_path: Path, output_path: Path) -> None:
        command = self.build_command(input_path, output_path)
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ExtractionFailed(
                f"Audio extraction failed: could not start {self.ffmpeg_binary}.",
                stderr=str(exc),
            ) from exc

        _, stderr_bytes = await process.communicate()
        if process.returncode != 0:
            stderr_text = (stderr_bytes or b"").decode("utf-8", errors="ignore").strip()
            raise ExtractionFailed(
                f"Audio extraction failed: ffmpeg exited with code {process.returncode}.",
                stderr=stderr_text or None,
            )


def build_output_filename(source_filename: str) -> str:
    stem = Path(source_filename or "").stem or "recording"
    return f"audio_out_{stem}{AUDIO_OUTPUT_EXTENSION}"


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove temporary file path=%s", path)
