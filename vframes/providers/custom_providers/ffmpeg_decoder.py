import asyncio
import os
from typing import Any, Dict, List
from loguru import logger
from vframes.models import DecodedFrame
from vframes.providers.base import DecoderProvider
from vframes.exceptions import ConfigurationException, DecodeException


class FFmpegDecoder(DecoderProvider):
    """Decodes a video with the ffmpeg command line tool, one JPEG per frame."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.binary = config.get("ffmpeg_binary") or "ffmpeg"

    def _build_command(self, video_path: str, output_dir: str) -> List[str]:
        return [
            self.binary,
            "-nostdin",
            "-v", "error",
            "-y",
            "-i", video_path,
            # one image per decoded frame, no duplication or dropping
            "-fps_mode", "passthrough",
            "-q:v", "2",
            "-start_number", "0",
            os.path.join(output_dir, "frame_%06d.jpg"),
        ]

    async def decode(self, video_path: str, output_dir: str) -> List[DecodedFrame]:
        logger.info(f"Extracting frames from video {video_path} to {output_dir} with ffmpeg")
        try:
            process = await asyncio.create_subprocess_exec(
                *self._build_command(video_path, output_dir),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise ConfigurationException(f"ffmpeg binary not found: {self.binary}") from e

        _, stderr = await process.communicate()
        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise DecodeException(
                f"ffmpeg exited with code {process.returncode} for {video_path}: {message}",
                details={"returncode": process.returncode},
            )

        frames = []
        while True:
            path = os.path.join(output_dir, f"frame_{len(frames):06d}.jpg")
            if not os.path.exists(path):
                break
            frames.append(DecodedFrame(index=len(frames), path=path))

        logger.info(f"{len(frames)} frames extracted from video {video_path}")
        return frames
