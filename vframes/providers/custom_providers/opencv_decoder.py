import asyncio
import os
from typing import Any, Dict, List
import cv2
from loguru import logger
from vframes.models import DecodedFrame
from vframes.providers.base import DecoderProvider
from vframes.exceptions import DecodeException


class OpenCVDecoder(DecoderProvider):
    """Decodes every frame of a video with OpenCV and writes it as JPEG."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.jpeg_quality = int(config.get("jpeg_quality", 95))

    def _save_frame(self, frame, index: int, output_dir: str) -> str:
        frame_path = os.path.join(output_dir, f"frame_{index:06d}.jpg")
        if not cv2.imwrite(frame_path, frame, [cv2.IMWRITE_JPEG_QUALITY, self.jpeg_quality]):
            raise DecodeException(f"Failed to write frame {index} to {frame_path}")
        return frame_path

    def _decode(self, video_path: str, output_dir: str) -> List[DecodedFrame]:
        cap = cv2.VideoCapture(video_path)
        if not cap.isOpened():
            raise DecodeException(f"Cannot open video: {video_path}")

        frames = []
        try:
            while True:
                ret, frame = cap.read()
                if not ret:
                    break
                index = len(frames)
                frames.append(DecodedFrame(index=index, path=self._save_frame(frame, index, output_dir)))
        except cv2.error as e:
            raise DecodeException(f"Error decoding {video_path}: {e}") from e
        finally:
            cap.release()
        return frames

    async def decode(self, video_path: str, output_dir: str) -> List[DecodedFrame]:
        logger.info(f"Extracting frames from video {video_path} to {output_dir}")
        frames = await asyncio.to_thread(self._decode, video_path, output_dir)
        logger.info(f"{len(frames)} frames extracted from video {video_path}")
        return frames
