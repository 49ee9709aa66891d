from abc import ABC, abstractmethod
from typing import List

from ...models import DecodedFrame


class DecoderProvider(ABC):
    """Abstract base class for video decoders."""

    @abstractmethod
    async def decode(self, video_path: str, output_dir: str) -> List[DecodedFrame]:
        """
        Write one image per decoded frame into ``output_dir``.

        Returns the frames ordered by their zero-based index. Raises
        ``DecodeException`` when the file cannot be decoded.
        """
        pass
