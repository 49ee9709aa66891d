import os
import shutil
import tempfile
from contextlib import contextmanager
from typing import Iterator, Optional, Sequence, TypeVar
from urllib.parse import urlparse
from loguru import logger


T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for i in range(0, len(items), size):
        yield items[i : i + size]


@contextmanager
def scratch_file(suffix: str = "", directory: Optional[str] = None) -> Iterator[str]:
    """
    Create an empty temporary file and remove it when the block exits,
    whatever the outcome.
    """
    fd, path = tempfile.mkstemp(suffix=suffix, prefix="vframes-segment-", dir=directory)
    os.close(fd)
    logger.debug(f"Created scratch file {path}")
    try:
        yield path
    finally:
        try:
            os.remove(path)
            logger.debug(f"Removed scratch file {path}")
        except FileNotFoundError:
            pass


@contextmanager
def scratch_dir(directory: Optional[str] = None) -> Iterator[str]:
    """Create a temporary directory and remove it with all its content on exit."""
    path = tempfile.mkdtemp(prefix="vframes-frames-", dir=directory)
    logger.debug(f"Created scratch directory {path}")
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        logger.debug(f"Removed scratch directory {path}")


def segment_base_name(segment_uri: str) -> str:
    """
    Name of the segment file without its extension, e.g.
    ``https://host/videos/abc/segment_0003.mp4?sig=1`` -> ``segment_0003``.
    """
    name = os.path.basename(urlparse(segment_uri).path.rstrip("/"))
    base, _ = os.path.splitext(name)
    return base or "segment"
