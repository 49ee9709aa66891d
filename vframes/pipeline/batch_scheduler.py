import asyncio
from typing import Awaitable, Callable, List, Sequence, TypeVar
from loguru import logger
from ..utils.helper import chunked

T = TypeVar("T")

Task = Callable[[], Awaitable[T]]

DEFAULT_BATCH_SIZE = 100


def partition(tasks: Sequence[Task], batch_size: int = DEFAULT_BATCH_SIZE) -> List[Sequence[Task]]:
    """
    Split ``tasks`` into consecutive groups of at most ``batch_size``.

    An empty task list still forms a single (empty) group.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be a positive integer, got {batch_size}")
    groups = list(chunked(tasks, batch_size))
    return groups or [tasks[:0]]


async def _run_group(group: Sequence[Task]) -> List[T]:
    results = await asyncio.gather(*(task() for task in group), return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)


async def run_batched(tasks: Sequence[Task], batch_size: int = DEFAULT_BATCH_SIZE) -> List[T]:
    """
    Run ``tasks`` group by group: tasks of a group run concurrently, and a
    group starts only after every task of the previous one has settled.

    Returns all results, group after group and in task order inside a group.
    The first failure of a group (in task order) is raised once the whole
    group has settled; later groups are never started.
    """
    groups = partition(tasks, batch_size)
    logger.debug(f"{len(tasks)} tasks broken into {len(groups)} batches")

    results: List[T] = []
    for number, group in enumerate(groups, start=1):
        logger.debug(f"Executing batch {number}/{len(groups)} of {len(group)} tasks")
        results.extend(await _run_group(group))
    return results
