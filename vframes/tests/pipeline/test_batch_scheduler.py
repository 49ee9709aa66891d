import asyncio

import pytest

from vframes.pipeline.batch_scheduler import partition, run_batched


def make_tasks(count, log, fail=(), delays=None):
    delays = delays or {}

    def make(i):
        async def task():
            log.append(("start", i))
            await asyncio.sleep(delays.get(i, 0))
            log.append(("end", i))
            if i in fail:
                raise RuntimeError(f"task {i} failed")
            return i * 10
        return task

    return [make(i) for i in range(count)]


def test_partition_sizes():
    tasks = list(range(250))
    groups = partition(tasks, 100)
    assert [len(g) for g in groups] == [100, 100, 50]
    assert [x for g in groups for x in g] == tasks


def test_partition_empty_is_single_empty_group():
    assert partition([], 10) == [[]]


@pytest.mark.parametrize("batch_size", [0, -3])
def test_partition_rejects_non_positive_batch_size(batch_size):
    with pytest.raises(ValueError):
        partition([1, 2, 3], batch_size)


async def test_results_in_task_order():
    log = []
    # later tasks finish first inside a group
    tasks = make_tasks(5, log, delays={0: 0.03, 1: 0.02, 2: 0.01})
    assert await run_batched(tasks, 3) == [0, 10, 20, 30, 40]


async def test_groups_run_in_series():
    log = []
    tasks = make_tasks(5, log, delays={0: 0.02, 1: 0.01})
    await run_batched(tasks, 2)

    def position(event):
        return log.index(event)

    # no task of group n+1 starts before every task of group n has ended
    assert position(("start", 2)) > max(position(("end", 0)), position(("end", 1)))
    assert position(("start", 4)) > max(position(("end", 2)), position(("end", 3)))


async def test_tasks_within_group_run_concurrently():
    log = []
    tasks = make_tasks(3, log, delays={0: 0.01, 1: 0.01, 2: 0.01})
    await run_batched(tasks, 3)
    assert log[:3] == [("start", 0), ("start", 1), ("start", 2)]


async def test_failure_stops_later_groups_after_group_settles():
    log = []
    tasks = make_tasks(6, log, fail={2}, delays={3: 0.02})

    with pytest.raises(RuntimeError, match="task 2 failed"):
        await run_batched(tasks, 2)

    # the failing group's sibling still completed, the third group never started
    assert ("end", 3) in log
    assert ("start", 4) not in log
    assert ("start", 5) not in log


async def test_first_failure_in_task_order_is_raised():
    log = []
    # task 1 fails first in time, task 0 fails first in order
    tasks = make_tasks(2, log, fail={0, 1}, delays={0: 0.02})

    with pytest.raises(RuntimeError, match="task 0 failed"):
        await run_batched(tasks, 2)


async def test_empty_task_list():
    assert await run_batched([], 5) == []
