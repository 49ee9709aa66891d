from contextlib import ContextDecorator
import time


class ExecutionTimer(ContextDecorator):
    """Measures wall-clock time of a block; ``elapsed`` is readable while running."""

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.end_time = None
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.end_time = time.perf_counter()
        return False

    @property
    def elapsed(self) -> float:
        end = self.end_time if self.end_time is not None else time.perf_counter()
        return end - self.start_time
