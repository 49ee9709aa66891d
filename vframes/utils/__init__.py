from .error_handler import ErrorHandler, convert_exceptions, log_exceptions
from .execution_timer import ExecutionTimer
from .helper import chunked, scratch_dir, scratch_file, segment_base_name

__all__ = [
    "ErrorHandler",
    "convert_exceptions",
    "log_exceptions",
    "ExecutionTimer",
    "chunked",
    "scratch_dir",
    "scratch_file",
    "segment_base_name",
]
