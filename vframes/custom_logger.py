from loguru import logger
from typing import Optional
import sys

from .config.settings import LoggingConfig


class LoggerManager:
    def __init__(self):
        self.console_sink_id = None
        self.file_sink_id = None

        # Always remove the default handler
        logger.remove()

    def enable_console(self, level: str = "INFO", serialize: bool = False):
        if self.console_sink_id is None:
            self.console_sink_id = logger.add(
                sys.stdout, level=level.upper(), colorize=not serialize, serialize=serialize
            )

    def disable_console(self):
        if self.console_sink_id is not None:
            logger.remove(self.console_sink_id)
            self.console_sink_id = None

    def enable_file(self, path: str, level: str = "INFO", rotation: str = "10 MB",
                    retention_days: int = 7, serialize: bool = False):
        if self.file_sink_id is None:
            self.file_sink_id = logger.add(
                path,
                level=level.upper(),
                rotation=rotation,
                retention=f"{retention_days} days",
                serialize=serialize,
                enqueue=True,
            )

    def disable_file(self):
        if self.file_sink_id is not None:
            logger.remove(self.file_sink_id)
            self.file_sink_id = None

    def configure(self, config: LoggingConfig, level_override: Optional[str] = None):
        """(Re)install the console and file sinks described by ``config``."""
        level = level_override or config.level
        self.disable_console()
        self.disable_file()
        self.enable_console(level=level, serialize=config.enable_json)
        if config.enable_file_logging:
            self.enable_file(
                config.log_file or "vframes.log",
                level=level,
                rotation=config.max_file_size,
                retention_days=config.retention_days,
                serialize=config.enable_json,
            )


log_manager = LoggerManager()
