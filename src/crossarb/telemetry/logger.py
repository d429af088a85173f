"""
Queue-based logging setup.

Log records are handed to a background thread so that console and file
I/O never stall the event loop between order-book updates.
"""

import logging
import sys
from datetime import datetime
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from queue import Queue

from crossarb.config.constants import LOG_DATE_FORMAT, LOG_FORMAT, MAX_LOG_QUEUE_SIZE


NOISY_LOGGERS = ("aiohttp", "asyncio")


class MillisecondFormatter(logging.Formatter):
    """Formatter with millisecond precision timestamps."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        ct = datetime.fromtimestamp(record.created)
        return f"{ct.strftime(datefmt or LOG_DATE_FORMAT)}.{int(record.msecs):03d}"


class AsyncLogger:
    """
    Non-blocking logging for a logger hierarchy.

    Attaches a QueueHandler to the target logger; a QueueListener thread
    drains the queue into the console and optional file handlers.
    """

    def __init__(
        self,
        name: str | None = None,
        level: int = logging.INFO,
        log_file: Path | None = None,
    ) -> None:
        """
        Initialize async logger.

        Args:
            name: Logger name, None for the root logger.
            level: Logging level.
            log_file: Optional file path for logging.
        """
        self._level = level
        self._log_file = log_file
        self._queue: Queue[logging.LogRecord] = Queue(maxsize=MAX_LOG_QUEUE_SIZE)
        self._queue_handler = QueueHandler(self._queue)
        self._listener: QueueListener | None = None
        self._logger = logging.getLogger(name)

    def _build_handlers(self) -> list[logging.Handler]:
        formatter = MillisecondFormatter(LOG_FORMAT, LOG_DATE_FORMAT)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(self._level)
        handlers: list[logging.Handler] = [console_handler]

        if self._log_file:
            self._log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self._log_file)
            file_handler.setFormatter(formatter)
            file_handler.setLevel(logging.DEBUG)  # file keeps everything
            handlers.append(file_handler)

        return handlers

    def start(self) -> None:
        """Start the background listener."""
        if self._listener is not None:
            return

        self._logger.addHandler(self._queue_handler)
        self._logger.setLevel(self._level)

        self._listener = QueueListener(
            self._queue,
            *self._build_handlers(),
            respect_handler_level=True,
        )
        self._listener.start()

    def stop(self) -> None:
        """Flush pending records and stop the listener."""
        if self._listener is None:
            return

        self._logger.removeHandler(self._queue_handler)
        self._listener.stop()
        for handler in self._listener.handlers:
            handler.close()
        self._listener = None

    @property
    def is_running(self) -> bool:
        """Check whether the listener thread is active."""
        return self._listener is not None

    @property
    def logger(self) -> logging.Logger:
        """Get the underlying logger."""
        return self._logger

    def __enter__(self) -> "AsyncLogger":
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.stop()


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
) -> AsyncLogger:
    """
    Set up application-wide logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional log file path.

    Returns:
        Started AsyncLogger; call stop() before exit to flush.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    async_logger = AsyncLogger(level=numeric_level, log_file=log_file)
    async_logger.start()

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return async_logger
