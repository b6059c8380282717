"""
Logging Configuration Module

Queue-based logging setup for the command-line entry point. Library modules
only create loggers with logging.getLogger(__name__); handlers are installed
here, once, by the application.
"""

import logging
import logging.handlers
import sys
from queue import Queue
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"


class ThreadSafeLoggingConfig:
    """Thread-safe logging configuration with queue-based logging."""

    def __init__(self):
        self._log_listener: Optional[logging.handlers.QueueListener] = None
        self._log_queue: Optional[Queue] = None

    def setup_logging(self, debug: bool = False, stream=None) -> None:
        """
        Route all log records through a queue to a single console handler.

        Concurrent requests log to the queue and one listener thread writes the
        records out, so lines from parallel requests never interleave.

        Args:
            debug: Whether to enable debug logging
            stream: Output stream (defaults to stderr so JSON on stdout stays clean)
        """
        self.stop()
        self._log_queue = Queue()
        queue_handler = logging.handlers.QueueHandler(self._log_queue)

        console_handler = logging.StreamHandler(stream or sys.stderr)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

        self._log_listener = logging.handlers.QueueListener(
            self._log_queue, console_handler, respect_handler_level=True
        )
        self._log_listener.start()

        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.addHandler(queue_handler)
        root_logger.setLevel(logging.DEBUG if debug else logging.INFO)

        if not debug:
            # numpy and friends stay quiet unless debugging
            for name in ("numpy", "asyncio"):
                logging.getLogger(name).setLevel(logging.WARNING)

    def stop(self) -> None:
        """Stop the logging listener and cleanup."""
        if self._log_listener:
            self._log_listener.stop()
            self._log_listener = None
        if self._log_queue:
            self._log_queue = None


# Global logging configuration instance
logging_config = ThreadSafeLoggingConfig()


def setup_logging(debug: bool = False, stream=None) -> None:
    """
    Setup thread-safe logging configuration.

    Args:
        debug: Whether to enable debug logging
        stream: Output stream for log lines
    """
    logging_config.setup_logging(debug, stream)


def stop_logging() -> None:
    """Stop the logging listener and flush pending records."""
    logging_config.stop()
