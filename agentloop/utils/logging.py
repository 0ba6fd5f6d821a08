"""
Logging facilities for the agent loop.

The agent, the clients and the registry do not write to the console
directly: they receive an object implementing the `LoggerBase`
interface, so that the caller decides where progress messages go.
The implementations delegate to Python's logging module, except for
`LoglistLogger`, which keeps the messages in memory and is used to
inspect what happened during a query (e.g. in tests).

Usage:
    ```python
    from agentloop.utils.logging import get_logger, LoglistLogger

    logger = get_logger(__name__)
    logger.info("Agent iteration 1/5")

    # collect the messages instead of printing them
    logs = LoglistLogger()
    agent = Agent(client, logger=logs)
    agent.query("What is 2 + 2?")
    print(logs.get_logs(level=1))  # warnings and errors only
    ```
"""

import logging
import sys
from pathlib import Path
from abc import ABC, abstractmethod

LOG_FORMAT = '%(levelname)s - %(message)s'
FILE_LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class LoggerBase(ABC):
    """
    Abstract interface for logging functionality.
    """

    @abstractmethod
    def set_level(self, level: int) -> None:
        """Set the logging level for the logger."""
        pass

    @abstractmethod
    def get_level(self) -> int:
        """Get the current logging level"""
        pass

    @abstractmethod
    def info(self, msg: str) -> None:
        """Log an informational message."""
        pass

    @abstractmethod
    def error(self, msg: str) -> None:
        """Log an error message."""
        pass

    @abstractmethod
    def warning(self, msg: str) -> None:
        """Log a warning message."""
        pass

    @abstractmethod
    def critical(self, msg: str) -> None:
        """Log a critical message."""
        pass


class _DelegateLogger(LoggerBase):
    """Forwards the calls to a logging.Logger held in self.logger."""

    logger: logging.Logger

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)

    def get_level(self) -> int:
        return self.logger.level

    def info(self, msg: str) -> None:
        self.logger.info(msg)

    def error(self, msg: str) -> None:
        self.logger.error(msg)

    def warning(self, msg: str) -> None:
        self.logger.warning(msg)

    def critical(self, msg: str) -> None:
        self.logger.critical(msg, stack_info=True)


class ConsoleLogger(_DelegateLogger):
    """
    Logs messages to standard output through a logging.Logger.
    """

    def __init__(self, name: str | None = None) -> None:
        """
        Args:
            name: the logger name, typically __name__. The root
                logger is used if None or empty.
        """
        self.logger = logging.getLogger(name or None)
        self.logger.setLevel(logging.INFO)

        if not self.logger.hasHandlers():
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            self.logger.addHandler(handler)


class FileLogger(_DelegateLogger):
    """
    Logs messages to a file. The messages are not propagated to the
    parent loggers, so they do not reach the console.
    """

    def __init__(
        self, name: str = "", log_file: str | Path = "agentloop.log"
    ) -> None:
        """
        Args:
            name: the logger name, typically __name__
            log_file: path of the file the messages are appended to
        """
        self.logger = logging.getLogger(f"{name}_file")
        self.logger.setLevel(logging.INFO)

        # a logger of the same name may have been configured before
        self.logger.handlers.clear()

        handler = logging.FileHandler(log_file)
        handler.setFormatter(
            logging.Formatter(FILE_LOG_FORMAT, DATE_FORMAT)
        )
        self.logger.addHandler(handler)
        self.logger.propagate = False


class FileConsoleLogger(FileLogger):
    """
    Logs messages to a file and relays them to the console.
    """

    def __init__(
        self, name: str = "", log_file: str | Path = "agentloop.log"
    ) -> None:
        super().__init__(name, log_file)
        self.console_logger = ConsoleLogger(name)

    def set_level(self, level: int) -> None:
        super().set_level(level)
        self.console_logger.set_level(level)

    def info(self, msg: str) -> None:
        super().info(msg)
        self.console_logger.info(msg)

    def error(self, msg: str) -> None:
        super().error(msg)
        self.console_logger.error(msg)

    def warning(self, msg: str) -> None:
        super().warning(msg)
        self.console_logger.warning(msg)

    def critical(self, msg: str) -> None:
        super().critical(msg)
        self.console_logger.critical(msg)


class LoglistLogger(LoggerBase):
    """
    Keeps the logged messages in a list that can be inspected by the
    object creator.
    """

    def __init__(self) -> None:
        self.logs: list[dict[str, str]] = []

    def set_level(self, level: int) -> None:
        pass

    def get_level(self) -> int:
        return 0

    def info(self, msg: str) -> None:
        self.logs.append({'info': msg})

    def error(self, msg: str) -> None:
        self.logs.append({'error': msg})

    def warning(self, msg: str) -> None:
        self.logs.append({'warning': msg})

    def critical(self, msg: str) -> None:
        self.logs.append({'critical': msg})

    def get_logs(self, level: int = 0) -> list[str]:
        """
        Returns a list of strings with the log messages.

        Args:
           level: a filter on the logs. Possible values:
                0 or less: returns all messages
                1: omit info
                2 or more: only errors and critical
        """
        logs: list[str] = []
        for entry in self.logs:
            match entry:
                case {'info': msg}:
                    if level < 1:
                        logs.append("INFO - " + msg)
                case {'warning': msg}:
                    if level < 2:
                        logs.append("WARNING - " + msg)
                case {'error': msg}:
                    logs.append("ERROR - " + msg)
                case {'critical': msg}:
                    logs.append("CRITICAL - " + msg)
                case _:
                    logs.append(str(entry))
        return logs

    def count_logs(self, level: int = 0) -> int:
        """The number of recorded logs passing the level filter."""
        return len(self.get_logs(level))

    def clear_logs(self) -> None:
        self.logs.clear()


def get_logger(name: str) -> LoggerBase:
    """
    Get a console logger with the specified name.

    Args:
        name: The name of the logger, typically __name__

    Returns:
        A configured logger instance
    """
    return ConsoleLogger(name)


def create_logger(
    name: str, log_file: str | Path | None = None
) -> LoggerBase:
    """
    Logger selected by configuration: console only, or file and
    console when a log file is given.
    """
    if log_file is None:
        return ConsoleLogger(name)
    return FileConsoleLogger(name, log_file)


def set_log_level(level: int) -> None:
    """
    Set the log level of the root logger.

    Args:
        level: The logging level (e.g., logging.DEBUG, logging.INFO)
    """
    logging.getLogger().setLevel(level)
