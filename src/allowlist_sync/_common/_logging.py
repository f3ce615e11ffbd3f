# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Logging utilities for the allowlist_sync package."""

import logging
import re
import sys
import traceback
from logging import LogRecord
from pathlib import Path
from typing import ClassVar

from colorama import Fore, Style

from allowlist_sync import constants
from allowlist_sync._common._exceptions import BaseCustomError

ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
LEVEL_WIDTH = 8


class CustomFormatter(logging.Formatter):
    """Colors the level tag and indents messages carrying the indent marker."""

    LEVEL_STYLES: ClassVar[dict[str, tuple[str, str]]] = {
        "DEBUG": (Fore.BLACK, "debug"),
        "INFO": (Fore.WHITE + Style.BRIGHT, "info"),
        "WARNING": (Fore.YELLOW, "warn"),
        "ERROR": (Fore.RED, "error"),
        "CRITICAL": (Style.BRIGHT + Fore.RED, "crit"),
    }

    def format(self, record: LogRecord) -> str:
        color, short_name = self.LEVEL_STYLES.get(record.levelname, ("", "unknown"))
        timestamp = self.formatTime(record, self.datefmt)
        message = f"{record.getMessage()}{Style.RESET_ALL}"

        if constants.INDENT in message:
            return f"{' ' * LEVEL_WIDTH} {timestamp} - {message.replace(constants.INDENT, '')}"

        tag = f"{color}[{short_name}]"
        padding = " " * max(0, LEVEL_WIDTH - len(ANSI_ESCAPE.sub("", tag)))
        return f"{tag}{padding} {timestamp} - {message}"


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(CustomFormatter("[%(levelname)s] %(asctime)s - %(message)s", datefmt="%H:%M:%S"))
    return handler


def _reset_logger(name: str, level: int, handler: logging.Handler) -> logging.Logger:
    named_logger = logging.getLogger(name)
    named_logger.setLevel(level)
    named_logger.handlers = [handler]
    return named_logger


def configure_logger(level: int = logging.INFO) -> None:
    """
    Configure the logger.

    The allowlist_sync logger writes to the console and, through the root logger, to the error log file.
    The console_only logger writes to the console alone.

    Args:
        level: The log level to set. Must be one of the standard logging levels.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    # Other packages: INFO when debugging, ERROR otherwise
    root_logger.setLevel(logging.INFO if level == logging.DEBUG else logging.ERROR)
    file_handler = logging.FileHandler(constants.LOG_FILE_NAME, mode="w", delay=True)
    file_handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s"))
    root_logger.addHandler(file_handler)

    console_handler = _console_handler(level)
    _reset_logger("allowlist_sync", level, console_handler)
    _reset_logger("console_only", level, console_handler).propagate = False


def exception_handler(exception_type: type[BaseException], exception: BaseException, traceback: traceback) -> None:
    """
    Print package errors as a short console message and send the full trace to the error log.

    Any other exception goes to the default hook.

    Args:
        exception_type: The type of the exception.
        exception: The exception instance.
        traceback: The traceback object.
    """
    if not isinstance(exception, BaseCustomError):
        sys.__excepthook__(exception_type, exception, traceback)
        return

    log_path = Path(constants.LOG_FILE_NAME).resolve()
    logging.getLogger("console_only").error(f"{exception!s}\n\nSee {log_path} for full details.")

    details = "" if exception.additional_info is None else f"\n\nAdditional Info: \n{exception.additional_info}"

    # Only the file handler on the root logger may receive the trace
    logging.getLogger("allowlist_sync").handlers = []
    exception.logger.exception(f"%s{details}", exception, exc_info=(exception_type, exception, traceback))


def print_header(message: str) -> None:
    """
    Prints a header message with a decorative line above and below it.

    Args:
        message: The header message to print.
    """
    line_separator = "#" * 100
    title = f"########## {message}"
    title = f"{title} {line_separator[len(title) + 1 :]}"

    print()
    for line in (line_separator, title, line_separator):
        print(f"{Fore.GREEN}{Style.BRIGHT}{line}{Style.RESET_ALL}")
    print()
