# -*- coding: utf-8 -*-

"""
Module: reporter.py
Description: Leveled console and file output for the cloner. Console records
             go through rich's RichHandler; when a log file is given every
             record is also appended to it as

                 2025-01-31 14:02:11 [SUCCESS] Source profile validated - Account: 123456789012

             DEBUG records are only emitted (to either target) in verbose mode.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.theme import Theme

HEADER = 21
PROGRESS = 22
SUCCESS = 25

logging.addLevelName(HEADER, "HEADER")
logging.addLevelName(PROGRESS, "PROGRESS")
logging.addLevelName(SUCCESS, "SUCCESS")

FILE_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

THEME = Theme({
    "logging.level.success": "bold green",
    "logging.level.progress": "white",
    "logging.level.header": "bold white",
})


def make_console(**kwargs) -> Console:
    return Console(theme=THEME, **kwargs)


class Reporter:
    """Wraps a private logger with a RichHandler and an optional append-only file handler."""

    def __init__(self, verbose: bool = False, log_file: Optional[str] = None, console: Optional[Console] = None):
        self.verbose = verbose
        self.log_file = log_file
        self.console = console or make_console()

        level = logging.DEBUG if verbose else logging.INFO
        # kept out of the logging manager; one logger per Reporter
        self.logger = logging.Logger("iam_role_cloner.run")
        self.logger.setLevel(level)

        console_handler = RichHandler(console=self.console, show_path=False, markup=False, rich_tracebacks=True)
        console_handler.setLevel(level)
        self.logger.addHandler(console_handler)

        self._file_handler = None
        if log_file:
            # OSError propagates to the caller
            self._file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            self._file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
            self._file_handler.setLevel(level)
            self.logger.addHandler(self._file_handler)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    def close(self):
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)

    def debug(self, message: str):
        self.logger.debug(message)

    def info(self, message: str):
        self.logger.info(message)

    def success(self, message: str):
        self.logger.log(SUCCESS, message)

    def warning(self, message: str):
        self.logger.warning(message)

    def error(self, message: str):
        self.logger.error(message)

    def progress(self, step: int, total: int, message: str):
        self.logger.log(PROGRESS, f"[{step}/{total}] {message}")

    def header(self, title: str):
        """Print a bold rule around ``title``; the file only records the title."""
        self.console.print()
        self.console.rule(f"[bold]{escape(title)}[/bold]", style="white")
        if self._file_handler is not None:
            self._file_handler.handle(
                self.logger.makeRecord(self.logger.name, HEADER, "", 0, title, None, None)
            )

    def separator(self):
        self.console.rule(style="dim")
