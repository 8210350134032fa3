"""Rich logging integration for tunnelcodec.

Provides a Rich-based console handler carrying correlation IDs and a file
formatter that strips Rich markup.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

_MARKUP_PATTERN = re.compile(r"\[/?[^\]]+\]")


class CorrelationRichHandler(RichHandler):
    """RichHandler with correlation ID support and method name coloring.

    The calling function name is rendered in pink ahead of the message.
    Console output goes to stderr so that stdout stays free for cipher
    output produced by the command line.
    """

    def __init__(
        self,
        *args: Any,
        console: Console | None = None,
        show_colors: bool = True,
        **kwargs: Any,
    ) -> None:
        """Initialize RichHandler with correlation ID support.

        Args:
            *args: Positional arguments for RichHandler
            console: Optional Rich Console instance
            show_colors: Whether to color the calling function name
            **kwargs: Keyword arguments for RichHandler

        """
        if console is None:
            console = Console(file=sys.stderr, markup=True, color_system="auto")

        self.show_colors = show_colors

        if "markup" not in kwargs:
            kwargs["markup"] = True

        super().__init__(*args, console=console, **kwargs)

    def emit(self, record: logging.LogRecord) -> None:
        """Emit a log record with correlation ID and method name coloring."""
        try:
            if not hasattr(record, "correlation_id"):
                # Lazy import; logging_config imports this module
                from tunnelcodec.utils.logging_config import correlation_id

                record.correlation_id = correlation_id.get() or "no-correlation-id"

            if self.show_colors:
                message = record.getMessage()
                func_name = getattr(record, "funcName", None)
                if func_name:
                    message = f"[#ff69b4]{func_name}[/#ff69b4] {message}"
                record.msg = message
                record.args = ()

            super().emit(record)
        except Exception:
            self.handleError(record)

    def handleError(self, record: logging.LogRecord) -> None:
        """Handle errors during logging to prevent circular errors."""
        try:
            sys.stderr.write(
                f"Logging error (suppressed to prevent circular errors): "
                f"{record.levelname} {record.name}: {record.getMessage()}\n"
            )
            sys.stderr.flush()
        except Exception:  # noqa: S110
            pass


def strip_rich_markup(text: str) -> str:
    """Strip Rich markup from text for file logging.

    Args:
        text: Text with Rich markup

    Returns:
        Text without Rich markup

    """
    return _MARKUP_PATTERN.sub("", text)


class FileFormatter(logging.Formatter):
    """Formatter for file output that strips Rich markup."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record, stripping Rich markup for file output."""
        return strip_rich_markup(super().format(record))


def create_rich_handler(
    console: Console | None = None,
    level: int | str = logging.INFO,
    show_path: bool = False,
    rich_tracebacks: bool = True,
    show_colors: bool = True,
) -> logging.Handler:
    """Create a RichHandler with correlation ID support.

    Args:
        console: Optional Rich Console instance
        level: Log level
        show_path: Whether to show file paths in log output
        rich_tracebacks: Whether to use rich tracebacks
        show_colors: Whether to color the calling function name

    Returns:
        Configured RichHandler instance

    """
    return CorrelationRichHandler(
        console=console,
        level=level,
        show_path=show_path,
        rich_tracebacks=rich_tracebacks,
        show_colors=show_colors,
    )
