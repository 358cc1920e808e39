"""Logging and console setup with a plain-ASCII fallback.

Rich output uses a few Unicode glyphs (tree guides, warning markers). On
terminals that cannot encode them they are replaced with ASCII equivalents.
"""
import locale
import logging
import sys
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

# Glyphs used in CLI output and their ASCII replacements (no brackets: output is rich markup)
ICON_MAP = {
    '✓': '(OK)',
    '⚠': '(WARN)',
    '↻': '(CYCLE)',
    '→': '->',
    '←': '<-',
    '…': '...',
    '•': '*',
}


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding, falling back to the locale, then ASCII."""
    encoding = getattr(sys.stdout, 'encoding', None)
    if encoding:
        return encoding.lower()
    try:
        return locale.getpreferredencoding().lower()
    except (AttributeError, ValueError):
        return 'ascii'


def is_utf8_capable() -> bool:
    return detect_terminal_encoding().replace('_', '-') in ('utf-8', 'utf8')


def sanitize_for_terminal(text: str, utf8: bool = None) -> str:
    """Replace known glyphs with ASCII when the terminal cannot show them.

    Args:
        text: Text possibly containing glyphs from ICON_MAP
        utf8: Override terminal detection (None means detect)

    Returns:
        Text safe for the current terminal
    """
    if utf8 is None:
        utf8 = is_utf8_capable()
    if utf8:
        return text
    for glyph, replacement in ICON_MAP.items():
        text = text.replace(glyph, replacement)
    return text


class SafeConsole(Console):
    """Rich Console that sanitizes string output on non-UTF-8 terminals."""

    def __init__(self, *args, **kwargs):
        self._needs_sanitization = not is_utf8_capable()
        if self._needs_sanitization:
            kwargs.setdefault('legacy_windows', True)
        super().__init__(*args, **kwargs)

    def print(self, *objects: Any, **kwargs) -> None:
        if self._needs_sanitization:
            objects = tuple(
                sanitize_for_terminal(obj, utf8=False) if isinstance(obj, str) else obj
                for obj in objects
            )
        super().print(*objects, **kwargs)


def configure_logging(level: str | int = logging.WARNING, console: Console = None) -> None:
    """Route ``varscope`` log records through a RichHandler on stderr.

    Args:
        level: Level name or number
        console: Console to log to (defaults to a stderr console)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    package_logger = logging.getLogger('varscope')
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False
