"""
Clipboard and filesystem capabilities used by the response view.
"""

import logging
from pathlib import Path
from typing import Protocol

import pyperclip

from atp_explorer.errors import ClipboardError, ExportError

logger = logging.getLogger(__name__)


class Clipboard(Protocol):
    def write(self, text: str) -> None: ...


class FileSink(Protocol):
    def write(self, path: str, data: bytes) -> None: ...


class SystemClipboard:
    """Clipboard backed by pyperclip."""

    def write(self, text: str) -> None:
        """
        Copy text to the OS clipboard.

        Raises:
            ClipboardError: If no clipboard mechanism is available.
        """
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise ClipboardError(f"Failed to copy to clipboard: {e}") from e
        logger.debug(f"Copied {len(text)} chars to clipboard")


class LocalFiles:
    """Writes exports to the local filesystem."""

    def write(self, path: str, data: bytes) -> None:
        """
        Write bytes to path, creating parent directories.

        Raises:
            ExportError: On any OS error.
        """
        target = Path(path).expanduser()
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise ExportError(str(target), e.strerror or str(e)) from e
        logger.info(f"Exported {len(data)} bytes to {target}")
