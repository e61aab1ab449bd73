"""
Response viewer state.

Holds the current response payload (or failure message), formats it for
display, handles scrolling, and hands the serialized payload to the clipboard
or filesystem capability.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, List, Optional

from atp_explorer.capabilities import Clipboard, FileSink
from atp_explorer.errors import ResponseUnavailableError
from atp_explorer.history import Failure, Outcome

logger = logging.getLogger(__name__)

_NO_PAYLOAD = object()


def format_payload(payload: Any) -> str:
    """Pretty-print a payload as 2-space indented JSON."""
    return json.dumps(payload, indent=2, ensure_ascii=False, default=str)


def export_filename(now: datetime) -> str:
    """Default export file name for a response captured at `now`."""
    return now.strftime("bsky_response_%Y_%m_%d_%H_%M_%S.json")


class ResponseView:
    """
    Current response and its viewport.

    At most one payload is current. Formatting is recomputed on every call.
    """

    def __init__(
        self,
        clipboard: Clipboard,
        files: FileSink,
        export_dir: str = ".",
        now: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize view.

        Args:
            clipboard: Clipboard capability.
            files: Filesystem export capability.
            export_dir: Directory for exports without an explicit path.
            now: Clock used for default export names.
        """
        self.clipboard = clipboard
        self.files = files
        self.export_dir = export_dir
        self._now = now

        self._payload: Any = _NO_PAYLOAD
        self.error: Optional[str] = None
        self.scroll_offset = 0

    @property
    def has_payload(self) -> bool:
        return self._payload is not _NO_PAYLOAD

    @property
    def payload(self) -> Any:
        """Current payload (by reference)."""
        if not self.has_payload:
            raise ResponseUnavailableError()
        return self._payload

    def show(self, payload: Any) -> None:
        """Replace the current payload."""
        self._payload = payload
        self.error = None
        self.scroll_offset = 0

    def show_failure(self, message: str) -> None:
        """Show a failed outcome; no payload is current afterwards."""
        self._payload = _NO_PAYLOAD
        self.error = message
        self.scroll_offset = 0

    def show_outcome(self, outcome: Outcome) -> None:
        if isinstance(outcome, Failure):
            self.show_failure(outcome.message)
        else:
            self.show(outcome.payload)

    def dismiss(self) -> None:
        """Clear the payload, error and scroll position."""
        self._payload = _NO_PAYLOAD
        self.error = None
        self.scroll_offset = 0

    def render_lines(self) -> List[str]:
        """Formatted lines for the current payload or error."""
        if self.has_payload:
            return format_payload(self._payload).splitlines()
        if self.error is not None:
            return [f"Error: {self.error}"]
        return []

    def serialized(self) -> str:
        return format_payload(self.payload)

    # Scrolling

    def _max_scroll(self, viewport: int) -> int:
        return max(len(self.render_lines()) - max(viewport, 0), 0)

    def scroll(self, delta: int, viewport: int) -> None:
        """Move the viewport by delta lines, clamped to the content."""
        self.scroll_offset = min(max(self.scroll_offset + delta, 0), self._max_scroll(viewport))

    def page(self, direction: int, viewport: int) -> None:
        """Move one viewport height up (-1) or down (+1)."""
        self.scroll(direction * max(viewport, 1), viewport)

    def scroll_home(self) -> None:
        self.scroll_offset = 0

    def scroll_end(self, viewport: int) -> None:
        self.scroll_offset = self._max_scroll(viewport)

    # Payload extraction

    def copy_to_clipboard(self) -> str:
        """
        Copy the serialized payload to the clipboard.

        Returns:
            The copied text.

        Raises:
            ResponseUnavailableError: If no payload is current.
            ClipboardError: If the clipboard write fails.
        """
        text = self.serialized()
        self.clipboard.write(text)
        return text

    def export_to_file(self, path: Optional[str] = None) -> str:
        """
        Write the serialized payload to a file.

        Args:
            path: Target path. Defaults to a timestamped name in export_dir.

        Returns:
            Path written.

        Raises:
            ResponseUnavailableError: If no payload is current.
            ExportError: If the write fails.
        """
        text = self.serialized()
        if path is None:
            path = str(Path(self.export_dir) / export_filename(self._now()))
        self.files.write(path, text.encode("utf-8"))
        logger.info(f"Exported response to {path}")
        return path
