"""
Widgets that render the session view model.

Each panel takes a ViewModel and redraws itself; none of them hold session
state.
"""

from rich.markup import escape
from rich.syntax import Syntax
from rich.text import Text
from textual.widgets import Static

from atp_explorer.modes import SessionMode
from atp_explorer.session import ViewModel

CURSOR = "▏"


def with_cursor(text: str, cursor: int) -> str:
    """Insert the cursor glyph into text at the given index."""
    return text[:cursor] + CURSOR + text[cursor:]


class CommandPanel(Static):
    """
    Command list, or the live autocomplete candidates while completing.
    """

    DEFAULT_CSS = """
    CommandPanel {
        border: solid green;
        height: auto;
        max-height: 50%;
        padding: 0 1;
    }
    """

    def show(self, view: ViewModel) -> None:
        if view.mode is SessionMode.AUTOCOMPLETING:
            self.border_title = "Complete: " + with_cursor(
                view.autocomplete_buffer, view.autocomplete_cursor
            )
            if not view.candidates:
                body = "[dim]No matching commands[/dim]"
            else:
                body = "\n".join(
                    self._row(name, "", i == view.candidate_index)
                    for i, name in enumerate(view.candidates)
                )
        else:
            self.border_title = "Commands"
            body = "\n".join(
                self._row(name, desc, i == view.selected_index)
                for i, (name, desc) in enumerate(view.commands)
            )
        if view.input_error and view.mode is not SessionMode.ENTERING_PARAMETERS:
            body += f"\n[red]{escape(view.input_error)}[/red]"
        self.update(body)

    @staticmethod
    def _row(name: str, description: str, selected: bool) -> str:
        marker = "▶" if selected else " "
        text = f"{marker} {escape(name):<40} [dim]{escape(description)}[/dim]"
        return f"[reverse]{text}[/reverse]" if selected else text


class PromptPanel(Static):
    """Current parameter prompt."""

    DEFAULT_CSS = """
    PromptPanel {
        border: solid $accent;
        height: auto;
        padding: 0 1;
    }
    """

    def show(self, view: ViewModel) -> None:
        prompt = view.prompt
        if prompt is None:
            self.update("")
            return
        self.border_title = f"{prompt.command} ({prompt.index + 1}/{prompt.total})"
        lines = [
            f"[bold]{escape(prompt.name)}[/bold]: {escape(prompt.description)}",
            f"[dim]{escape(prompt.hint)}[/dim]",
            "> " + escape(with_cursor(prompt.buffer, prompt.cursor)),
        ]
        if view.input_error:
            lines.append(f"[red]{escape(view.input_error)}[/red]")
        self.update("\n".join(lines))


class ResponsePanel(Static):
    """
    Response viewer. JSON highlighting is delegated to rich's Syntax.
    """

    DEFAULT_CSS = """
    ResponsePanel {
        border: solid magenta;
        height: 1fr;
        padding: 0 1;
    }
    """

    @property
    def viewport_height(self) -> int:
        # Border takes one row top and bottom
        return max(self.size.height - 2, 1)

    def show(self, view: ViewModel) -> None:
        self.border_title = "Error" if view.response_is_error else "Response"
        height = self.viewport_height
        visible = view.response_lines[view.scroll_offset : view.scroll_offset + height]
        if view.response_is_error:
            self.update(Text("\n".join(visible), style="bold red"))
        else:
            self.update(Syntax("\n".join(visible), "json", theme="monokai", word_wrap=True))
        total = len(view.response_lines)
        if total > height:
            self.border_subtitle = f"{view.scroll_offset + 1}-{min(view.scroll_offset + height, total)}/{total}"
        else:
            self.border_subtitle = ""


class HistoryPanel(Static):
    """Past invocations, most recent first."""

    DEFAULT_CSS = """
    HistoryPanel {
        border: solid yellow;
        height: 1fr;
        padding: 0 1;
    }
    """

    def show(self, view: ViewModel) -> None:
        self.border_title = f"History ({len(view.history)})"
        if not view.history:
            self.update("[dim]No requests yet[/dim]")
            return
        rows = []
        for i, line in enumerate(view.history):
            text = escape(line)
            if "[FAIL]" in line:
                text = f"[red]{text}[/red]"
            rows.append(f"[reverse]{text}[/reverse]" if i == view.history_index else text)
        self.update("\n".join(rows))


class StatusBar(Static):
    """Pending request, transient notice and key help."""

    DEFAULT_CSS = """
    StatusBar {
        height: 2;
        padding: 0 1;
        color: $text-muted;
    }
    """

    COLORS = {"information": "green", "warning": "yellow", "error": "red"}

    def show(self, view: ViewModel) -> None:
        if view.pending:
            first = f"[yellow]⏳ Requesting {escape(view.pending)}...[/yellow]"
        elif view.notice:
            color = self.COLORS.get(view.notice.severity, "white")
            first = f"[{color}]{escape(view.notice.message)}[/{color}]"
        else:
            first = ""
        self.update(f"{first}\n{escape(view.footer)}")
