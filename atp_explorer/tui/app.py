"""
Main TUI application using Textual.

Translates key presses into engine input events, renders the session view
model, and handles login through a modal screen.
"""

import argparse
import logging
from datetime import datetime
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen, Screen
from textual.widgets import Footer, Header, Input, Label

from atp_explorer.capabilities import LocalFiles, SystemClipboard
from atp_explorer.catalog import default_catalog
from atp_explorer.config import Config, get_config_path, resolve_config, save_config
from atp_explorer.errors import AuthError
from atp_explorer.events import InputEvent, Key
from atp_explorer.modes import SessionMode
from atp_explorer.response_view import ResponseView
from atp_explorer.session import SessionContext, SessionController
from atp_explorer.tui.keys import translate_key
from atp_explorer.tui.widgets import (
    CommandPanel,
    HistoryPanel,
    PromptPanel,
    ResponsePanel,
    StatusBar,
)
from atp_explorer.xrpc import XrpcClient

logger = logging.getLogger(__name__)


class LoginScreen(ModalScreen[tuple[str, str] | None]):
    """Modal screen asking for account credentials."""

    BINDINGS = [
        Binding("escape", "cancel", "Skip", priority=True),
    ]

    DEFAULT_CSS = """
    LoginScreen {
        align: center middle;
    }

    #login-dialog {
        width: 60;
        height: auto;
        border: thick $accent;
        background: $surface;
        padding: 1 2;
    }

    #login-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    #login-help {
        text-align: center;
        margin-top: 1;
        color: $text-muted;
    }
    """

    def __init__(self, service: str, message: str = "") -> None:
        super().__init__()
        self.service = service
        self.message = message

    def compose(self) -> ComposeResult:
        with Vertical(id="login-dialog"):
            yield Label(f"Log in to {self.service}", id="login-title")
            if self.message:
                yield Label(f"[red]{self.message}[/red]", id="login-error")
            yield Input(placeholder="Handle or email", id="login-identifier")
            yield Input(placeholder="App password", password=True, id="login-password")
            yield Label("[Enter] Log in  [Esc] Continue without login", id="login-help")

    def on_mount(self) -> None:
        """Focus identifier on mount."""
        self.query_one("#login-identifier", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Advance to password, then submit both."""
        identifier = self.query_one("#login-identifier", Input).value.strip()
        password = self.query_one("#login-password", Input).value
        if event.input.id == "login-identifier" or not password:
            self.query_one("#login-password", Input).focus()
            return
        if not identifier:
            self.query_one("#login-identifier", Input).focus()
            return
        self.dismiss((identifier, password))

    def action_cancel(self) -> None:
        """Continue unauthenticated."""
        self.dismiss(None)


class ExplorerScreen(Screen):
    """
    Main screen. Owns the engine key bindings so modal screens keep their
    own keys.
    """

    BINDINGS = [
        Binding(key, f"press('{key}')", show=False, priority=True)
        for key in (
            "up",
            "down",
            "left",
            "right",
            "tab",
            "enter",
            "escape",
            "backspace",
            "pageup",
            "pagedown",
            "home",
            "end",
        )
    ]

    def __init__(self, controller: SessionController) -> None:
        super().__init__()
        self.controller = controller

    def compose(self) -> ComposeResult:
        yield Header()
        yield CommandPanel(id="commands")
        yield PromptPanel(id="prompt")
        yield HistoryPanel(id="history")
        yield ResponsePanel(id="response")
        yield StatusBar(id="status")
        yield Footer()

    def on_mount(self) -> None:
        self.controller.on_update = self.refresh_view
        # Notices expire on their own; redraw periodically to drop them
        self.set_interval(0.5, self.refresh_view)
        self.refresh_view()

    def on_resize(self) -> None:
        self.refresh_view()

    def action_press(self, key: str) -> None:
        self.feed(translate_key(key))

    def on_key(self, event) -> None:
        """Forward printable characters and quit keys to the engine."""
        translated = translate_key(event.key, event.character)
        if translated is None:
            return
        event.prevent_default()
        event.stop()
        self.feed(translated)

    def feed(self, event: InputEvent | None) -> None:
        if event is None:
            return
        self.controller.handle(event)
        if self.controller.quit_requested:
            self.app.exit()
            return
        self.refresh_view()

    def refresh_view(self) -> None:
        response = self.query_one(ResponsePanel)
        self.controller.viewport_height = response.viewport_height
        view = self.controller.view()

        self.query_one(CommandPanel).display = view.mode in (
            SessionMode.BROWSING,
            SessionMode.AUTOCOMPLETING,
        )
        self.query_one(PromptPanel).display = view.mode is SessionMode.ENTERING_PARAMETERS
        self.query_one(HistoryPanel).display = view.mode is SessionMode.VIEWING_HISTORY
        response.display = view.mode is SessionMode.VIEWING_RESPONSE

        for panel in (CommandPanel, PromptPanel, HistoryPanel, ResponsePanel, StatusBar):
            self.query_one(panel).show(view)


class ExplorerApp(App):
    """
    XRPC explorer TUI application.
    """

    TITLE = "ATP Explorer"

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", priority=True),
    ]

    def __init__(self, config: Config) -> None:
        super().__init__()
        self.config = config
        self.client = XrpcClient(config.service.host, config.service.timeout_s)
        response = ResponseView(SystemClipboard(), LocalFiles(), export_dir=config.export.directory)
        context = SessionContext.build(
            default_catalog(),
            self.client,
            response,
            history_capacity=config.history.capacity,
        )
        self.controller = SessionController(context)

    def on_mount(self) -> None:
        """Called when app starts."""
        self.sub_title = f"{self.config.service.host} | not logged in"
        self.push_screen(ExplorerScreen(self.controller))
        self.prompt_login()

    def prompt_login(self, message: str = "") -> None:
        def handle_credentials(result: tuple[str, str] | None) -> None:
            if result is None:
                logger.info("Login skipped, continuing unauthenticated")
                return
            identifier, password = result
            self.run_worker(self.login(identifier, password), exclusive=True)

        self.push_screen(LoginScreen(self.config.service.host, message), handle_credentials)

    async def login(self, identifier: str, password: str) -> None:
        try:
            await self.client.login(identifier, password)
        except AuthError as e:
            logger.error(f"Login failed: {e}", exc_info=True)
            self.prompt_login(f"Authentication failed: {e}")
            return
        self.sub_title = f"{self.config.service.host} | {self.client.handle}"
        self.notify(f"Logged in as {self.client.handle}", severity="information")

    async def on_unmount(self) -> None:
        await self.client.aclose()

    def action_quit(self) -> None:
        self.controller.handle(InputEvent(Key.QUIT))
        self.exit()


def configure_logging(config: Config) -> Path:
    """
    Log to a timestamped file only, so nothing is written over the TUI.

    Returns:
        Path of the log file.
    """
    log_dir = Path(config.logging.log_dir).expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"atp_explorer_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format="%(asctime)s.%(msecs)03d [%(levelname)-8s] %(name)-20s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.FileHandler(log_file)],
    )
    return log_file


def main() -> None:
    """
    Launch TUI application.

    Entry point for the atp-explorer command.
    """
    parser = argparse.ArgumentParser(description="Interactive AT Protocol XRPC explorer")
    parser.add_argument("--config", type=Path, default=None, help="Configuration file (TOML)")
    parser.add_argument("--host", default=None, help="PDS base URL (overrides config)")
    parser.add_argument("--log-level", default=None, help="Log level (overrides config)")
    parser.add_argument(
        "--save-config",
        action="store_true",
        help="Write the effective configuration to the config file and exit",
    )
    args = parser.parse_args()

    config = resolve_config(args.config, host=args.host, log_level=args.log_level)
    if args.save_config:
        target = args.config or get_config_path()
        save_config(config, target)
        print(f"Configuration written to {target}")
        return

    log_file = configure_logging(config)
    logger.info("=" * 80)
    logger.info("ATP Explorer Starting")
    logger.info(f"Log file: {log_file}")
    logger.info(f"Service: {config.service.host}")
    logger.info("=" * 80)

    try:
        app = ExplorerApp(config)
        app.run()
    except Exception as e:
        logger.critical(f"TUI crashed: {e}", exc_info=True)
        raise
    finally:
        logger.info("=" * 80)
        logger.info("ATP Explorer Exiting")
        logger.info("=" * 80)


if __name__ == "__main__":
    main()
