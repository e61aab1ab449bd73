"""
Session controller.

Top-level state machine for one interactive session. Routes input events to
the input controller, the history browser or the response viewer depending on
the active mode, and runs dispatches as asyncio tasks so the event loop keeps
rendering while a request is outstanding.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from atp_explorer.catalog import CommandCatalog
from atp_explorer.dispatcher import Dispatcher, ProtocolClient
from atp_explorer.errors import ExplorerError
from atp_explorer.events import InputEvent, Key
from atp_explorer.history import Failure, HistoryStore, Invocation
from atp_explorer.input_controller import InputController, ReadyToDispatch
from atp_explorer.modes import SessionMode
from atp_explorer.response_view import ResponseView

logger = logging.getLogger(__name__)

NOTICE_TTL_S = 5.0
HISTORY_KEY = "h"
COPY_KEY = "c"
EXPORT_KEY = "e"


@dataclass
class SessionContext:
    """
    Everything one session owns.

    Attributes:
        catalog: Command catalog.
        history: Invocation history.
        dispatcher: Dispatcher bound to the history and a protocol client.
        response: Response viewer.
        clock: Monotonic clock in seconds, used for notice expiry.
    """

    catalog: CommandCatalog
    history: HistoryStore
    dispatcher: Dispatcher
    response: ResponseView
    clock: Callable[[], float] = time.monotonic

    @classmethod
    def build(
        cls,
        catalog: CommandCatalog,
        client: ProtocolClient,
        response: ResponseView,
        history_capacity: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ) -> "SessionContext":
        history = HistoryStore(history_capacity)
        dispatcher = Dispatcher(client, history, catalog)
        return cls(catalog, history, dispatcher, response, clock)


@dataclass(frozen=True)
class Notice:
    """Transient message shown to the user."""

    message: str
    severity: str
    created: float


@dataclass(frozen=True)
class ParameterPrompt:
    command: str
    name: str
    description: str
    hint: str
    index: int
    total: int
    buffer: str
    cursor: int = 0


@dataclass(frozen=True)
class ViewModel:
    """
    Snapshot of everything the renderer needs for one frame.
    """

    mode: SessionMode
    commands: Tuple[Tuple[str, str], ...]
    selected_index: int
    autocomplete_buffer: str = ""
    autocomplete_cursor: int = 0
    candidates: Tuple[str, ...] = ()
    candidate_index: int = 0
    prompt: Optional[ParameterPrompt] = None
    input_error: Optional[str] = None
    response_lines: Tuple[str, ...] = ()
    response_is_error: bool = False
    scroll_offset: int = 0
    history: Tuple[str, ...] = ()
    history_index: int = 0
    notice: Optional[Notice] = None
    pending: Optional[str] = None
    footer: str = ""


_FOOTERS = {
    SessionMode.BROWSING: "↑↓ select  Enter run  Tab/type complete  h history  Ctrl+Q quit",
    SessionMode.AUTOCOMPLETING: (
        "type to filter  ←→ edit  ↑↓ move  Tab complete  Enter select  Esc cancel"
    ),
    SessionMode.ENTERING_PARAMETERS: "←→ edit  Enter next/run  Esc cancel",
    SessionMode.VIEWING_HISTORY: "↑↓ select  Enter view  Esc back",
    SessionMode.VIEWING_RESPONSE: "↑↓ PgUp PgDn Home End scroll  c copy  e export  Enter back",
}


class SessionController:
    """
    Mode state machine for one session.

    Starts in Browsing. Only an explicit quit event ends the session.
    """

    def __init__(self, context: SessionContext, viewport_height: int = 20):
        """
        Initialize controller.

        Args:
            context: Session context.
            viewport_height: Response viewport height in lines.
        """
        self.context = context
        self.input = InputController(context.catalog)
        self.viewport_height = viewport_height
        self.quit_requested = False
        self.history_index = 0
        self.notice: Optional[Notice] = None
        self.on_update: Optional[Callable[[], None]] = None

        self._mode: Optional[SessionMode] = None
        self._task: Optional[asyncio.Task] = None
        self._pending: Optional[ReadyToDispatch] = None

    @property
    def response(self) -> ResponseView:
        return self.context.response

    @property
    def history(self) -> HistoryStore:
        return self.context.history

    @property
    def pending(self) -> bool:
        return self._pending is not None

    @property
    def mode(self) -> SessionMode:
        """
        Current mode.

        While a dispatch is pending the input controller has already returned
        to Browsing, so the command list stays on screen.
        """
        if self._mode is not None:
            return self._mode
        return self.input.mode

    def notify(self, message: str, severity: str = "information") -> None:
        self.notice = Notice(message, severity, self.context.clock())

    # Event routing

    def handle(self, event: InputEvent) -> None:
        """
        Process one input event.

        Must be called from within a running event loop; dispatches are
        scheduled on it.
        """
        if event.key is Key.QUIT:
            logger.info("Quit requested")
            self.quit_requested = True
            return

        if self._pending is not None:
            self.notify(f"Request in progress: {self._pending.command.name}", "warning")
            return

        mode = self.mode
        if mode is SessionMode.VIEWING_HISTORY:
            self._handle_history(event)
        elif mode is SessionMode.VIEWING_RESPONSE:
            self._handle_response(event)
        elif mode is SessionMode.BROWSING and event.is_char(HISTORY_KEY):
            self._enter_history()
        else:
            ready = self.input.handle(event)
            if ready is not None:
                self._start_dispatch(ready)

    def _enter_mode(self, mode: Optional[SessionMode]) -> None:
        logger.debug(f"Mode {self.mode.value} -> {(mode or self.input.mode).value}")
        self._mode = mode

    def _return_to_browsing(self) -> None:
        self.input.reset()
        self._enter_mode(None)

    # History

    def _enter_history(self) -> None:
        self.history_index = 0
        self._enter_mode(SessionMode.VIEWING_HISTORY)
        if len(self.history) == 0:
            self.notify("No requests yet", "warning")

    def _handle_history(self, event: InputEvent) -> None:
        size = len(self.history)
        if event.key is Key.UP:
            self.history_index = max(self.history_index - 1, 0)
        elif event.key is Key.DOWN:
            self.history_index = min(self.history_index + 1, max(size - 1, 0))
        elif event.key is Key.ESCAPE:
            self._return_to_browsing()
        elif event.key is Key.ENTER:
            if size == 0:
                self.notify("No requests yet", "warning")
                return
            self.replay(self.history_index)

    def replay(self, index: int) -> Invocation:
        """
        Show a past invocation's stored outcome without dispatching again.

        Raises:
            HistoryIndexError: If index is outside the history.
        """
        invocation = self.history.get(index)
        logger.info(f"Replaying {invocation.command} from {invocation.timestamp.isoformat()}")
        self.response.show_outcome(invocation.outcome)
        self._enter_mode(SessionMode.VIEWING_RESPONSE)
        return invocation

    # Response

    def _handle_response(self, event: InputEvent) -> None:
        view = self.response
        height = self.viewport_height
        if event.key in (Key.ENTER, Key.ESCAPE):
            view.dismiss()
            self._return_to_browsing()
        elif event.key is Key.UP:
            view.scroll(-1, height)
        elif event.key is Key.DOWN:
            view.scroll(1, height)
        elif event.key is Key.PAGE_UP:
            view.page(-1, height)
        elif event.key is Key.PAGE_DOWN:
            view.page(1, height)
        elif event.key is Key.HOME:
            view.scroll_home()
        elif event.key is Key.END:
            view.scroll_end(height)
        elif event.is_char(COPY_KEY):
            self.copy_response()
        elif event.is_char(EXPORT_KEY):
            self.export_response()

    def copy_response(self) -> None:
        try:
            text = self.response.copy_to_clipboard()
        except ExplorerError as e:
            logger.warning(f"Copy failed: {e}")
            self.notify(str(e), "error")
        else:
            self.notify(f"Copied {len(text)} characters to clipboard")

    def export_response(self, path: Optional[str] = None) -> None:
        try:
            written = self.response.export_to_file(path)
        except ExplorerError as e:
            logger.warning(f"Export failed: {e}")
            self.notify(str(e), "error")
        else:
            self.notify(f"Exported to {written}")

    # Dispatch

    def _start_dispatch(self, ready: ReadyToDispatch) -> None:
        self._pending = ready
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._dispatch(ready))

    async def _dispatch(self, ready: ReadyToDispatch) -> None:
        name = ready.command.name
        try:
            outcome = await self.context.dispatcher.execute(name, ready.values)
        except ExplorerError as e:
            logger.warning(f"Dispatch of {name} rejected: {e}")
            self._pending = None
            self.notify(str(e), "error")
            self._changed()
            return
        except Exception as e:
            logger.error(f"Dispatch of {name} crashed: {e}", exc_info=True)
            outcome = Failure(f"Unexpected error: {e}")

        self._pending = None
        self.response.show_outcome(outcome)
        self._enter_mode(SessionMode.VIEWING_RESPONSE)
        if not outcome.ok:
            self.notify(outcome.message, "error")
        self._changed()

    async def wait_for_dispatch(self) -> None:
        """Wait until the outstanding dispatch, if any, has completed."""
        if self._task is not None:
            await self._task
            self._task = None

    def _changed(self) -> None:
        if self.on_update is not None:
            self.on_update()

    # View model

    def view(self) -> ViewModel:
        """Build the view model for the current frame."""
        if self.notice is not None:
            if self.context.clock() - self.notice.created >= NOTICE_TTL_S:
                self.notice = None

        mode = self.mode
        ctl = self.input
        prompt = None
        param = ctl.current_parameter
        if mode is SessionMode.ENTERING_PARAMETERS and param is not None:
            prompt = ParameterPrompt(
                command=ctl.command.name,
                name=param.name,
                description=param.description,
                hint=param.hint,
                index=ctl.param_index,
                total=len(ctl.command.parameters),
                buffer=ctl.param_buffer,
                cursor=ctl.cursor,
            )

        response_lines: List[str] = []
        if mode is SessionMode.VIEWING_RESPONSE:
            response_lines = self.response.render_lines()

        return ViewModel(
            mode=mode,
            commands=tuple((c.name, c.description) for c in self.context.catalog.all_commands()),
            selected_index=ctl.selected_index,
            autocomplete_buffer=ctl.buffer,
            autocomplete_cursor=ctl.cursor,
            candidates=tuple(c.name for c in ctl.candidates),
            candidate_index=ctl.candidate_index,
            prompt=prompt,
            input_error=ctl.error,
            response_lines=tuple(response_lines),
            response_is_error=self.response.error is not None,
            scroll_offset=self.response.scroll_offset,
            history=tuple(inv.describe() for inv in self.history.list()),
            history_index=self.history_index,
            notice=self.notice,
            pending=self._pending.command.name if self._pending is not None else None,
            footer=_FOOTERS[mode],
        )
