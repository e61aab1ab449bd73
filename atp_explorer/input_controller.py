"""
Input state machine for command selection and parameter entry.

Drives catalog navigation, live autocomplete and one-at-a-time parameter
entry. Emits ReadyToDispatch once a command is fully specified; it never
talks to the network.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from atp_explorer.catalog import CommandCatalog, CommandSpec, ParameterSpec
from atp_explorer.errors import CommandNotFoundError, ParameterValidationError
from atp_explorer.events import InputEvent, Key
from atp_explorer.modes import SessionMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReadyToDispatch:
    """
    Signal that a command is fully specified.

    Attributes:
        command: Selected command.
        values: Parameter values keyed by parameter name.
    """

    command: CommandSpec
    values: Mapping[str, str]


class InputController:
    """
    State machine over Browsing, Autocompleting and EnteringParameters.

    Navigation clamps at both ends of every list; nothing wraps around.
    After emitting ReadyToDispatch the controller is back in Browsing with the
    partial values discarded.
    """

    def __init__(self, catalog: CommandCatalog):
        """
        Initialize controller.

        Args:
            catalog: Command catalog to browse.
        """
        self.catalog = catalog
        self.mode = SessionMode.BROWSING
        self.selected_index = 0
        self.error: Optional[str] = None
        # Insertion point in whichever buffer is being edited
        self.cursor = 0

        # Autocompleting
        self.buffer = ""
        self.candidates: List[CommandSpec] = []
        self.candidate_index = 0

        # EnteringParameters
        self.command: Optional[CommandSpec] = None
        self.param_index = 0
        self.param_buffer = ""
        self.values: Dict[str, str] = {}

    @property
    def selected_command(self) -> Optional[CommandSpec]:
        commands = self.catalog.all_commands()
        if not commands:
            return None
        return commands[self.selected_index]

    @property
    def current_parameter(self) -> Optional[ParameterSpec]:
        if self.command is None or self.param_index >= len(self.command.parameters):
            return None
        return self.command.parameters[self.param_index]

    def reset(self) -> None:
        """Discard autocomplete and parameter state and return to Browsing."""
        self.mode = SessionMode.BROWSING
        self.error = None
        self.cursor = 0
        self.buffer = ""
        self.candidates = []
        self.candidate_index = 0
        self.command = None
        self.param_index = 0
        self.param_buffer = ""
        self.values = {}

    def handle(self, event: InputEvent) -> Optional[ReadyToDispatch]:
        """
        Process one input event.

        Args:
            event: Input event.

        Returns:
            ReadyToDispatch when a command becomes fully specified, else None.
        """
        self.error = None
        if self.mode is SessionMode.BROWSING:
            return self._handle_browsing(event)
        if self.mode is SessionMode.AUTOCOMPLETING:
            return self._handle_autocompleting(event)
        if self.mode is SessionMode.ENTERING_PARAMETERS:
            return self._handle_parameters(event)
        raise RuntimeError(f"InputController cannot handle mode {self.mode}")

    def _edit(self, text: str, event: InputEvent) -> str:
        """Apply a line-editing key at the cursor and return the edited text."""
        if event.key is Key.CHAR:
            text = text[: self.cursor] + event.char + text[self.cursor :]
            self.cursor += 1
        elif event.key is Key.BACKSPACE:
            if self.cursor > 0:
                text = text[: self.cursor - 1] + text[self.cursor :]
                self.cursor -= 1
        elif event.key is Key.LEFT:
            self.cursor = max(self.cursor - 1, 0)
        elif event.key is Key.RIGHT:
            self.cursor = min(self.cursor + 1, len(text))
        return text

    # Browsing

    def _handle_browsing(self, event: InputEvent) -> Optional[ReadyToDispatch]:
        count = len(self.catalog)
        if event.key is Key.UP:
            self.selected_index = max(self.selected_index - 1, 0)
        elif event.key is Key.DOWN:
            self.selected_index = min(self.selected_index + 1, max(count - 1, 0))
        elif event.key is Key.HOME:
            self.selected_index = 0
        elif event.key is Key.END:
            self.selected_index = max(count - 1, 0)
        elif event.key is Key.TAB:
            self._start_autocomplete("")
        elif event.key is Key.CHAR:
            self._start_autocomplete(event.char)
        elif event.key is Key.ENTER:
            command = self.selected_command
            if command is None:
                self.error = "No commands available"
                return None
            return self._select(command)
        return None

    def _select(self, command: CommandSpec) -> Optional[ReadyToDispatch]:
        if not command.has_parameters:
            logger.debug(f"{command.name} takes no parameters, ready to dispatch")
            return ReadyToDispatch(command, {})
        self._start_parameters(command)
        return None

    # Autocompleting

    def _start_autocomplete(self, initial: str) -> None:
        self.mode = SessionMode.AUTOCOMPLETING
        self.buffer = initial
        self.cursor = len(initial)
        self._refresh_candidates()

    def _refresh_candidates(self) -> None:
        self.candidates = self.catalog.match_prefix(self.buffer)
        self.candidate_index = 0

    def _handle_autocompleting(self, event: InputEvent) -> Optional[ReadyToDispatch]:
        if event.key in (Key.CHAR, Key.BACKSPACE):
            edited = self._edit(self.buffer, event)
            if edited != self.buffer:
                self.buffer = edited
                self._refresh_candidates()
        elif event.key in (Key.LEFT, Key.RIGHT):
            self._edit(self.buffer, event)
        elif event.key is Key.UP:
            self.candidate_index = max(self.candidate_index - 1, 0)
        elif event.key is Key.DOWN:
            self.candidate_index = min(self.candidate_index + 1, max(len(self.candidates) - 1, 0))
        elif event.key is Key.TAB:
            self._cycle_completion()
        elif event.key is Key.ESCAPE:
            self.reset()
        elif event.key is Key.ENTER:
            return self._confirm_candidate()
        return None

    def _cycle_completion(self) -> None:
        """Complete the buffer to the highlighted candidate; repeated Tabs cycle."""
        if not self.candidates:
            return
        if self.buffer == self.candidates[self.candidate_index].name:
            self.candidate_index = (self.candidate_index + 1) % len(self.candidates)
        self.buffer = self.candidates[self.candidate_index].name
        self.cursor = len(self.buffer)

    def _confirm_candidate(self) -> Optional[ReadyToDispatch]:
        if not self.candidates:
            self.error = str(CommandNotFoundError(self.buffer))
            return None

        command = self.candidates[self.candidate_index]
        self.selected_index = self.catalog.index_of(command.name)
        self.reset()
        if command.has_parameters:
            self._start_parameters(command)
        return None

    # EnteringParameters

    def _start_parameters(self, command: CommandSpec) -> None:
        self.mode = SessionMode.ENTERING_PARAMETERS
        self.command = command
        self.param_index = 0
        self.param_buffer = ""
        self.cursor = 0
        self.values = {}

    def _handle_parameters(self, event: InputEvent) -> Optional[ReadyToDispatch]:
        if event.key in (Key.CHAR, Key.BACKSPACE, Key.LEFT, Key.RIGHT):
            self.param_buffer = self._edit(self.param_buffer, event)
        elif event.key is Key.ESCAPE:
            logger.debug(f"Parameter entry for {self.command.name} cancelled")
            self.reset()
        elif event.key is Key.ENTER:
            return self._confirm_parameter()
        return None

    def _confirm_parameter(self) -> Optional[ReadyToDispatch]:
        param = self.current_parameter
        value = self.param_buffer.strip()
        try:
            if value:
                param.validate(value)
            elif param.required:
                raise ParameterValidationError(param.name, f"{param.name} is required")
        except ParameterValidationError as e:
            self.error = str(e)
            return None

        if value:
            self.values[param.name] = value
        elif param.default is not None:
            self.values[param.name] = param.default

        self.param_buffer = ""
        self.cursor = 0
        self.param_index += 1
        if self.param_index < len(self.command.parameters):
            return None

        ready = ReadyToDispatch(self.command, dict(self.values))
        logger.debug(f"{ready.command.name} ready with {ready.values}")
        self.reset()
        return ready
