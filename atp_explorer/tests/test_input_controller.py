"""
Unit tests for the input state machine.
"""

from atp_explorer import events
from atp_explorer.events import InputEvent
from atp_explorer.input_controller import InputController, ReadyToDispatch
from atp_explorer.modes import SessionMode


def feed(ctl, *evts):
    """Feed events; return the last non-None result."""
    result = None
    for evt in evts:
        out = ctl.handle(evt)
        if out is not None:
            result = out
    return result


class TestBrowsing:
    """Test catalog navigation."""

    def test_initial_state(self, catalog):
        """Starts in Browsing on the first command."""
        ctl = InputController(catalog)
        assert ctl.mode is SessionMode.BROWSING
        assert ctl.selected_command.name == "getProfile"

    def test_down_moves_selection(self, catalog):
        ctl = InputController(catalog)
        feed(ctl, events.DOWN)
        assert ctl.selected_command.name == "getPost"

    def test_clamps_at_top(self, catalog):
        """Up on the first command stays on it."""
        ctl = InputController(catalog)
        feed(ctl, events.UP, events.UP)
        assert ctl.selected_index == 0

    def test_clamps_at_bottom(self, catalog):
        """Down past the last command stays on the last one."""
        ctl = InputController(catalog)
        feed(ctl, *[events.DOWN] * 10)
        assert ctl.selected_command.name == "describeServer"

    def test_enter_with_parameters(self, catalog):
        """Enter on a command with parameters starts entry."""
        ctl = InputController(catalog)
        assert feed(ctl, events.ENTER) is None
        assert ctl.mode is SessionMode.ENTERING_PARAMETERS
        assert ctl.current_parameter.name == "handle"

    def test_enter_without_parameters(self, catalog):
        """Enter on a parameterless command is immediately ready."""
        ctl = InputController(catalog)
        ready = feed(ctl, events.DOWN, events.DOWN, events.ENTER)
        assert ready == ReadyToDispatch(catalog.lookup("describeServer"), {})

    def test_tab_starts_autocomplete(self, catalog):
        ctl = InputController(catalog)
        feed(ctl, events.TAB)
        assert ctl.mode is SessionMode.AUTOCOMPLETING
        assert ctl.buffer == ""
        assert len(ctl.candidates) == 3

    def test_typing_starts_autocomplete(self, catalog):
        """A printable character seeds the autocomplete buffer."""
        ctl = InputController(catalog)
        feed(ctl, InputEvent.character("d"))
        assert ctl.mode is SessionMode.AUTOCOMPLETING
        assert [c.name for c in ctl.candidates] == ["describeServer"]


class TestAutocompleting:
    """Test live candidate narrowing."""

    def test_candidates_narrow(self, catalog):
        """Candidates narrow with each keystroke, prefix ties in catalog order."""
        ctl = InputController(catalog)
        feed(ctl, events.TAB, *events.text("get"))
        assert [c.name for c in ctl.candidates] == ["getProfile", "getPost"]
        feed(ctl, *events.text("po"))
        assert [c.name for c in ctl.candidates] == ["getPost"]

    def test_backspace_widens(self, catalog):
        ctl = InputController(catalog)
        feed(ctl, events.TAB, *events.text("getpo"), events.BACKSPACE, events.BACKSPACE)
        assert ctl.buffer == "get"
        assert len(ctl.candidates) == 2

    def test_confirm_with_parameters(self, catalog):
        """Confirming a command with parameters enters parameter entry."""
        ctl = InputController(catalog)
        feed(ctl, events.TAB, *events.text("getpo"), events.ENTER)
        assert ctl.mode is SessionMode.ENTERING_PARAMETERS
        assert ctl.command.name == "getPost"
        assert ctl.selected_command.name == "getPost"

    def test_confirm_without_parameters(self, catalog):
        """Confirming a parameterless command collapses to Browsing with it selected."""
        ctl = InputController(catalog)
        assert feed(ctl, events.TAB, *events.text("desc"), events.ENTER) is None
        assert ctl.mode is SessionMode.BROWSING
        assert ctl.selected_command.name == "describeServer"

    def test_down_picks_second_candidate(self, catalog):
        ctl = InputController(catalog)
        feed(ctl, events.TAB, *events.text("get"), events.DOWN, events.DOWN, events.ENTER)
        assert ctl.command.name == "getPost"

    def test_tab_completes_then_cycles(self, catalog):
        """First Tab completes to the highlighted candidate, further Tabs cycle."""
        ctl = InputController(catalog)
        feed(ctl, events.TAB, *events.text("get"), events.TAB)
        assert ctl.buffer == "getProfile"
        feed(ctl, events.TAB)
        assert ctl.buffer == "getPost"
        feed(ctl, events.TAB)
        assert ctl.buffer == "getProfile"

    def test_no_candidates(self, catalog):
        """Confirm with nothing matching shows NotFound and stays."""
        ctl = InputController(catalog)
        feed(ctl, events.TAB, *events.text("zzz"), events.ENTER)
        assert ctl.mode is SessionMode.AUTOCOMPLETING
        assert ctl.error == "Unknown command: zzz"

    def test_escape_keeps_selection(self, catalog):
        """Escape returns to Browsing without changing the selection."""
        ctl = InputController(catalog)
        feed(ctl, events.DOWN, events.TAB, *events.text("desc"), events.ESCAPE)
        assert ctl.mode is SessionMode.BROWSING
        assert ctl.selected_command.name == "getPost"
        assert ctl.buffer == ""


class TestEnteringParameters:
    """Test per-parameter entry and validation."""

    def test_required_empty_rejected(self, catalog):
        """Empty required parameter blocks advancement with an inline error."""
        ctl = InputController(catalog)
        feed(ctl, events.ENTER)
        assert feed(ctl, events.ENTER) is None
        assert ctl.mode is SessionMode.ENTERING_PARAMETERS
        assert ctl.param_index == 0
        assert ctl.error == "handle is required"

    def test_whitespace_counts_as_empty(self, catalog):
        ctl = InputController(catalog)
        feed(ctl, events.ENTER, *events.text("   "), events.ENTER)
        assert ctl.param_index == 0
        assert ctl.error == "handle is required"

    def test_error_cleared_on_next_key(self, catalog):
        ctl = InputController(catalog)
        feed(ctl, events.ENTER, events.ENTER, InputEvent.character("a"))
        assert ctl.error is None
        assert ctl.param_buffer == "a"

    def test_single_parameter_ready(self, catalog):
        """Confirming the last parameter emits ReadyToDispatch and resets."""
        ctl = InputController(catalog)
        ready = feed(ctl, events.ENTER, *events.text("alice.test"), events.ENTER)
        assert ready.command.name == "getProfile"
        assert ready.values == {"handle": "alice.test"}
        assert ctl.mode is SessionMode.BROWSING
        assert ctl.values == {}

    def test_optional_default_applied(self, catalog):
        """Optional parameters left empty take their default."""
        ctl = InputController(catalog)
        ready = feed(
            ctl, events.DOWN, events.ENTER, *events.text("at://did:plc:x/post/1"), events.ENTER, events.ENTER
        )
        assert ready.values == {"uri": "at://did:plc:x/post/1", "depth": "6"}

    def test_optional_value_overrides_default(self, catalog):
        ctl = InputController(catalog)
        ready = feed(
            ctl,
            events.DOWN,
            events.ENTER,
            *events.text("at://did:plc:x/post/1"),
            events.ENTER,
            *events.text("2"),
            events.ENTER,
        )
        assert ready.values["depth"] == "2"

    def test_kind_mismatch_rejected(self, catalog):
        """Malformed values are rejected inline and the buffer is kept."""
        ctl = InputController(catalog)
        feed(ctl, events.DOWN, events.ENTER, *events.text("https://x"), events.ENTER)
        assert ctl.param_index == 0
        assert ctl.param_buffer == "https://x"
        assert "at:// URI" in ctl.error

    def test_backspace_edits(self, catalog):
        ctl = InputController(catalog)
        feed(ctl, events.ENTER, *events.text("alicex"), events.BACKSPACE)
        assert ctl.param_buffer == "alice"

    def test_escape_discards(self, catalog):
        """Cancel discards partial values and returns to Browsing."""
        ctl = InputController(catalog)
        feed(ctl, events.DOWN, events.ENTER, *events.text("at://did:plc:x/post/1"), events.ENTER)
        assert ctl.values == {"uri": "at://did:plc:x/post/1"}
        feed(ctl, events.ESCAPE)
        assert ctl.mode is SessionMode.BROWSING
        assert ctl.values == {}
        assert ctl.command is None

    def test_values_only_known_names(self, catalog):
        """Emitted values only use names from the command's schema."""
        ctl = InputController(catalog)
        ready = feed(ctl, events.ENTER, *events.text("alice.test"), events.ENTER)
        schema = {p.name for p in ready.command.parameters}
        assert set(ready.values) <= schema


class TestCursorEditing:
    """Test left/right movement and editing in the middle of a buffer."""

    def test_insert_mid_parameter(self, catalog):
        """Characters are inserted at the cursor, not appended."""
        ctl = InputController(catalog)
        feed(ctl, events.ENTER, *events.text("alce.test"))
        feed(ctl, *[events.LEFT] * 7, InputEvent.character("i"))
        assert ctl.param_buffer == "alice.test"
        assert ctl.cursor == 3

    def test_backspace_mid_parameter(self, catalog):
        """Backspace deletes the character before the cursor."""
        ctl = InputController(catalog)
        feed(ctl, events.ENTER, *events.text("alixce"), events.LEFT, events.LEFT, events.BACKSPACE)
        assert ctl.param_buffer == "alice"
        assert ctl.cursor == 3

    def test_cursor_clamps(self, catalog):
        """Cursor stays within the buffer; backspace at the start does nothing."""
        ctl = InputController(catalog)
        feed(ctl, events.ENTER, *events.text("ab"), *[events.LEFT] * 5, events.BACKSPACE)
        assert ctl.cursor == 0
        assert ctl.param_buffer == "ab"
        feed(ctl, *[events.RIGHT] * 5)
        assert ctl.cursor == 2

    def test_cursor_resets_per_parameter(self, catalog):
        ctl = InputController(catalog)
        feed(ctl, events.DOWN, events.ENTER, *events.text("at://did:plc:x/post/1"), events.ENTER)
        assert ctl.param_index == 1
        assert ctl.cursor == 0

    def test_insert_mid_autocomplete(self, catalog):
        """Autocomplete edits at the cursor and re-filters candidates."""
        ctl = InputController(catalog)
        feed(ctl, InputEvent.character("g"), *events.text("tpo"))
        assert ctl.candidates == []
        feed(ctl, events.LEFT, events.LEFT, events.LEFT, InputEvent.character("e"))
        assert ctl.buffer == "getpo"
        assert [c.name for c in ctl.candidates] == ["getPost"]

    def test_tab_moves_cursor_to_end(self, catalog):
        ctl = InputController(catalog)
        feed(ctl, events.TAB, *events.text("get"), events.LEFT, events.TAB)
        assert ctl.buffer == "getProfile"
        assert ctl.cursor == len("getProfile")

    def test_arrows_ignored_when_browsing(self, catalog):
        ctl = InputController(catalog)
        feed(ctl, events.RIGHT, events.LEFT)
        assert ctl.mode is SessionMode.BROWSING
        assert ctl.selected_index == 0
