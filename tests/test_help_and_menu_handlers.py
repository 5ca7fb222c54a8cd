"""
Tests for access_engine/help_handler.py and access_engine/menu_handler.py
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from access_engine.handler_stack import HandlerStack
from access_engine.handlers import AccessHandler, HelpEntry, KeyDownEvent
from access_engine.help_handler import HelpHandler
from access_engine.menu_handler import ListMenuHandler
from access_engine.search import Searchable


class RecordingSpeech:
    def __init__(self):
        self.spoken = []

    def speak_interrupt(self, text):
        self.spoken.append(("interrupt", text))

    def speak_queued(self, text):
        self.spoken.append(("queued", text))


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def speech():
    return RecordingSpeech()


@pytest.fixture
def stack():
    return HandlerStack()


def press(handler, chord):
    return handler.handle_key_down(KeyDownEvent.from_chord(chord))


# =============================================================================
# HelpHandler
# =============================================================================

ENTRIES = [HelpEntry("up/down", "Move"), HelpEntry("enter", "Select")]


class TestHelpHandler:
    """Spoken key list."""

    def test_is_capturing_handler(self, stack, speech):
        """Help is a handler that captures all input."""
        help_handler = HelpHandler(ENTRIES, stack, speech)
        assert isinstance(help_handler, AccessHandler)
        assert help_handler.captures_all_input

    def test_activate_speaks_title_then_first_entry(self, stack, speech):
        """Opening help says 'Help' then queues the first entry."""
        stack.push(HelpHandler(ENTRIES, stack, speech))
        assert speech.spoken == [("interrupt", "Help"), ("queued", "up/down: Move")]

    def test_no_entries(self, stack, speech):
        """Empty help says there is nothing to list."""
        stack.push(HelpHandler([], stack, speech))
        assert speech.spoken[-1] == ("queued", "No commands available")

    def test_navigation_wraps(self, stack, speech):
        """Up and Down wrap around the entry list."""
        help_handler = HelpHandler(ENTRIES, stack, speech)
        stack.push(help_handler)

        press(help_handler, "down")
        assert speech.spoken[-1] == ("interrupt", "enter: Select")
        press(help_handler, "down")
        assert speech.spoken[-1] == ("interrupt", "up/down: Move")
        press(help_handler, "up")
        assert speech.spoken[-1] == ("interrupt", "enter: Select")

    def test_escape_pops(self, stack, speech):
        """Escape closes help."""
        help_handler = HelpHandler(ENTRIES, stack, speech)
        stack.push(help_handler)
        assert press(help_handler, "escape") is True
        assert stack.count == 0

    def test_unhandled_key(self, stack, speech):
        """Other keys are not handled by help itself."""
        help_handler = HelpHandler(ENTRIES, stack, speech)
        stack.push(help_handler)
        assert press(help_handler, "x") is False

    def test_deactivate_resets_cursor(self, stack, speech):
        """Closing help forgets the position."""
        help_handler = HelpHandler(ENTRIES, stack, speech)
        stack.push(help_handler)
        press(help_handler, "down")
        stack.pop()
        assert help_handler.cursor == 0


# =============================================================================
# ListMenuHandler
# =============================================================================

ITEMS = ["Ladder", "Tile", "Manual Airlock", "Gas Pump", "Liquid Pump"]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def selections():
    return []


@pytest.fixture
def menu(stack, speech, clock, selections):
    handler = ListMenuHandler(
        "Build menu", ITEMS, stack, speech,
        on_select=lambda index, label: selections.append((index, label)),
        time_source=clock,
    )
    stack.push(handler)
    speech.spoken.clear()
    return handler


class TestListMenuHandler:
    """Menu navigation and selection."""

    def test_protocols(self, menu):
        """The menu is both a handler and searchable."""
        assert isinstance(menu, AccessHandler)
        assert isinstance(menu, Searchable)

    def test_activate_speaks_title_then_item(self, stack, speech):
        """Opening the menu says its title then queues the current item."""
        stack.push(ListMenuHandler("Build menu", ITEMS, stack, speech))
        assert speech.spoken == [("interrupt", "Build menu"), ("queued", "Ladder")]

    def test_down_and_wrap(self, menu, speech):
        """Arrows move and wrap at both ends."""
        press(menu, "down")
        assert menu.cursor == 1
        press(menu, "up")
        press(menu, "up")
        assert menu.cursor == len(ITEMS) - 1
        assert speech.spoken[-1] == ("interrupt", "Liquid Pump")

    def test_home_end(self, menu):
        """Home and End jump to the ends."""
        press(menu, "end")
        assert menu.cursor == 4
        press(menu, "home")
        assert menu.cursor == 0

    def test_enter_selects(self, menu, selections):
        """Enter reports the current index and label."""
        press(menu, "down")
        assert press(menu, "enter") is True
        assert selections == [(1, "Tile")]

    def test_escape_closes(self, menu, stack):
        """Escape pops a closable menu."""
        assert press(menu, "escape") is True
        assert stack.count == 0

    def test_escape_when_not_closable(self, stack, speech):
        """A root menu ignores Escape and doesn't list it in help."""
        handler = ListMenuHandler("Root", ITEMS, stack, speech, closable=False)
        stack.push(handler)
        assert press(handler, "escape") is False
        assert stack.count == 1
        assert "escape" not in [e.key_name for e in handler.help_entries]

    def test_type_ahead_jumps(self, menu, speech):
        """A letter jumps to the first item with a word starting with it."""
        assert press(menu, "p") is True
        assert menu.cursor == 3
        assert speech.spoken[-1] == ("interrupt", "Gas Pump")

    def test_type_ahead_repeat_cycles(self, menu):
        """The same letter again moves to the next match."""
        press(menu, "p")
        press(menu, "p")
        assert menu.cursor == 4

    def test_escape_during_search_clears_instead_of_closing(self, menu, stack):
        """Escape first ends the search, the menu stays open."""
        press(menu, "p")
        press(menu, "escape")
        assert stack.count == 1
        assert not menu.search.is_search_active

    def test_enter_after_search_selects_match(self, menu, selections):
        """Enter after a search selects the found item."""
        press(menu, "a")
        assert press(menu, "enter") is True
        assert selections == [(2, "Manual Airlock")]

    def test_deactivate_clears_search(self, menu, stack):
        """Closing the menu drops its search buffer."""
        press(menu, "t")
        stack.pop()
        assert not menu.search.has_buffer

    def test_set_items_clamps_cursor(self, menu):
        """A shorter list pulls the cursor back in range."""
        press(menu, "end")
        menu.set_items(["Wire", "Battery"])
        assert menu.cursor == 1
        assert menu.current_label == "Battery"

    def test_set_items_empty(self, menu):
        """An empty menu still swallows arrows without moving."""
        menu.set_items([])
        assert menu.cursor == 0
        assert menu.current_label is None
        assert press(menu, "down") is True
