"""
Access Engine: Type-Ahead Search

Type letters to jump through a handler's list. Matching is by word start, so
"c" finds "Blue Cheese" as well as "Cherry". Pressing the same letter again
cycles through the items that letter matches, the way list boxes do.

The search never owns the item list. Every search call receives the item
count and a label lookup, so the list can change between calls.

Two ways to use it:
- handle_key() with a Searchable: centralized keyboard behavior for menus
- add_char() / search() / navigate_results(): for custom handling
"""

import logging
import time
from typing import Callable, Optional, Protocol, runtime_checkable

from .constants import SEARCH_CLEARED, SEARCH_NO_MATCH, SEARCH_TIMEOUT
from .handlers import key_letter

logger = logging.getLogger(__name__)


@runtime_checkable
class Searchable(Protocol):
    """A handler whose current list can be searched with handle_key()."""

    @property
    def search_item_count(self) -> int:
        """Items at the current navigation level. 0 disables search."""

    @property
    def search_current_index(self) -> int:
        """Current cursor position in the handler's own list."""

    def get_search_label(self, index: int) -> Optional[str]:
        """Label for the item at `index`, or None to skip it."""

    def search_move_to(self, index: int) -> None:
        """Move the handler cursor to `index` and announce it."""


def starts_any_word(label: str, prefix: str) -> bool:
    """True if `prefix` starts any whitespace-delimited word of `label` (case-insensitive)."""
    prefix = prefix.lower()
    return any(word.startswith(prefix) for word in label.lower().split())


def _is_repeat(text: str) -> bool:
    return len(text) > 1 and text.count(text[0]) == len(text)


class TypeAheadSearch:
    """
    Incremental search state for one handler.

    Pure logic, no I/O. The clock is injected so the inactivity timeout can
    be tested without waiting.

    Usage:
        search = TypeAheadSearch(time_source=lambda: now)
        search.add_char('b')
        search.search(len(items), lambda i: items[i])
        search.selected_original_index   # index into items, or -1

    Args:
        time_source: Zero-argument function returning seconds (default: time.monotonic)
        timeout: Seconds of inactivity before the buffer starts over
        speech: Optional SpeechPipeline for "no match" / "cleared" announcements
    """

    def __init__(
        self,
        time_source: Optional[Callable[[], float]] = None,
        timeout: float = SEARCH_TIMEOUT,
        speech=None,
    ):
        self._get_time = time_source or time.monotonic
        self._timeout = timeout
        self._speech = speech

        self._buffer = ""
        self._last_time: float = 0.0

        self._active = False
        self._results: list[int] = []
        self._cursor = -1

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    @property
    def timeout(self) -> float:
        """Seconds before the buffer resets on new input."""
        return self._timeout

    @timeout.setter
    def timeout(self, value: float) -> None:
        self._timeout = value

    @property
    def buffer(self) -> str:
        return self._buffer

    @property
    def has_buffer(self) -> bool:
        return bool(self._buffer)

    @property
    def is_search_active(self) -> bool:
        """True after search() ran, False after clear(). Stays True when nothing matched."""
        return self._active

    @property
    def result_count(self) -> int:
        return len(self._results)

    @property
    def selected_original_index(self) -> int:
        """Original-list index of the selected result, or -1."""
        if self._active and 0 <= self._cursor < len(self._results):
            return self._results[self._cursor]
        return -1

    # -------------------------------------------------------------------------
    # Buffer
    # -------------------------------------------------------------------------

    def add_char(self, char: str) -> str:
        """
        Append a character to the buffer and return the new buffer.

        A stale buffer (no input for longer than timeout) is discarded first,
        so a pause starts a new query instead of extending the old one.
        """
        now = self._get_time()
        if now - self._last_time > self._timeout:
            self._buffer = ""

        self._buffer += char.lower()
        self._last_time = now
        return self._buffer

    def remove_char(self) -> bool:
        """Backspace. Returns False if the buffer was already empty."""
        if not self._buffer:
            return False

        self._buffer = self._buffer[:-1]
        self._last_time = self._get_time()
        return True

    def clear(self) -> None:
        """Forget the buffer and all results."""
        self._buffer = ""
        self._active = False
        self._results = []
        self._cursor = -1

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    def search(self, item_count: int, label_of: Callable[[int], Optional[str]]) -> None:
        """
        Match the buffer against items 0..item_count-1.

        An item matches when the buffer starts any word of its label. Items
        with no label are skipped. Results are in original order.

        Repeat letter: when the buffer is one letter typed several times
        ("bb"), it collapses to that letter and the selection advances to the
        next match after the current one (wrapping) instead of restarting.
        """
        cycling = _is_repeat(self._buffer)
        previous = self.selected_original_index
        if cycling:
            self._buffer = self._buffer[0]

        self._active = True
        if not self._buffer or item_count <= 0:
            self._results = []
            self._cursor = -1
            return

        query = self._buffer
        matches = []
        for i in range(item_count):
            label = label_of(i)
            if label and starts_any_word(label, query):
                matches.append(i)

        self._results = matches
        if not matches:
            self._cursor = -1
        elif cycling and previous >= 0:
            self._cursor = next(
                (pos for pos, index in enumerate(matches) if index > previous), 0
            )
        else:
            self._cursor = 0

    def navigate_results(self, direction: int) -> None:
        """Move through results (1 = next, -1 = previous), wrapping at both ends."""
        if not self._results:
            return
        self._cursor = (self._cursor + direction) % len(self._results)

    def jump_to_first_result(self) -> None:
        if self._results:
            self._cursor = 0

    def jump_to_last_result(self) -> None:
        if self._results:
            self._cursor = len(self._results) - 1

    # -------------------------------------------------------------------------
    # Centralized key handling
    # -------------------------------------------------------------------------

    def handle_key(self, key: str, ctrl: bool, alt: bool, searchable: Searchable) -> bool:
        """
        All search keyboard behavior for a Searchable handler.

        Call from handle_key_down after the handler's own modifier shortcuts.
        Returns True if search consumed the key.

        While searching: Up/Down move through results, Home/End jump, Escape
        clears, Backspace edits, letters refine. Any other key ends the search
        and is left for the handler (its cursor already sits on the result).
        """
        letter = key_letter(key)
        typed = letter is not None and not ctrl and not alt

        if self._active:
            if key == "up":
                self.navigate_results(-1)
                self._announce_current(searchable)
                return True
            if key == "down":
                self.navigate_results(1)
                self._announce_current(searchable)
                return True
            if key == "home":
                self.jump_to_first_result()
                self._announce_current(searchable)
                return True
            if key == "end":
                self.jump_to_last_result()
                self._announce_current(searchable)
                return True
            if key == "escape":
                self.clear()
                self._speak(SEARCH_CLEARED)
                return True
            if key == "backspace":
                return self._backspace(searchable)
            if typed:
                self.add_char(letter)
                self._run_search(searchable)
                return True
            self.clear()
            return False

        if typed:
            if searchable.search_item_count == 0:
                return False
            self.add_char(letter)
            self._run_search(searchable)
            return True

        # Leftover buffer from an earlier search
        if key == "backspace" and self.has_buffer:
            return self._backspace(searchable)

        return False

    def _backspace(self, searchable: Searchable) -> bool:
        if not self.remove_char():
            return True
        if not self.has_buffer:
            self.clear()
            self._speak(SEARCH_CLEARED)
            return True
        self._run_search(searchable)
        return True

    def _run_search(self, searchable: Searchable) -> None:
        self.search(searchable.search_item_count, searchable.get_search_label)
        if self._results:
            self._announce_current(searchable)
        else:
            self._speak(SEARCH_NO_MATCH.format(self._buffer))

    def _announce_current(self, searchable: Searchable) -> None:
        index = self.selected_original_index
        if index >= 0:
            searchable.search_move_to(index)

    def _speak(self, text: str) -> None:
        if self._speech is None:
            logger.debug(f"TypeAheadSearch: no speech pipeline for {text!r}")
            return
        self._speech.speak_interrupt(text)
