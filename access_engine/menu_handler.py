"""
Access Engine: List Menu Handler

A reusable handler for flat menus: a title and a list of labels. Arrow keys
move, Enter selects, Escape closes, letters search.
"""

import logging
from typing import Callable, Optional, Sequence

from .constants import SEARCH_TIMEOUT
from .handlers import HelpEntry, KeyDownEvent
from .search import TypeAheadSearch

logger = logging.getLogger(__name__)


class ListMenuHandler:
    """
    Menu over a list of labels, searchable by type-ahead.

    Args:
        title: Spoken when the menu becomes active
        items: Item labels, in display order
        stack: HandlerStack this menu lives on (for closing itself)
        speech: SpeechPipeline for announcements
        on_select: Called as on_select(index, label) when Enter is pressed
        closable: Escape pops the menu when True
        captures_all_input: Barrier for handlers below
        time_source: Clock for the type-ahead timeout
        search_timeout: Seconds before the type-ahead buffer starts over
    """

    def __init__(
        self,
        title: str,
        items: Sequence[str],
        stack,
        speech,
        on_select: Optional[Callable[[int, str], None]] = None,
        closable: bool = True,
        captures_all_input: bool = True,
        time_source: Optional[Callable[[], float]] = None,
        search_timeout: float = SEARCH_TIMEOUT,
    ):
        self.display_name = title
        self.items = list(items)
        self.stack = stack
        self.speech = speech
        self.on_select = on_select
        self.closable = closable
        self.captures_all_input = captures_all_input
        self.cursor = 0
        self.search = TypeAheadSearch(
            time_source=time_source, timeout=search_timeout, speech=speech,
        )

    @property
    def help_entries(self) -> list[HelpEntry]:
        entries = [
            HelpEntry("up/down", "Move through items"),
            HelpEntry("home/end", "First or last item"),
            HelpEntry("enter", "Select item"),
            HelpEntry("a-z", "Jump to item by name"),
        ]
        if self.closable:
            entries.append(HelpEntry("escape", "Close menu"))
        return entries

    @property
    def current_label(self) -> Optional[str]:
        if 0 <= self.cursor < len(self.items):
            return self.items[self.cursor]
        return None

    def set_items(self, items: Sequence[str]) -> None:
        """Replace the list, keeping the cursor in range."""
        self.items = list(items)
        self.cursor = min(self.cursor, max(len(self.items) - 1, 0))
        self.search.clear()

    # -------------------------------------------------------------------------
    # Searchable
    # -------------------------------------------------------------------------

    @property
    def search_item_count(self) -> int:
        return len(self.items)

    @property
    def search_current_index(self) -> int:
        return self.cursor

    def get_search_label(self, index: int) -> Optional[str]:
        if 0 <= index < len(self.items):
            return self.items[index]
        return None

    def search_move_to(self, index: int) -> None:
        self.cursor = index
        self._announce()

    # -------------------------------------------------------------------------
    # AccessHandler
    # -------------------------------------------------------------------------

    def tick(self) -> None:
        pass

    def handle_key_down(self, event: KeyDownEvent) -> bool:
        if self.search.handle_key(event.key, event.ctrl, event.alt, self):
            return True

        count = len(self.items)
        key = event.key

        if key in ("up", "down"):
            if count:
                step = 1 if key == "down" else -1
                self.cursor = (self.cursor + step) % count
                self._announce()
            return True

        if key == "home" and count:
            self.cursor = 0
            self._announce()
            return True

        if key == "end" and count:
            self.cursor = count - 1
            self._announce()
            return True

        if key == "enter":
            label = self.current_label
            if label is not None and self.on_select is not None:
                logger.debug(f"{self.display_name}: selected {label!r}")
                self.on_select(self.cursor, label)
            return True

        if key == "escape" and self.closable:
            self.stack.pop()
            return True

        return False

    def on_activate(self) -> None:
        self.speech.speak_interrupt(self.display_name)
        label = self.current_label
        if label is not None:
            self.speech.speak_queued(label)

    def on_deactivate(self) -> None:
        self.search.clear()

    def _announce(self) -> None:
        label = self.current_label
        if label is not None:
            self.speech.speak_interrupt(label)
