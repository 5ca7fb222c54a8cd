"""
Access Engine: Help Handler

Spoken list of the key bindings reachable from the handler that was on top
when help opened. Captures all input while open.
"""

from typing import Sequence

from .constants import HELP_CLOSE, HELP_NAVIGATE, HELP_NO_COMMANDS, HELP_TITLE
from .handlers import HelpEntry, KeyDownEvent


class HelpHandler:
    """Capture-all list of HelpEntry, navigated with Up/Down."""

    display_name = HELP_TITLE
    captures_all_input = True

    def __init__(self, entries: Sequence[HelpEntry], stack, speech):
        self.entries = list(entries)
        self.stack = stack
        self.speech = speech
        self.cursor = 0
        self.help_entries = [
            HelpEntry("up/down", HELP_NAVIGATE),
            HelpEntry("escape", HELP_CLOSE),
        ]

    def tick(self) -> None:
        pass

    def handle_key_down(self, event: KeyDownEvent) -> bool:
        if event.key in ("escape", "f12"):
            self.stack.pop()
            return True

        if event.key in ("up", "down") and self.entries:
            step = 1 if event.key == "down" else -1
            self.cursor = (self.cursor + step) % len(self.entries)
            self.speech.speak_interrupt(str(self.entries[self.cursor]))
            return True

        return False

    def on_activate(self) -> None:
        self.speech.speak_interrupt(self.display_name)
        if self.entries:
            self.speech.speak_queued(str(self.entries[self.cursor]))
        else:
            self.speech.speak_queued(HELP_NO_COMMANDS)

    def on_deactivate(self) -> None:
        self.cursor = 0
