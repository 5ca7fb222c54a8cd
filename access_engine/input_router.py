"""
Access Engine: Input Router

Feeds host key presses and ticks to the HandlerStack.

Key presses walk the stack from the top down until something consumes them.
A handler that captures all input is a barrier: nothing below it sees the
key, and the host does not either (except pass-through keys like Escape, so
the host can still close its own screens).

Ticks walk the same way. A tick that pushes or pops ends the walk, since the
indices below it no longer mean what they did.
"""

import logging
from typing import Callable, Optional

from .constants import ACCESS_OFF, ACCESS_ON, HELP_KEY, PASSTHROUGH_KEYS, TOGGLE_CHORD
from .handler_stack import HandlerStack
from .handlers import AccessHandler, KeyDownEvent
from .help_handler import HelpHandler
from .speech import SpeechPipeline

logger = logging.getLogger(__name__)


class InputRouter:
    """
    Routes input through the stack and owns the on/off toggle.

    Args:
        stack: The handler stack to route through
        speech: Pipeline for toggle and help announcements
        root_factory: Builds the bottom handler when the subsystem turns on
    """

    def __init__(
        self,
        stack: HandlerStack,
        speech: SpeechPipeline,
        root_factory: Optional[Callable[[], AccessHandler]] = None,
    ):
        self.stack = stack
        self.speech = speech
        self.root_factory = root_factory
        self.enabled = True
        # Speech state to restore when turning back on
        self._speech_enabled = speech.is_active

    # -------------------------------------------------------------------------
    # Ticks
    # -------------------------------------------------------------------------

    def tick(self) -> None:
        """Tick every handler reachable from the top of the stack."""
        if not self.enabled:
            return

        for i in range(self.stack.count - 1, -1, -1):
            handler = self.stack.handler_at(i)
            if handler is None:
                break
            count_before = self.stack.count
            handler.tick()

            if self.stack.count != count_before or self.stack.handler_at(i) is not handler:
                break
            if handler.captures_all_input:
                break

    # -------------------------------------------------------------------------
    # Keys
    # -------------------------------------------------------------------------

    def key_down(self, event: KeyDownEvent) -> bool:
        """
        Route one key press. Returns True if the host must not process it.
        """
        if event.chord == TOGGLE_CHORD:
            self.toggle()
            event.consumed = True
            return True

        if not self.enabled:
            return False

        if event.key == HELP_KEY and not event.has_modifiers:
            if not isinstance(self.stack.active_handler, HelpHandler):
                entries = self.stack.collect_help_entries()
                self.stack.push(HelpHandler(entries, self.stack, self.speech))
                event.consumed = True
                return True

        for i in range(self.stack.count - 1, -1, -1):
            handler = self.stack.handler_at(i)
            if handler is None:
                break

            if handler.handle_key_down(event):
                event.consumed = True
                return True

            if handler.captures_all_input:
                if event.key in PASSTHROUGH_KEYS:
                    return False
                event.consumed = True
                return True

            if event.key in (getattr(handler, "consumed_keys", None) or ()):
                event.consumed = True
                return True

        return False

    # -------------------------------------------------------------------------
    # Toggle
    # -------------------------------------------------------------------------

    def toggle(self) -> None:
        """Turn the whole subsystem off or back on."""
        if self.enabled:
            # Speak before disabling so the announcement gets through
            self._speech_enabled = self.speech.is_active
            self.speech.speak_interrupt(ACCESS_OFF)
            self.stack.deactivate_all()
            self.speech.set_enabled(False)
            self.enabled = False
            logger.info("Access engine disabled")
            return

        self.enabled = True
        self.speech.set_enabled(self._speech_enabled)
        self.speech.speak_interrupt(ACCESS_ON)
        if self.root_factory is not None:
            self.stack.push(self.root_factory())
        logger.info("Access engine enabled")
