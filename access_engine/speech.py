"""
Access Engine: Speech Pipeline

Central dispatch point for all speech. Nothing calls the speech device
directly; everything flows through here:

    caller -> SpeechPipeline -> TextFilter -> speech device (tts.say)

Two modes:
- interrupt: stop current speech and speak now (navigation, announcements)
- queued: speak after current speech finishes (menu name, then first item)
"""

import logging
import time
from typing import Callable, Optional

from .constants import SPEECH_DEDUPE_WINDOW
from .text_filter import TextFilter, get_default_filter

logger = logging.getLogger(__name__)

SpeakAction = Callable[[str, bool], None]


def _device_say(text: str, interrupt: bool) -> None:
    """Default speech action: the bundled TTS device."""
    # Imported here so the pipeline works without an audio stack
    from . import tts
    tts.say(text, interrupt=interrupt)


class SpeechPipeline:
    """
    Filters text and forwards it to the speech device.

    Args:
        speak_action: Called as speak_action(text, interrupt) with filtered text
        text_filter: Filter to apply (default: the shared filter)
        time_source: Clock for de-duplication (default: time.monotonic)
        dedupe_window: Identical interrupt text within this many seconds is dropped
    """

    def __init__(
        self,
        speak_action: Optional[SpeakAction] = None,
        text_filter: Optional[TextFilter] = None,
        time_source: Optional[Callable[[], float]] = None,
        dedupe_window: float = SPEECH_DEDUPE_WINDOW,
    ):
        self.speak_action = speak_action or _device_say
        self.text_filter = text_filter or get_default_filter()
        self._get_time = time_source or time.monotonic
        self.dedupe_window = dedupe_window

        self._enabled = True
        self._last_interrupt_text: Optional[str] = None
        self._last_interrupt_time: float = 0.0

    @property
    def is_active(self) -> bool:
        """False while the subsystem is toggled off."""
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled
        logger.debug(f"SpeechPipeline {'enabled' if enabled else 'disabled'}")

    def reset(self) -> None:
        """Forget de-duplication state and re-enable."""
        self._last_interrupt_text = None
        self._last_interrupt_time = 0.0
        self._enabled = True

    def speak_interrupt(self, text: Optional[str]) -> None:
        """Stop current speech and speak `text` immediately."""
        if not self._enabled:
            return

        filtered = self.text_filter.filter_for_speech(text)
        if not filtered:
            return

        # Two code paths announcing the same thing in one frame
        now = self._get_time()
        if (filtered == self._last_interrupt_text
                and now - self._last_interrupt_time < self.dedupe_window):
            return
        self._last_interrupt_text = filtered
        self._last_interrupt_time = now
        self.speak_action(filtered, True)

    def speak_queued(self, text: Optional[str]) -> None:
        """Speak `text` after whatever is currently being spoken."""
        if not self._enabled:
            return

        filtered = self.text_filter.filter_for_speech(text)
        if not filtered:
            return
        self.speak_action(filtered, False)
