#!/usr/bin/env python3
"""
Access Engine - Textual host

A keyboard-only terminal shell around the engine. Key presses go to the
InputRouter first; only keys it leaves alone reach the app. A timer ticks the
handler stack. Everything spoken is also shown in a transcript, so the
engine can be used (and debugged) without audio.

Keyboard controls:
- Up/Down, Home/End, Enter: navigate the active menu
- Letters: type-ahead search
- F12: Spoken help for the keys available right now
- Ctrl+Shift+F12: Turn the engine off and on
- Ctrl+Q: Quit
"""

import logging
import time
from pathlib import Path
from typing import Optional

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.css.query import NoMatches
from textual.widgets import Static

from .config import AccessConfig, load_config
from .handler_stack import HandlerStack
from .handlers import KeyDownEvent
from .input_router import InputRouter
from .menu_handler import ListMenuHandler
from .speech import SpeechPipeline
from .text_filter import TextFilter

logger = logging.getLogger(__name__)

TRANSCRIPT_LINES = 20

DEMO_TITLE = "Build menu"
DEMO_ITEMS = [
    "Ladder",
    "Tile",
    "Manual Airlock",
    "Gas Pump",
    "Liquid Pump",
    "Wire",
    "Power Switch",
    "Battery",
]


class Transcript(Static):
    """The last few spoken lines, newest at the bottom"""

    DEFAULT_CSS = """
    Transcript {
        width: 100%;
        height: 1fr;
        padding: 0 1;
    }
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.spoken: list[tuple[str, bool]] = []

    def add_line(self, text: str, interrupt: bool) -> None:
        self.spoken.append((text, interrupt))
        self.spoken = self.spoken[-TRANSCRIPT_LINES:]
        self.refresh()

    def render(self) -> Text:
        result = Text()
        for i, (line, interrupt) in enumerate(self.spoken):
            if i:
                result.append("\n")
            # Queued speech is indented under what it follows
            result.append("  " if not interrupt else "")
            style = "bold" if i == len(self.spoken) - 1 else "dim"
            result.append(line, style=style)
        return result


class StatusLine(Static):
    """Active handler and stack depth"""

    DEFAULT_CSS = """
    StatusLine {
        width: 100%;
        height: 1;
        color: $primary;
        text-style: bold;
        padding: 0 1;
    }
    """


class AccessHostApp(App):
    """
    Terminal host for the access engine.

    Args:
        config: Loaded configuration (default: load_config())
        speak_device: Replaces the audio device, e.g. in tests
    """

    CSS = """
    Screen {
        background: $background;
    }

    #main {
        width: 100%;
        height: 100%;
        border: heavy $primary;
    }
    """

    def __init__(self, config: Optional[AccessConfig] = None, speak_device=None, **kwargs):
        super().__init__(**kwargs)
        self.config = config or load_config()
        self._speak_device = speak_device

        text_filter = TextFilter()
        for name, spoken in self.config.sprites.items():
            text_filter.register_sprite(name, spoken)

        self.stack = HandlerStack()
        self.speech = SpeechPipeline(
            speak_action=self._speak,
            text_filter=text_filter,
            dedupe_window=self.config.dedupe_window,
        )
        self.speech.set_enabled(self.config.speech_enabled)
        self.router = InputRouter(self.stack, self.speech, root_factory=self._build_root)
        self.selected: list[str] = []

    def compose(self) -> ComposeResult:
        with Vertical(id="main"):
            yield StatusLine(id="status")
            yield Transcript(id="transcript")

    def on_mount(self) -> None:
        if self.config.voice_enabled and self._speak_device is None:
            from . import tts
            tts.init()

        self.stack.push(self._build_root())
        self._update_status()
        self._tick_timer = self.set_interval(self.config.tick_interval, self._tick)

    def on_unmount(self) -> None:
        self.stack.deactivate_all()

    # =========================================================================
    # Engine wiring
    # =========================================================================

    def _build_root(self) -> ListMenuHandler:
        return ListMenuHandler(
            DEMO_TITLE,
            DEMO_ITEMS,
            self.stack,
            self.speech,
            on_select=self._on_select,
            closable=False,
            search_timeout=self.config.search_timeout,
        )

    def _on_select(self, index: int, label: str) -> None:
        self.selected.append(label)
        self.speech.speak_interrupt(f"Selected {label}")

    def _speak(self, text: str, interrupt: bool) -> None:
        try:
            transcript = self.query_one("#transcript", Transcript)
        except NoMatches:
            # Not mounted yet or already gone
            transcript = None
        if transcript is not None:
            transcript.add_line(text, interrupt)

        if self._speak_device is not None:
            self._speak_device(text, interrupt)
        elif self.config.voice_enabled:
            from . import tts
            tts.say(text, interrupt=interrupt)

    def _tick(self) -> None:
        self.router.tick()
        self._update_status()

    def _update_status(self) -> None:
        active = self.stack.active_handler
        if not self.router.enabled:
            status = "Access off"
        elif active is None:
            status = "No handler"
        else:
            status = f"{active.display_name} (depth {self.stack.count})"
        self.query_one("#status", StatusLine).update(status)

    def on_key(self, event: events.Key) -> None:
        """Offer every key to the engine before the app sees it"""
        key_event = KeyDownEvent.from_chord(event.key, timestamp=time.monotonic())
        if self.router.key_down(key_event):
            event.stop()
            event.prevent_default()
        self._update_status()


def setup_logging(config: AccessConfig) -> None:
    """Log to a file: the terminal belongs to Textual."""
    log_file = Path(config.log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(log_file),
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main():
    """Entry point for the access engine host"""
    config = load_config()
    setup_logging(config)
    logger.info("Starting access engine host")

    app = AccessHostApp(config=config)
    app.run(mouse=False)  # Keyboard-only


if __name__ == "__main__":
    main()
