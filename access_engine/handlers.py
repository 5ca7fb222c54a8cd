"""
Access Engine: Handler Contract

Handlers are the screen-specific objects that own the keyboard while they sit
on top of the HandlerStack. They are supplied by the host application and only
need to provide the small capability set described by AccessHandler. No base
class is required; any object with these attributes works.

Key events reach handlers as KeyDownEvent, a host-independent description of
one key press.
"""

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence, runtime_checkable


# =============================================================================
# HelpEntry
# =============================================================================

@dataclass(frozen=True)
class HelpEntry:
    """One line of the spoken help list: a key and what it does."""
    key_name: str
    description: str

    def __str__(self) -> str:
        return f"{self.key_name}: {self.description}"


# =============================================================================
# KeyDownEvent
# =============================================================================

_MODIFIERS = ("ctrl", "alt", "shift")


def key_letter(key: str) -> Optional[str]:
    """The lowercase a-z letter a key name stands for, or None."""
    if len(key) == 1 and "a" <= key.lower() <= "z":
        return key.lower()
    return None


@dataclass
class KeyDownEvent:
    """
    A single key press, as handed to handlers.

    Attributes:
        key: Key name without modifiers ("a", "up", "escape", "f12")
        ctrl: Control held
        alt: Alt held
        shift: Shift held
        timestamp: Seconds, from whatever clock the host uses
        consumed: Set once a handler has claimed the event
    """
    key: str
    ctrl: bool = False
    alt: bool = False
    shift: bool = False
    timestamp: float = 0.0
    consumed: bool = False

    @classmethod
    def from_chord(cls, chord: str, timestamp: float = 0.0) -> "KeyDownEvent":
        """Build an event from a Textual-style chord such as "ctrl+shift+f12"."""
        parts = chord.lower().split("+")
        # "+" itself arrives as "plus", so the last part is always the key
        key = parts[-1]
        mods = set(parts[:-1])
        return cls(
            key=key,
            ctrl="ctrl" in mods,
            alt="alt" in mods,
            shift="shift" in mods,
            timestamp=timestamp,
        )

    @property
    def chord(self) -> str:
        """Modifiers plus key, in a fixed order ("ctrl+shift+f12")."""
        held = [name for name in _MODIFIERS if getattr(self, name)]
        return "+".join(held + [self.key])

    @property
    def has_modifiers(self) -> bool:
        return self.ctrl or self.alt or self.shift

    def __repr__(self) -> str:
        mark = " consumed" if self.consumed else ""
        return f"KeyDownEvent({self.chord}{mark} @{self.timestamp:.3f})"


# =============================================================================
# AccessHandler
# =============================================================================

@runtime_checkable
class AccessHandler(Protocol):
    """
    The capability set every handler on the stack provides.

    display_name is spoken when the handler becomes active. A handler with
    captures_all_input=True is a barrier: handlers below it receive no ticks
    or keys, and unclaimed keys do not reach the host. Non-capturing handlers
    let unclaimed keys fall through.

    Handlers may also expose `consumed_keys`, a collection of key names they
    claim even though they do not capture all input. It is optional and read
    with getattr.
    """

    display_name: str
    captures_all_input: bool
    help_entries: Sequence[HelpEntry]

    def tick(self) -> None:
        """Called once per host tick while reachable from the top of the stack."""

    def handle_key_down(self, event: KeyDownEvent) -> bool:
        """Process a key press. Return True to consume it."""

    def on_activate(self) -> None:
        """Called each time the handler becomes the top of the stack."""

    def on_deactivate(self) -> None:
        """Called when the handler is removed from the stack."""
