"""
Access Engine: Handler Stack

Tracks which handler owns the keyboard. The top of the stack is the active
handler; the stack beneath it is the input context hierarchy, e.g.
[World] or [World, BuildMenu] or [World, BuildMenu, Help].

Lifecycle ordering is a contract:
- push appends first, then calls on_activate
- pop removes first, then calls on_deactivate, then re-activates the
  handler it exposed
- exceptions from handler callbacks propagate to the caller, with the stack
  already in its new shape

That way the stack shape is always consistent even when handler code throws.
A handler whose on_activate raised is still on the stack; a handler whose
on_deactivate raised is gone, and the exposed handler is not re-activated.

Null handlers and pops on an empty stack are silent no-ops.
"""

import logging
from typing import Callable, Iterator, Optional

from .handlers import AccessHandler, HelpEntry

logger = logging.getLogger(__name__)


def _name(handler) -> str:
    return getattr(handler, "display_name", type(handler).__name__)


class HandlerStack:
    """
    Ordered, last-in-first-out stack of AccessHandlers.

    One instance is created by whatever drives the input loop and passed by
    reference to the code that needs it.

    Usage:
        stack = HandlerStack()
        stack.push(world)         # world.on_activate()
        stack.push(build_menu)    # build_menu.on_activate()
        stack.pop()               # build_menu.on_deactivate(), world.on_activate()
    """

    def __init__(self):
        self._stack: list[AccessHandler] = []

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    @property
    def active_handler(self) -> Optional[AccessHandler]:
        """The top handler, or None if the stack is empty."""
        return self._stack[-1] if self._stack else None

    @property
    def count(self) -> int:
        return len(self._stack)

    @property
    def handlers(self) -> tuple:
        """Snapshot of the stack, bottom first."""
        return tuple(self._stack)

    def handler_at(self, index: int) -> Optional[AccessHandler]:
        """
        Handler at `index` (0 = bottom, count-1 = top).

        Returns None for out-of-range indices, so top-to-bottom walks stay
        safe when a callback mutates the stack mid-walk.
        """
        if index < 0 or index >= len(self._stack):
            return None
        return self._stack[index]

    def __len__(self) -> int:
        return len(self._stack)

    def __iter__(self) -> Iterator[AccessHandler]:
        return iter(tuple(self._stack))

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def push(self, handler: Optional[AccessHandler]) -> None:
        """
        Make `handler` the top of the stack and activate it.

        The previous top is NOT deactivated: it stays on the stack and still
        sees fall-through input unless the new handler captures all input.
        """
        if handler is None:
            logger.warning("HandlerStack.push called with None")
            return

        self._stack.append(handler)
        handler.on_activate()
        logger.debug(f"HandlerStack.push: {_name(handler)} (depth={len(self._stack)})")

    def pop(self) -> None:
        """Remove the top handler, deactivate it, then re-activate the one exposed."""
        if not self._stack:
            logger.warning("HandlerStack.pop called on empty stack")
            return

        removed = self._stack.pop()
        removed.on_deactivate()
        logger.debug(f"HandlerStack.pop: {_name(removed)} (depth={len(self._stack)})")

        exposed = self.active_handler
        if exposed is not None:
            exposed.on_activate()
            logger.debug(f"HandlerStack.pop: reactivated {_name(exposed)}")

    def replace(self, handler: Optional[AccessHandler]) -> None:
        """
        Swap the top handler for `handler`.

        The old top is removed and deactivated; whatever it exposed is not
        re-activated, because `handler` immediately covers it. On an empty
        stack this is the same as push.
        """
        if handler is None:
            logger.warning("HandlerStack.replace called with None")
            return

        if self._stack:
            removed = self._stack.pop()
            removed.on_deactivate()
            logger.debug(f"HandlerStack.replace: removed {_name(removed)}")

        self._stack.append(handler)
        handler.on_activate()
        logger.debug(f"HandlerStack.replace: activated {_name(handler)} (depth={len(self._stack)})")

    def clear(self) -> None:
        """Empty the stack without calling any callbacks. Hard resets only."""
        self._stack.clear()
        logger.debug("HandlerStack.clear: stack cleared without callbacks")

    def deactivate_all(self) -> None:
        """
        Deactivate the top handler and empty the stack.

        Only the top gets on_deactivate: handlers below it were buried by
        navigation and are dropped silently.
        """
        active = self.active_handler
        if active is not None:
            active.on_deactivate()
            logger.debug(f"HandlerStack.deactivate_all: deactivated {_name(active)}")
        self._stack.clear()

    def remove(self, handler: AccessHandler) -> bool:
        """
        Remove `handler` from any depth, then deactivate it.

        Used when a screen closes while its handler is buried under others.
        The handler that ends up on top is not re-activated. Returns True if
        the handler was found.
        """
        for i in range(len(self._stack) - 1, -1, -1):
            if self._stack[i] is handler:
                del self._stack[i]
                handler.on_deactivate()
                logger.debug(f"HandlerStack.remove: removed {_name(handler)} at index {i}")
                return True
        return False

    def remove_where(self, predicate: Callable[[AccessHandler], bool]) -> int:
        """
        Remove every handler matching `predicate`, top to bottom.

        Each removal is followed by that handler's on_deactivate. Returns
        the number of handlers removed.
        """
        removed = 0
        for i in range(len(self._stack) - 1, -1, -1):
            if i >= len(self._stack):
                continue
            handler = self._stack[i]
            if not predicate(handler):
                continue
            del self._stack[i]
            removed += 1
            handler.on_deactivate()
            logger.debug(f"HandlerStack.remove_where: removed {_name(handler)} at index {i}")
        return removed

    # -------------------------------------------------------------------------
    # Help
    # -------------------------------------------------------------------------

    def collect_help_entries(self) -> list[HelpEntry]:
        """
        Help entries of every handler reachable from the top.

        Walks top to bottom and stops after the first handler that captures
        all input (inclusive). Entries are de-duplicated by key name; the
        topmost handler wins.
        """
        entries: list[HelpEntry] = []
        seen: set[str] = set()
        for handler in reversed(self._stack):
            for entry in getattr(handler, "help_entries", None) or ():
                if entry.key_name not in seen:
                    seen.add(entry.key_name)
                    entries.append(entry)
            if handler.captures_all_input:
                break
        return entries
