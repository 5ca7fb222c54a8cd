"""
Access Engine - Shared Constants

Central location for constants used across the engine.
"""

# =============================================================================
# TIMING
# =============================================================================

SEARCH_TIMEOUT = 1.5          # Seconds of inactivity before the search buffer resets
SPEECH_DEDUPE_WINDOW = 0.05   # Identical interrupt speech within this window is dropped
TICK_INTERVAL = 0.05          # How often the host ticks the handler stack (seconds)

# =============================================================================
# KEYS
# =============================================================================
# Key names follow Textual's naming ("up", "escape", "f12", "a").

HELP_KEY = "f12"
TOGGLE_CHORD = "ctrl+shift+f12"

# Keys that reach the host even when a handler captures all input.
# Screens need Escape to close themselves, which in turn pops their handler.
PASSTHROUGH_KEYS = frozenset({"escape"})

# =============================================================================
# SPOKEN STRINGS
# =============================================================================

SEARCH_CLEARED = "Search cleared"
SEARCH_NO_MATCH = "No match for {}"

HELP_TITLE = "Help"
HELP_NO_COMMANDS = "No commands available"
HELP_NAVIGATE = "Move through help entries"
HELP_CLOSE = "Close help"

ACCESS_ON = "Access on"
ACCESS_OFF = "Access off"

# Sprite names that carry meaning and are spoken instead of stripped
DEFAULT_SPRITES = {
    "warning": "warning:",
    "logic_signal_green": "green signal",
    "logic_signal_red": "red signal",
}
