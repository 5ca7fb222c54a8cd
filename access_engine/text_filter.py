"""
Access Engine: Text Filter

Turns rich-text markup into plain speakable text. Game strings carry
TextMeshPro / Unity rich text (bold, color, size, style, links, sprites),
hotkey placeholders and bracket shorthand; none of that should be read aloud.

Meaningful sprites ("warning") are registered with spoken words and replace
their tag. Unregistered sprites are stripped silently and logged once.

Every string sent to the speech device must be the output of
filter_for_speech. Filter order matters: sprites and links are converted
before the catch-all tag stripper would destroy them.
"""

import logging
import re
from typing import Optional

from .constants import DEFAULT_SPRITES

logger = logging.getLogger(__name__)


# <sprite name=warning>, <sprite name="warning"/>, <sprite name="warning" />
SPRITE_TAG_RE = re.compile(r'<sprite\s+name="?([^"/>]+?)"?\s*/?>', re.IGNORECASE)

# <link="LINK_ID">display text</link>
LINK_TAG_RE = re.compile(r'<link="[^"]*">(.*?)</link>')

# {Hotkey} and everything after it
HOTKEY_PLACEHOLDER_RE = re.compile(r'\s*\{Hotkey\}.*', re.DOTALL)

# Any remaining tag: <b>, </color>, <size=10>, <style="KKeyword">
RICH_TEXT_TAG_RE = re.compile(r'<[^>]+>')

# Status values like [45%]
NUMERIC_BRACKET_RE = re.compile(r'\[(\d[^\]]*)\]')

# TextMeshPro shorthand sprites like [icon_name]
BRACKET_SPRITE_RE = re.compile(r'\[[^\]]+\]\s*')

WHITESPACE_RE = re.compile(r'\s+')

# C0 control characters except tab, newline and carriage return
CONTROL_CHARS_RE = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f]')

MARKUP_CHARS = ('<', '[', '{')

MASCULINE_ORDINAL = 'º'
DEGREE_SIGN = '°'


class TextFilter:
    """
    Markup-stripping pipeline plus the sprite name -> spoken text table.

    The table is written at startup and only read while filtering. Filtering
    with an empty table is fine: every sprite is treated as unknown.
    """

    def __init__(self):
        self._sprites: dict[str, str] = {}
        self._warned_sprites: set[str] = set()

    def register_sprite(self, name: Optional[str], spoken_text: Optional[str]) -> None:
        """
        Speak `spoken_text` wherever sprite `name` appears (case-insensitive).

        Empty spoken text means the sprite is known but stripped silently.
        """
        if not name:
            return
        self._sprites[name.strip().lower()] = spoken_text or ""

    def initialize_defaults(self) -> None:
        """Register the sprites that carry meaning in game text."""
        for name, spoken in DEFAULT_SPRITES.items():
            self.register_sprite(name, spoken)

    def filter_for_speech(self, text: Optional[str]) -> str:
        """
        Strip all markup and return plain text ready to speak.

        Pipeline:
        1. Sprite tags -> registered spoken text (unknown ones dropped)
        2. Link tags -> their display text
        3. {Hotkey} placeholder and everything after it dropped
        4. Any remaining <...> tag dropped (no nesting validation)
        5. Numeric brackets unwrapped ([45%] -> 45%)
        6. Bracket sprites ([icon_name]) dropped with trailing whitespace
        7. Empty [] and () left behind dropped
        8. Whitespace collapsed and trimmed
        """
        if not text:
            return ""

        # Null bytes and friends truncate speech output
        text = CONTROL_CHARS_RE.sub("", text)
        if not text:
            return ""

        # Screen readers mispronounce º, which the game uses for temperatures
        text = text.replace(MASCULINE_ORDINAL, DEGREE_SIGN)

        if not any(c in text for c in MARKUP_CHARS):
            return WHITESPACE_RE.sub(" ", text).strip()

        text = SPRITE_TAG_RE.sub(self._replace_sprite, text)
        text = LINK_TAG_RE.sub(r"\1", text)
        text = HOTKEY_PLACEHOLDER_RE.sub("", text)
        text = RICH_TEXT_TAG_RE.sub("", text)
        text = NUMERIC_BRACKET_RE.sub(r"\1", text)
        text = BRACKET_SPRITE_RE.sub("", text)
        text = text.replace("[]", "").replace("()", "")
        text = WHITESPACE_RE.sub(" ", text)
        return text.strip()

    def _replace_sprite(self, match: re.Match) -> str:
        name = match.group(1).strip().lower()
        spoken = self._sprites.get(name)
        if spoken is not None:
            # Trailing space keeps the word apart from what follows;
            # whitespace collapsing removes any excess
            return f"{spoken} " if spoken else ""
        if name not in self._warned_sprites:
            self._warned_sprites.add(name)
            logger.debug(f"Unrecognized sprite tag: {name}")
        return ""


def create_default_filter() -> TextFilter:
    """A TextFilter with the default sprite registrations."""
    text_filter = TextFilter()
    text_filter.initialize_defaults()
    return text_filter


# Shared filter for code that has no SpeechPipeline at hand
_default_filter = create_default_filter()


def get_default_filter() -> TextFilter:
    return _default_filter


def register_sprite(name: Optional[str], spoken_text: Optional[str]) -> None:
    """Register a sprite on the shared filter."""
    _default_filter.register_sprite(name, spoken_text)


def filter_for_speech(text: Optional[str]) -> str:
    """Filter `text` with the shared filter."""
    return _default_filter.filter_for_speech(text)
