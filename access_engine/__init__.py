"""
Access Engine - the screen-reader core for keyboard-driven game accessibility

Provides:
- HandlerStack: which input handler currently owns the keyboard
- TypeAheadSearch: type letters to jump through a handler's item list
- TextFilter: strip rich-text markup before anything is spoken

Everything that speaks goes through SpeechPipeline, which filters first.
"""

__version__ = "1.0.0"
