"""Cleanup of reply text before it is spoken."""

import re

_EMPHASIS = re.compile(r"\*")
_QUOTES = re.compile(r"[\"']")
_MARKDOWN_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
# Symbols a speech engine would read out loud, plus link brackets left over
# from malformed markdown
_SYMBOLS = re.compile(r"[_#>`\[\]()]")


def sanitize_for_speech(text: str) -> str:
    """
    Remove markup a speech synthesizer should not pronounce.

    Emphasis markers go first, then quotes, then markdown links collapse to
    their label, then remaining symbols are dropped. The result contains none
    of the removed characters, so sanitizing twice changes nothing.
    """
    cleaned = _EMPHASIS.sub("", text)
    cleaned = _QUOTES.sub("", cleaned)
    cleaned = _MARKDOWN_LINK.sub(r"\1", cleaned)
    return _SYMBOLS.sub("", cleaned)
