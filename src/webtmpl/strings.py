"""Escaping of static markup for embedding in a single delimited string literal."""

from __future__ import annotations

from webtmpl.markers import map_static

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "'": "\\'",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\0": "\\x00",
}


def escape_literal(text: str) -> str:
    """Escape backslashes, both quote characters, and line breaks.

    The result is valid between a pair of double quotes (or single quotes)
    in Python source.
    """
    if not any(ch in _ESCAPES for ch in text):
        return text
    return "".join(_ESCAPES.get(ch, ch) for ch in text)


def escape_static(markup: str) -> str:
    """Escape the text outside interpolation markers; markers stay verbatim.

    Raises TemplateSyntaxError on an unterminated marker.
    """
    return map_static(markup, escape_literal, strict=True)
