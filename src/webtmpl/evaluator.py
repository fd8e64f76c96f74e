"""Resolve ``${path}`` markers against a render context at runtime."""

from __future__ import annotations

import re
from typing import Any

from webtmpl.context import get_member, to_text
from webtmpl.markers import MARK_CLOSE, MARK_OPEN, Marker, Segment, StaticText, scan_markers

# Plain dotted identifier paths: name, name.key, name.0.key
_PATH_RE = re.compile(r"^[\w-]+(?:\.[\w-]+)*$")

# this.x and props.x name the same value
_RECEIVER_RE = re.compile(r"^\s*(?:this|props)\.", re.IGNORECASE)


def strip_receiver(expression: str) -> str:
    """Remove one leading ``this.`` or ``props.`` prefix."""
    return _RECEIVER_RE.sub("", expression, count=1)


def lookup(path: Any, context: Any = None, fallback: Any = None) -> Any:
    """Return the value at a dotted path in context.

    An exact top-level key wins. Otherwise a plain dotted path is walked
    segment by segment and the first missing segment returns ``fallback``
    (the path itself when no fallback is given). Anything that is not a
    plain path, e.g. ``items[0]`` or an expression, comes back unchanged.

    >>> lookup("hello.foo", {"hello": {"foo": "bar"}})
    'bar'
    """
    if not isinstance(path, str):
        return path
    path = path.strip()

    value = _find(path, context)
    if value is not _MISSING:
        return value
    if not _PATH_RE.match(path):
        return path
    return path if fallback is None else fallback


_MISSING = object()


def _find(path: str, context: Any) -> Any:
    value = get_member(context, path)
    if value is not None:
        return value
    if not _PATH_RE.match(path):
        return _MISSING

    current = context
    for key in path.split("."):
        current = get_member(current, key)
        if current is None:
            return _MISSING
    return current


def resolve(expression: Any, context: Any = None) -> Any:
    """Substitute every marker in expression with its value from context.

    Nested markers resolve innermost first: ``${a.${b}}`` looks up ``b``,
    splices the result into the outer path, then looks that up. A missing
    path leaves the literal marker text in place; a missing compound or
    bracketed key, e.g. ``${a[0]}``, becomes its bare text. Non-string input
    is returned unchanged.
    """
    if not isinstance(expression, str):
        return expression
    text = strip_receiver(expression)
    return _resolve_parts(scan_markers(text), context)


def _resolve_parts(parts: tuple[Segment, ...], context: Any) -> str:
    out: list[str] = []
    for part in parts:
        if isinstance(part, StaticText):
            out.append(part.value)
        else:
            out.append(_resolve_marker(part, context))
    return "".join(out)


def _resolve_marker(marker: Marker, context: Any) -> str:
    path = _resolve_parts(marker.parts, context) if marker.nested else marker.expression
    path = strip_receiver(path.strip())
    value = _find(path, context)
    if value is not _MISSING:
        return to_text(value)
    # Only plain paths keep their marker; other keys come back as bare text
    if _PATH_RE.match(path):
        return f"{MARK_OPEN}{path}{MARK_CLOSE}"
    return path


def format_message(message: str | None, data: Any = None) -> str | None:
    """Fill ``${token}`` placeholders in a locale message from data.

    Messages without data are returned as-is, including None for a
    missing message.
    """
    if message is None or not data:
        return message
    return resolve(message, data)
