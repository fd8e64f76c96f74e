"""Helpers for query strings, data attributes and HTML text."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import quote, unquote

ParamParser = Callable[[str], Any]

# Characters left alone when encoding a whole URL
_URL_SAFE = ";,/?:@&=+$#!~*'()"

_HTML_ENCODABLE_RE = re.compile(r"[\u00a0-\u9999<>]")
_PAIRED_TAG_RE = re.compile(r"<([^>]+?)([^>]*?)>(.*?)</\1>", re.IGNORECASE)
_SELF_CLOSING_RE = re.compile(r"(<([^>]+)/>)", re.IGNORECASE)


def array_parser(value: Any, key: str, params: dict[str, Any]) -> Any:
    """Merge value into whatever params already holds for key.

    A repeated key turns into a list of its values, in order.
    """
    if key not in params:
        return value
    current = params[key]
    if not isinstance(current, list):
        current = [current]
    current.append(value)
    return current


def to_params(url: str, parsers: Mapping[str, ParamParser] | None = None) -> dict[str, Any]:
    """Decode the query part of url into a dict.

    Pairs that are not exactly ``key=value`` are skipped. ``parsers`` maps a
    key to a callable that converts each of its values, e.g. ``int``.

    >>> to_params("?foo=bar&n=1&n=2")
    {'foo': 'bar', 'n': ['1', '2']}
    """
    parsers = parsers or {}
    parts = url.split("?")
    query = parts[1] if len(parts) > 1 else ""
    params: dict[str, Any] = {}
    for pair in query.split("&"):
        pieces = pair.split("=")
        if len(pieces) != 2:
            continue
        key, value = unquote(pieces[0]), unquote(pieces[1])
        parser = parsers.get(key)
        if parser is not None:
            value = parser(value)
        params[key] = array_parser(value, key, params)
    return params


def to_search(options: Mapping[str, Any]) -> str:
    """Encode options as a ``?key=value&...`` query string.

    Falsy values are left out; list values repeat their key.
    """
    pairs: list[str] = []
    for key, value in options.items():
        if not value:
            continue
        values = value if isinstance(value, (list, tuple)) else [value]
        pairs.extend(f"{key}={_to_js_text(v)}" for v in values)
    return quote("?" + "&".join(pairs), safe=_URL_SAFE)


def _to_js_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def prefix_keys(obj: Mapping[str, Any] | list[Any], prefix: str) -> dict[str, Any]:
    """Return a new dict with prefix added to every key (list indexes for lists)."""
    if isinstance(obj, list):
        return {f"{prefix}{i}": value for i, value in enumerate(obj)}
    return {f"{prefix}{key}": value for key, value in obj.items()}


def to_data_attrs(obj: Mapping[str, Any] | list[Any]) -> dict[str, Any]:
    return prefix_keys(obj, "data-")


def encode_html(text: str = "") -> str:
    """Replace ``<``, ``>`` and non-ASCII characters up to U+9999 with numeric entities."""
    return _HTML_ENCODABLE_RE.sub(lambda m: f"&#{ord(m.group(0))};", text or "")


def should_encode(text: str | None) -> str:
    """Return the text left after removing complete elements, stripped.

    An empty result means the value is markup and should not be encoded.
    """
    text = _PAIRED_TAG_RE.sub("", text or "")
    return _SELF_CLOSING_RE.sub("", text).strip()


def to_lower_map(obj: Any = None) -> Any:
    """Lowercase string values and mapping keys, recursively."""
    if obj is None:
        return {}
    if isinstance(obj, list):
        return [to_lower_map(item) for item in obj]
    if isinstance(obj, str):
        return obj.lower()
    if isinstance(obj, Mapping):
        return {str(key).lower(): to_lower_map(value) for key, value in obj.items()}
    return obj
