"""Locate attribute values in raw markup text."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from enum import Enum, auto

from webtmpl.tokens import (
    ReferenceMatch,
    is_attr_name_char,
    is_name_char,
    is_space,
    is_tag_start_char,
)

AttrPredicate = Callable[[str, str], bool]


class _State(Enum):
    OUTSIDE = auto()
    INSIDE = auto()


class AttributeScanner:
    """Two-state scanner over markup: outside tags, and inside an open tag.

    Every step consumes at least one character, so the scan is linear in the
    input length. Ill-formed regions (unterminated comments, quotes, tags)
    end matching instead of raising.
    """

    def __init__(self, source: str, predicate: AttrPredicate) -> None:
        self._source = source
        self._predicate = predicate
        self._pos = 0
        self._state = _State.OUTSIDE
        self._current_tag = ""
        self._results: list[ReferenceMatch] = []

    def scan(self) -> list[ReferenceMatch]:
        """Scan the full source and return matches in source order."""
        while self._pos < len(self._source):
            if self._state == _State.OUTSIDE:
                self._scan_outside()
            else:
                self._scan_inside()
        return self._results

    # ------------------------------------------------------------------
    # Outside tags
    # ------------------------------------------------------------------

    def _scan_outside(self) -> None:
        src = self._source
        lt = src.find("<", self._pos)
        if lt == -1:
            self._pos = len(src)
            return
        self._pos = lt

        if src.startswith("<!--", lt):
            self._skip_past("-->", lt + 4)
            return

        if src.startswith("<![CDATA[", lt):
            self._skip_past("]]>", lt + 9)
            return

        nxt = src[lt + 1 : lt + 2]

        # <!doctype>, <?xml?> and closing tags carry no attributes of interest
        if nxt in ("!", "?", "/"):
            self._skip_past(">", lt + 2)
            return

        if nxt and is_tag_start_char(nxt):
            start = lt + 1
            end = start
            while end < len(src) and is_name_char(src[end]):
                end += 1
            self._current_tag = src[start:end].lower()
            self._pos = end
            self._state = _State.INSIDE
            return

        # Stray '<' in text
        self._pos = lt + 1

    def _skip_past(self, terminator: str, search_from: int) -> None:
        end = self._source.find(terminator, search_from)
        if end == -1:
            self._pos = len(self._source)
        else:
            self._pos = end + len(terminator)

    # ------------------------------------------------------------------
    # Inside a tag
    # ------------------------------------------------------------------

    def _scan_inside(self) -> None:
        src = self._source
        ch = src[self._pos]

        if ch == ">":
            self._pos += 1
            self._state = _State.OUTSIDE
            return

        if is_space(ch):
            while self._pos < len(src) and is_space(src[self._pos]):
                self._pos += 1
            return

        if is_attr_name_char(ch):
            self._scan_attribute()
            return

        # '/', '=' and stray quotes between attributes
        self._pos += 1

    def _scan_attribute(self) -> None:
        src = self._source
        name_start = self._pos
        while self._pos < len(src) and is_attr_name_char(src[self._pos]):
            self._pos += 1
        name = src[name_start : self._pos]

        cursor = self._skip_ws(self._pos)
        if cursor >= len(src) or src[cursor] != "=":
            # Boolean attribute
            return
        cursor = self._skip_ws(cursor + 1)
        if cursor >= len(src):
            self._pos = cursor
            return

        quote = src[cursor]
        if quote in "\"'":
            value_start = cursor + 1
            close = src.find(quote, value_start)
            if close == -1:
                # Unterminated quote: nothing after this point is well-formed
                self._pos = len(src)
                return
            self._pos = close + 1
        else:
            value_start = cursor
            close = cursor
            while close < len(src) and not is_space(src[close]) and src[close] != ">":
                close += 1
            self._pos = close
            if close == value_start:
                return

        if self._predicate(self._current_tag, name.lower()):
            self._results.append(
                ReferenceMatch(value_start, close - value_start, src[value_start:close])
            )

    def _skip_ws(self, idx: int) -> int:
        src = self._source
        while idx < len(src) and is_space(src[idx]):
            idx += 1
        return idx


def scan_attributes(source: str, predicate: AttrPredicate) -> list[ReferenceMatch]:
    """Return every attribute value in source accepted by predicate."""
    return AttributeScanner(source, predicate).scan()


def attribute_predicate(attributes: Iterable[str]) -> AttrPredicate:
    """Build a predicate from ``tag:attr`` entries and ``:attr`` wildcards."""
    exact: set[str] = set()
    wildcard: set[str] = set()
    for entry in attributes:
        entry = entry.strip().lower()
        if entry.startswith(":"):
            wildcard.add(entry[1:])
        elif entry:
            exact.add(entry)

    def predicate(tag: str, attr: str) -> bool:
        return attr in wildcard or f"{tag}:{attr}" in exact

    return predicate


def rewrite_matches(source: str, edits: Iterable[tuple[ReferenceMatch, str]]) -> str:
    """Replace each matched span with new text.

    Spans are applied from the highest offset down, so offsets computed on
    the original source stay valid for every edit.
    """
    pieces: list[str] = []
    tail = len(source)
    for match, replacement in sorted(edits, key=lambda e: e[0].start, reverse=True):
        if match.end > tail:
            raise ValueError(f"overlapping edit at offset {match.start}")
        pieces.append(source[match.end : tail])
        pieces.append(replacement)
        tail = match.start
    pieces.append(source[:tail])
    pieces.reverse()
    return "".join(pieces)
