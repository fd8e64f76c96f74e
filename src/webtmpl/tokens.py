"""Source positions, scan results, and character classification helpers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Position:
    """Source position, 1-based line and column, 0-based character offset."""

    line: int
    column: int
    offset: int


@dataclass(frozen=True, slots=True)
class ReferenceMatch:
    """An attribute value located in markup, addressed by absolute offset."""

    start: int
    length: int
    value: str

    @property
    def end(self) -> int:
        return self.start + self.length


def position_at(source: str, offset: int) -> Position:
    """Convert a character offset into a line/column Position."""
    offset = max(0, min(offset, len(source)))
    line = source.count("\n", 0, offset) + 1
    line_start = source.rfind("\n", 0, offset) + 1
    return Position(line, offset - line_start + 1, offset)


# Tag names may contain '-' and ':' (custom elements, namespaced tags)
_NAME_SPECIAL = frozenset("-:")


def is_tag_start_char(ch: str) -> bool:
    """Return True if ch may open a tag name."""
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def is_name_char(ch: str) -> bool:
    """Return True if ch may appear in a tag name."""
    return is_tag_start_char(ch) or ("0" <= ch <= "9") or ch in _NAME_SPECIAL


# Characters that end an attribute name inside a tag
_ATTR_NAME_STOP = frozenset(" \t\n\r\f=>/\"'")


def is_attr_name_char(ch: str) -> bool:
    """Return True if ch may appear in an attribute name."""
    return ch not in _ATTR_NAME_STOP


def is_space(ch: str) -> bool:
    """Return True for markup whitespace."""
    return ch in " \t\n\r\f"
