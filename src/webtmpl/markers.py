"""Split text into static runs and ``${...}`` interpolation markers.

A marker body is scanned as an expression: quoted strings are skipped
whole, plain ``{``/``}`` pairs are balanced, and a nested ``${`` opens a
child marker. Every marker is produced exactly once, so consumers that
resolve markers innermost-first terminate by construction.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from webtmpl.errors import TemplateSyntaxError
from webtmpl.tokens import position_at

MARK_OPEN = "${"
MARK_CLOSE = "}"

# Deeper ``${`` openings are scanned as plain braces
MAX_NESTING = 64


@dataclass(frozen=True, slots=True)
class StaticText:
    """A run of text outside any marker."""

    value: str
    start: int


@dataclass(frozen=True, slots=True)
class Marker:
    """A ``${...}`` marker; ``parts`` is its body split the same way."""

    expression: str
    parts: tuple[StaticText | Marker, ...]
    start: int
    end: int

    @property
    def text(self) -> str:
        return f"{MARK_OPEN}{self.expression}{MARK_CLOSE}"

    @property
    def nested(self) -> bool:
        return any(isinstance(p, Marker) for p in self.parts)


Segment = StaticText | Marker


class _MarkerScanner:
    """Recursive-descent scanner over marker boundaries."""

    def __init__(self, source: str, strict: bool) -> None:
        self._source = source
        self._strict = strict
        self._pos = 0
        self._depth = 0

    def scan(self) -> tuple[Segment, ...]:
        parts, _ = self._scan_parts(in_marker=False)
        return tuple(parts)

    def _scan_parts(self, in_marker: bool) -> tuple[list[Segment], bool]:
        """Scan until end of input, or the closing brace when inside a marker.

        Returns the parts and whether a closing brace was reached. The
        position is left on the closing brace.
        """
        src = self._source
        parts: list[Segment] = []
        text_start = self._pos
        braces = 0
        while self._pos < len(src):
            ch = src[self._pos]
            if ch == "$" and src.startswith(MARK_OPEN, self._pos) and self._depth < MAX_NESTING:
                _append_static(parts, src[text_start : self._pos], text_start)
                self._scan_marker(parts)
                text_start = self._pos
                continue
            if in_marker:
                if ch in "'\"":
                    self._skip_string()
                    continue
                if ch == "{":
                    braces += 1
                elif ch == "}":
                    if braces == 0:
                        _append_static(parts, src[text_start : self._pos], text_start)
                        return parts, True
                    braces -= 1
            self._pos += 1
        _append_static(parts, src[text_start : self._pos], text_start)
        return parts, False

    def _scan_marker(self, parts: list[Segment]) -> None:
        src = self._source
        start = self._pos
        self._pos += len(MARK_OPEN)
        body_start = self._pos
        self._depth += 1
        try:
            inner, closed = self._scan_parts(in_marker=True)
        finally:
            self._depth -= 1

        if closed:
            expression = src[body_start : self._pos]
            self._pos += len(MARK_CLOSE)
            parts.append(Marker(expression, tuple(inner), start, self._pos))
            return

        if self._strict:
            raise TemplateSyntaxError(
                "unterminated interpolation marker",
                position_at(src, start),
                src,
            )
        # Lenient: the opening is plain text, its body keeps any complete markers
        _append_static(parts, MARK_OPEN, start)
        for part in inner:
            if isinstance(part, StaticText):
                _append_static(parts, part.value, part.start)
            else:
                parts.append(part)

    def _skip_string(self) -> None:
        """Advance past a quoted string literal inside an expression."""
        src = self._source
        quote = src[self._pos]
        if src.startswith(quote * 3, self._pos):
            self._pos += 3
            end = src.find(quote * 3, self._pos)
            while end != -1 and _escaped(src, end):
                end = src.find(quote * 3, end + 1)
            self._pos = len(src) if end == -1 else end + 3
            return

        self._pos += 1
        while self._pos < len(src):
            ch = src[self._pos]
            if ch == "\\":
                self._pos += 2
                continue
            self._pos += 1
            if ch == quote:
                return
        self._pos = len(src)


def _escaped(src: str, idx: int) -> bool:
    """Return True if src[idx] is preceded by an odd number of backslashes."""
    count = 0
    idx -= 1
    while idx >= 0 and src[idx] == "\\":
        count += 1
        idx -= 1
    return count % 2 == 1


def _append_static(parts: list[Segment], value: str, start: int) -> None:
    if not value:
        return
    if parts and isinstance(parts[-1], StaticText):
        prev = parts[-1]
        parts[-1] = StaticText(prev.value + value, prev.start)
    else:
        parts.append(StaticText(value, start))


def scan_markers(source: str, *, strict: bool = False) -> tuple[Segment, ...]:
    """Split source into static text and top-level markers.

    With ``strict`` an unterminated marker raises TemplateSyntaxError;
    otherwise its opening is kept as plain text.
    """
    return _MarkerScanner(source, strict).scan()


def has_marker(source: str) -> bool:
    """Return True if source contains at least one complete marker."""
    if MARK_OPEN not in source:
        return False
    return any(isinstance(s, Marker) for s in scan_markers(source))


def unwrap_marker(value: str) -> str | None:
    """Return the expression of a value that is exactly one marker, else None."""
    segments = scan_markers(value.strip())
    if len(segments) == 1 and isinstance(segments[0], Marker):
        return segments[0].expression.strip()
    return None


def map_static(source: str, fn: Callable[[str], str], *, strict: bool = False) -> str:
    """Apply fn to every static run, copying markers through untouched."""
    out: list[str] = []
    for segment in scan_markers(source, strict=strict):
        if isinstance(segment, StaticText):
            out.append(fn(segment.value))
        else:
            out.append(segment.text)
    return "".join(out)
