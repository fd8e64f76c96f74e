"""--debug dump of references and marker segments to stderr."""

from __future__ import annotations

import sys
from typing import TextIO

from webtmpl.attrs import attribute_predicate, scan_attributes
from webtmpl.markers import Marker, Segment, StaticText, scan_markers
from webtmpl.references import is_url_request
from webtmpl.tokens import position_at


def dump_template(
    source: str,
    attributes: tuple[str, ...] = (),
    url_root: str | None = None,
    *,
    file: TextIO = sys.stderr,
) -> None:
    """Print the reference matches and the segment list of *source* to *file*."""
    file.write("References\n")
    for match in scan_attributes(source, attribute_predicate(attributes)):
        pos = position_at(source, match.start)
        kind = "request" if is_url_request(match.value, url_root) else "skipped"
        file.write(f"  {pos.line}:{pos.column} {kind} {match.value!r}\n")

    file.write("Segments\n")
    for segment in scan_markers(source):
        _dump_segment(segment, 1, file)


def _indent(depth: int) -> str:
    return "  " * depth


def _dump_segment(segment: Segment, depth: int, f: TextIO) -> None:
    if isinstance(segment, StaticText):
        f.write(f"{_indent(depth)}Text({segment.value!r})\n")
    elif isinstance(segment, Marker):
        f.write(f"{_indent(depth)}Marker({segment.expression.strip()!r})\n")
        for part in segment.parts:
            if isinstance(part, Marker):
                _dump_segment(part, depth + 1, f)
