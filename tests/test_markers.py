"""Tests for the interpolation marker scanner."""

from __future__ import annotations

import pytest

from webtmpl.errors import TemplateSyntaxError
from webtmpl.markers import (
    MAX_NESTING,
    Marker,
    StaticText,
    has_marker,
    map_static,
    scan_markers,
    unwrap_marker,
)

from .conftest import marker_expressions, static_values


class TestScanMarkers:
    def test_plain_text(self):
        segments = scan_markers("hello world")
        assert segments == (StaticText("hello world", 0),)

    def test_empty_source(self):
        assert scan_markers("") == ()

    def test_single_marker(self):
        segments = scan_markers("a ${this.b} c")
        assert static_values(segments) == ["a ", " c"]
        assert marker_expressions(segments) == ["this.b"]

    def test_marker_offsets(self):
        source = "ab${x}cd"
        marker = scan_markers(source)[1]
        assert isinstance(marker, Marker)
        assert marker.start == 2
        assert marker.end == 6
        assert source[marker.start : marker.end] == "${x}"

    def test_marker_text_round_trips(self):
        marker = scan_markers("${ a + b }")[0]
        assert marker.text == "${ a + b }"

    def test_adjacent_markers(self):
        segments = scan_markers("${a}${b}")
        assert marker_expressions(segments) == ["a", "b"]

    def test_braces_balanced_inside_marker(self):
        segments = scan_markers("${ {'k': 1}['k'] } tail")
        assert marker_expressions(segments) == [" {'k': 1}['k'] "]
        assert static_values(segments) == [" tail"]

    def test_closing_brace_in_string_literal(self):
        segments = scan_markers('${ "}" + x }!')
        assert marker_expressions(segments) == [' "}" + x ']
        assert static_values(segments) == ["!"]

    def test_escaped_quote_in_string_literal(self):
        segments = scan_markers(r'${ "a\"}" }')
        assert marker_expressions(segments) == [r' "a\"}" ']

    def test_triple_quoted_string(self):
        segments = scan_markers('${ """}""" }')
        assert marker_expressions(segments) == [' """}""" ']

    def test_dollar_without_brace_is_text(self):
        assert scan_markers("costs $5") == (StaticText("costs $5", 0),)

    def test_brace_outside_marker_is_text(self):
        assert scan_markers("a } b { c") == (StaticText("a } b { c", 0),)


class TestNestedMarkers:
    def test_nested_marker_parts(self):
        (marker,) = scan_markers("${a.${b}}")
        assert marker.nested
        assert marker.expression == "a.${b}"
        inner = [p for p in marker.parts if isinstance(p, Marker)]
        assert [m.expression for m in inner] == ["b"]

    def test_flat_marker_not_nested(self):
        (marker,) = scan_markers("${a.b}")
        assert not marker.nested

    def test_deep_nesting_terminates(self):
        source = "${" * (MAX_NESTING + 10) + "x" + "}" * (MAX_NESTING + 10)
        segments = scan_markers(source)
        assert len(segments) == 1


class TestUnterminated:
    def test_lenient_keeps_opening_as_text(self):
        segments = scan_markers("a ${b")
        assert segments == (StaticText("a ${b", 0),)

    def test_lenient_keeps_complete_inner_marker(self):
        segments = scan_markers("${a ${b}")
        assert marker_expressions(segments) == ["b"]

    def test_strict_raises(self):
        with pytest.raises(TemplateSyntaxError, match="unterminated") as exc_info:
            scan_markers("line\n  ${oops", strict=True)
        assert exc_info.value.position.line == 2
        assert exc_info.value.position.column == 3

    def test_unterminated_string_inside_marker(self):
        with pytest.raises(TemplateSyntaxError):
            scan_markers('${ "abc }', strict=True)


class TestHelpers:
    def test_has_marker(self):
        assert has_marker("x ${y}")
        assert not has_marker("x $y")
        assert not has_marker("x ${y")

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("${this.go}", "this.go"),
            ("  ${ this.go }  ", "this.go"),
            ("this.go", None),
            ("${a}${b}", None),
            ("x${a}", None),
        ],
    )
    def test_unwrap_marker(self, value, expected):
        assert unwrap_marker(value) == expected

    def test_map_static_leaves_markers(self):
        result = map_static("ab${c}de", str.upper)
        assert result == "AB${c}DE"
