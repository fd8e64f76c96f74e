"""Test error messages, position accuracy, and context snippets."""

from pathlib import Path

import pytest

from webtmpl.codegen import check_expressions
from webtmpl.errors import ConfigError, StylesheetCompileError, TemplateSyntaxError, render_report
from webtmpl.markers import scan_markers


class TestErrorPositions:
    def test_first_line(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            check_expressions("abc ${1 +} rest")
        err = exc_info.value
        assert err.position.line == 1
        assert err.position.column == 5
        assert err.position.offset == 4

    def test_error_on_third_line(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            scan_markers("one\ntwo\n   ${open", strict=True)
        err = exc_info.value
        assert err.position.line == 3
        assert err.position.column == 4

    def test_first_bad_marker_reported(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            check_expressions("${ok} ${bad bad} ${worse +}")
        assert exc_info.value.position.column == 7


class TestErrorFormatting:
    def test_format_contains_line(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            check_expressions("<p>some ${1 +} text</p>")
        assert "<p>some ${1 +} text</p>" in exc_info.value.format()

    def test_format_contains_carets_under_marker(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            check_expressions("ab${1 +}")
        lines = exc_info.value.format().splitlines()
        assert lines[-1].endswith("  ^^")
        assert lines[-1].index("^") == lines[-2].index("$")

    def test_format_contains_error_prefix(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            check_expressions("${}")
        assert exc_info.value.format().startswith("error: empty interpolation marker")

    def test_format_contains_position(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            check_expressions("${1 +}")
        assert "template.html:1:1" in exc_info.value.format()

    def test_format_with_custom_filename(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            check_expressions("${1 +}")
        assert "card.html:1:1" in exc_info.value.format("card.html")

    def test_str_is_formatted(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            check_expressions("${1 +}")
        assert str(exc_info.value) == exc_info.value.format()


class TestStylesheetCompileError:
    def test_format_without_stderr(self):
        err = StylesheetCompileError("failed", Path("a.scss"))
        assert err.format() == "error: failed\n  --> a.scss"

    def test_format_with_stderr(self):
        err = StylesheetCompileError("failed", Path("a.scss"), "line 1\nline 2")
        assert err.format().endswith("  | line 1\n  | line 2")


class TestConfigError:
    def test_is_value_error(self):
        assert issubclass(ConfigError, ValueError)


class TestRenderReport:
    def test_header_only(self):
        assert render_report("boom", "x.html:1:1") == "error: boom\n  --> x.html:1:1"

    def test_gutter_aligned_to_widest_label(self):
        report = render_report("boom", "x.html:12:1", [("", ""), ("12", "text")], width=3)
        assert report.splitlines()[1:] == ["   --> x.html:12:1", "   |", "12 | text"]

    def test_multi_digit_line_number(self):
        source = "\n" * 11 + "  ${1 +}"
        with pytest.raises(TemplateSyntaxError) as exc_info:
            check_expressions(source)
        lines = exc_info.value.format().splitlines()
        assert lines[1] == "   --> template.html:12:3"
        assert lines[3] == "12 |   ${1 +}"
        assert lines[4] == "   |   ^^"
