"""Tests for stylesheet discovery, compilation and inlining."""

from __future__ import annotations

from pathlib import Path

import pytest

from webtmpl.errors import StylesheetCompileError
from webtmpl.stylesheets import (
    CssFileCompiler,
    DefaultStylesheetCompiler,
    SassCompiler,
    find_stylesheet_links,
    inline_stylesheets,
    style_block,
)

from .conftest import make_script


class TestFindLinks:
    def test_css_scss_sass(self) -> None:
        markup = (
            '<link rel="stylesheet" href="a.css">'
            "<link href='b.scss' rel=stylesheet>"
            '<link href="c.sass">'
        )
        assert [link.href for link in find_stylesheet_links(markup)] == ["a.css", "b.scss", "c.sass"]

    def test_other_links_ignored(self) -> None:
        markup = '<link rel="icon" href="favicon.ico"><a href="x.css">x</a>'
        assert find_stylesheet_links(markup) == []

    def test_tag_text_and_offset(self) -> None:
        markup = '<p>x</p><link href="a.css">'
        (link,) = find_stylesheet_links(markup)
        assert link.tag == '<link href="a.css">'
        assert link.start == 8


class TestCssFileCompiler:
    def test_reads_file(self, tmp_path: Path) -> None:
        path = tmp_path / "a.css"
        path.write_text("p { color: red }")
        assert CssFileCompiler()(path) == "p { color: red }"

    def test_unreadable_raises(self, tmp_path: Path) -> None:
        with pytest.raises(StylesheetCompileError, match="cannot read"):
            CssFileCompiler()(tmp_path / "missing.css")


class TestSassCompiler:
    def test_stdout_is_css(self, tmp_path: Path) -> None:
        script = make_script(tmp_path / "bin" / "fakesass", 'echo "compiled:$3"')
        src = tmp_path / "a.scss"
        src.write_text("$c: red;")
        result = SassCompiler(command=str(script))(src)
        assert result.strip() == f"compiled:{src}"

    def test_nonzero_exit_raises_with_stderr(self, tmp_path: Path) -> None:
        script = make_script(tmp_path / "fakesass", 'echo "Error: expected ;" >&2\nexit 65')
        src = tmp_path / "bad.scss"
        src.write_text("p {")
        with pytest.raises(StylesheetCompileError) as exc_info:
            SassCompiler(command=str(script))(src)
        err = exc_info.value
        assert "exit 65" in err.message
        assert "expected ;" in err.stderr
        assert err.path == src

    def test_timeout_raises(self, tmp_path: Path) -> None:
        script = make_script(tmp_path / "slowsass", "exec sleep 5")
        src = tmp_path / "a.scss"
        src.write_text("")
        with pytest.raises(StylesheetCompileError, match="timed out"):
            SassCompiler(command=str(script), timeout=0.2)(src)

    def test_missing_executable_raises(self, tmp_path: Path) -> None:
        src = tmp_path / "a.scss"
        src.write_text("")
        with pytest.raises(StylesheetCompileError, match="not found"):
            SassCompiler(command=str(tmp_path / "no-such-sass"))(src)


class TestDefaultCompiler:
    def test_dispatch_by_suffix(self, tmp_path: Path) -> None:
        script = make_script(tmp_path / "fakesass", 'echo "from-sass"')
        compiler = DefaultStylesheetCompiler(sass=SassCompiler(command=str(script)))
        css = tmp_path / "a.css"
        css.write_text("plain")
        scss = tmp_path / "b.scss"
        scss.write_text("")
        assert compiler(css) == "plain"
        assert compiler(scss).strip() == "from-sass"


class TestInlineStylesheets:
    def test_existing_file_inlined(self, tmp_path: Path) -> None:
        (tmp_path / "a.css").write_text("p{color:red}")
        markup, compiled = inline_stylesheets(
            '<link rel="stylesheet" href="a.css"><p>x</p>', tmp_path, CssFileCompiler()
        )
        assert markup == "<p>x</p>"
        assert compiled == ["p{color:red}"]

    def test_missing_file_keeps_link(self, tmp_path: Path) -> None:
        source = '<link rel="stylesheet" href="nope.css"><p>x</p>'
        markup, compiled = inline_stylesheets(source, tmp_path, CssFileCompiler())
        assert markup == source
        assert compiled == []

    def test_compiler_receives_absolute_path(self, tmp_path: Path) -> None:
        (tmp_path / "styles").mkdir()
        (tmp_path / "styles" / "a.css").write_text("")
        seen: list[Path] = []

        def compiler(path: Path) -> str:
            seen.append(path)
            return "x"

        inline_stylesheets('<link href="styles/a.css?v=1">', tmp_path, compiler)
        assert seen == [(tmp_path / "styles" / "a.css").resolve()]
        assert seen[0].is_absolute()

    def test_compiler_error_propagates(self, tmp_path: Path) -> None:
        (tmp_path / "a.css").write_text("")

        def compiler(path: Path) -> str:
            raise StylesheetCompileError("boom", path)

        with pytest.raises(StylesheetCompileError, match="boom"):
            inline_stylesheets('<link href="a.css">', tmp_path, compiler)

    def test_order_preserved(self, tmp_path: Path) -> None:
        (tmp_path / "a.css").write_text("A")
        (tmp_path / "b.css").write_text("B")
        _, compiled = inline_stylesheets(
            '<link href="b.css"><link href="a.css">', tmp_path, CssFileCompiler()
        )
        assert compiled == ["B", "A"]


class TestStyleBlock:
    def test_wraps_css(self) -> None:
        assert style_block(["a{}", "b{}"]) == "<style>a{}\nb{}</style>"

    def test_empty(self) -> None:
        assert style_block([]) == ""
        assert style_block(["  ", ""]) == ""
