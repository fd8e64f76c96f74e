"""Tests for the default HTML minifier."""

from __future__ import annotations

import pytest

from webtmpl.loader import LoaderConfig
from webtmpl.minify import HtmlMinifier, MinifyOptions


def minify(markup: str, **options) -> str:
    return HtmlMinifier().minify(markup, MinifyOptions(**options))


class TestComments:
    def test_removed(self):
        assert minify("<p>a</p><!-- note --><p>b</p>") == "<p>a</p><p>b</p>"

    def test_kept_when_disabled(self):
        markup = "<p>a</p><!-- note -->"
        assert minify(markup, remove_comments=False) == markup

    def test_comment_looking_text_in_script_kept(self):
        markup = "<script>var s = '<!-- x -->';</script>"
        assert minify(markup) == markup


class TestWhitespace:
    def test_conservative_collapse(self):
        markup = "<div>\n   <p>a   b</p>\n</div>"
        assert minify(markup) == "<div> <p>a b</p> </div>"

    def test_aggressive_collapse_trims_block_edges(self):
        markup = "<div>\n   <p>a   b</p>\n</div>"
        assert minify(markup, conservative_collapse=False) == "<div><p>a b</p></div>"

    def test_aggressive_collapse_keeps_inline_spacing(self):
        markup = "<p>a <b>x</b> c</p>"
        assert minify(markup, conservative_collapse=False) == "<p>a <b>x</b> c</p>"

    def test_disabled(self):
        markup = "<p>a \n\n b</p>"
        assert minify(markup, collapse_whitespace=False) == markup

    @pytest.mark.parametrize("tag", ["pre", "textarea"])
    def test_preformatted_content_untouched(self, tag):
        markup = f"<{tag}>  a\n    b  </{tag}>"
        assert minify(markup) == markup

    def test_stray_lt_in_text(self):
        assert minify("<p>1 < 2</p>") == "<p>1 < 2</p>"


class TestTags:
    def test_short_doctype(self):
        markup = '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Strict//EN"><p>x</p>'
        assert minify(markup) == "<!doctype html><p>x</p>"

    def test_long_doctype_kept_when_disabled(self):
        markup = "<!DOCTYPE html><p>x</p>"
        assert minify(markup, use_short_doctype=False) == markup

    def test_script_type_removed(self):
        markup = '<script type="text/javascript">go();</script>'
        assert minify(markup) == "<script>go();</script>"

    def test_module_script_type_kept(self):
        markup = '<script type="module">go();</script>'
        assert minify(markup) == markup

    def test_style_type_removed(self):
        assert minify('<style type="text/css">p{}</style>') == "<style>p{}</style>"

    def test_link_type_removed(self):
        markup = '<link rel="stylesheet" type="text/css" href="a.css">'
        assert minify(markup) == '<link rel="stylesheet" href="a.css">'

    def test_type_kept_when_disabled(self):
        markup = '<script type="text/javascript">go();</script>'
        assert minify(markup, remove_script_type_attributes=False) == markup

    def test_closing_slash_kept(self):
        assert minify("<br />") == "<br/>"

    def test_closing_slash_dropped(self):
        assert minify("<br />", keep_closing_slash=False) == "<br>"

    def test_boolean_attribute(self):
        assert minify("<input  disabled   name=q>") == "<input disabled name=q>"


class TestCdata:
    def test_cdata_unwrapped_in_script(self):
        markup = "<script>//<![CDATA[\nvar a;\n//]]></script>"
        assert minify(markup) == "<script>\nvar a;\n</script>"

    def test_comment_unwrapped_in_script(self):
        markup = "<script><!--\nvar a;\n--></script>"
        assert minify(markup) == "<script>\nvar a;</script>"

    def test_wrappers_kept_when_disabled(self):
        markup = "<script>//<![CDATA[\nvar a;\n//]]></script>"
        assert minify(markup, remove_cdata_sections_from_cdata=False) == markup


class TestMarkers:
    def test_marker_in_text_untouched(self):
        assert minify("<p>  ${ a < b }  </p>") == "<p> ${ a < b } </p>"

    def test_marker_whitespace_kept(self):
        markup = "<p>${'a    b'}</p>"
        assert minify(markup) == markup

    def test_marker_in_attribute(self):
        markup = '<img   alt="${this.alt}">'
        assert minify(markup) == '<img alt="${this.alt}">'

    def test_marker_with_quotes_and_gt(self):
        markup = """<p title='${"x" if a > b else "y"}'>z</p>"""
        assert minify(markup) == markup


class TestOptionsFromConfig:
    def test_subset_copied(self):
        config = LoaderConfig(remove_comments=False, keep_closing_slash=False)
        options = MinifyOptions.from_config(config)
        assert options.remove_comments is False
        assert options.keep_closing_slash is False
        assert options.collapse_whitespace is True
