"""Default HTML minifier with interpolation markers protected as custom fragments."""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from webtmpl.markers import Marker, scan_markers

if TYPE_CHECKING:
    from webtmpl.loader import LoaderConfig


@dataclass(frozen=True, slots=True)
class MinifyOptions:
    """Minifier switches; the defaults favour the smallest output."""

    collapse_whitespace: bool = True
    conservative_collapse: bool = True
    remove_comments: bool = True
    remove_comments_from_cdata: bool = True
    remove_cdata_sections_from_cdata: bool = True
    use_short_doctype: bool = True
    keep_closing_slash: bool = True
    remove_script_type_attributes: bool = True
    remove_style_type_attributes: bool = True

    @classmethod
    def from_config(cls, config: LoaderConfig) -> MinifyOptions:
        """Take the minifier subset of a loader configuration."""
        return cls(
            collapse_whitespace=config.collapse_whitespace,
            conservative_collapse=config.conservative_collapse,
            remove_comments=config.remove_comments,
            remove_comments_from_cdata=config.remove_comments_from_cdata,
            remove_cdata_sections_from_cdata=config.remove_cdata_sections_from_cdata,
            use_short_doctype=config.use_short_doctype,
            keep_closing_slash=config.keep_closing_slash,
            remove_script_type_attributes=config.remove_script_type_attributes,
            remove_style_type_attributes=config.remove_style_type_attributes,
        )


class Minifier(Protocol):
    def minify(self, markup: str, options: MinifyOptions) -> str: ...


# ---------------------------------------------------------------------------
# Lexical patterns
# ---------------------------------------------------------------------------

_COMMENT_RE = re.compile(r"<!--.*?-->", re.S)
_CDATA_RE = re.compile(r"<!\[CDATA\[.*?\]\]>", re.S)
_DECL_RE = re.compile(r"<[!?][^>]*>")
_TAG_RE = re.compile(
    r"""<(?P<close>/?)(?P<name>[A-Za-z][\w:.-]*)"""
    r"""(?P<attrs>(?:\s+[^\s"'>/=]+(?:\s*=\s*(?:"[^"]*"|'[^']*'|[^\s"'=<>`]+))?|\s*/(?!>))*)"""
    r"""\s*(?P<slash>/?)>"""
)
_ATTR_RE = re.compile(r"""(?P<name>[^\s"'>/=]+)(?:\s*=\s*(?P<value>"[^"]*"|'[^']*'|[^\s"'=<>`]+))?""")
_WS_RE = re.compile(r"\s+")

# Content of these elements is copied verbatim
_RAW_TEXT = frozenset({"script", "style", "pre", "textarea"})

# Whitespace next to these tags is insignificant when not collapsing conservatively
_BLOCK_TAGS = frozenset(
    {
        "address", "article", "aside", "base", "blockquote", "body", "br", "caption",
        "col", "colgroup", "dd", "details", "dialog", "div", "dl", "dt", "fieldset",
        "figcaption", "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6",
        "head", "header", "hgroup", "hr", "html", "li", "link", "main", "meta", "nav",
        "ol", "optgroup", "option", "p", "pre", "script", "section", "style",
        "summary", "table", "tbody", "td", "template", "tfoot", "th", "thead",
        "title", "tr", "ul",
    }
)  # fmt: skip

_SCRIPT_TYPES = frozenset(
    {"text/javascript", "application/javascript", "text/ecmascript", "application/ecmascript"}
)

_CDATA_WRAP_RE = re.compile(r"^\s*(?://|/\*)?\s*<!\[CDATA\[(.*?)(?://|/\*)?\s*\]\]>\s*(?:\*/)?\s*$", re.S)
_COMMENT_WRAP_RE = re.compile(r"^\s*<!--(.*?)(?://)?\s*-->\s*$", re.S)


@dataclass(frozen=True, slots=True)
class _Token:
    kind: str  # text, comment, cdata, decl, start, end, raw
    text: str
    name: str = ""


class HtmlMinifier:
    """Whitespace, comment and attribute minification over a flat token stream.

    ``${...}`` markers are swapped for opaque fragments before lexing and
    restored afterwards, so expressions (which may contain ``<`` or quotes)
    reach the output byte for byte.
    """

    def minify(self, markup: str, options: MinifyOptions | None = None) -> str:
        options = options or MinifyOptions()
        text, fragments = _protect_fragments(markup)
        tokens = _lex(text)
        out: list[str] = []
        for i, tok in enumerate(tokens):
            out.append(_emit(tokens, i, tok, options))
        result = "".join(out)
        for token, original in fragments.items():
            result = result.replace(token, original)
        return result


def _protect_fragments(markup: str) -> tuple[str, dict[str, str]]:
    fragments: dict[str, str] = {}
    out: list[str] = []
    for segment in scan_markers(markup):
        if isinstance(segment, Marker):
            token = f"~~~TMPLEXPR~~~{secrets.token_hex(8)}~~~"
            while token in markup or token in fragments:
                token = f"~~~TMPLEXPR~~~{secrets.token_hex(8)}~~~"
            fragments[token] = segment.text
            out.append(token)
        else:
            out.append(segment.value)
    return "".join(out), fragments


# ---------------------------------------------------------------------------
# Lexing
# ---------------------------------------------------------------------------


def _lex(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    text_start = 0
    while True:
        lt = text.find("<", pos)
        if lt == -1:
            break
        for kind, pattern in (("comment", _COMMENT_RE), ("cdata", _CDATA_RE), ("decl", _DECL_RE)):
            m = pattern.match(text, lt)
            if m:
                break
        else:
            kind = ""
            m = _TAG_RE.match(text, lt)

        if m is None:
            pos = lt + 1
            continue

        if lt > text_start:
            tokens.append(_Token("text", text[text_start:lt]))

        if kind:
            tokens.append(_Token(kind, m.group(0)))
            pos = text_start = m.end()
            continue

        name = m.group("name").lower()
        if m.group("close"):
            tokens.append(_Token("end", m.group(0), name))
            pos = text_start = m.end()
            continue

        tokens.append(_Token("start", m.group(0), name))
        pos = text_start = m.end()
        if name in _RAW_TEXT and not m.group("slash"):
            close = re.compile(rf"</{re.escape(name)}\s*>", re.I).search(text, pos)
            end = close.start() if close else len(text)
            if end > pos:
                tokens.append(_Token("raw", text[pos:end], name))
            pos = text_start = end

    if text_start < len(text):
        tokens.append(_Token("text", text[text_start:]))
    return tokens


# ---------------------------------------------------------------------------
# Emission
# ---------------------------------------------------------------------------


def _emit(tokens: list[_Token], i: int, tok: _Token, options: MinifyOptions) -> str:
    if tok.kind == "comment":
        return "" if options.remove_comments else tok.text
    if tok.kind == "decl":
        if options.use_short_doctype and tok.text[:9].lower() == "<!doctype":
            return "<!doctype html>"
        return tok.text
    if tok.kind == "start":
        return _emit_start(tok, options)
    if tok.kind == "end":
        return f"</{tok.name}>"
    if tok.kind == "raw":
        return _emit_raw(tok, options)
    if tok.kind == "text":
        return _emit_text(tokens, i, tok.text, options)
    return tok.text


def _emit_start(tok: _Token, options: MinifyOptions) -> str:
    m = _TAG_RE.match(tok.text)
    if m is None:
        return tok.text
    parts = [f"<{m.group('name')}"]
    for attr in _ATTR_RE.finditer(m.group("attrs")):
        name = attr.group("name")
        value = attr.group("value")
        if _drop_type_attribute(tok.name, name, value, options):
            continue
        parts.append(f" {name}" if value is None else f" {name}={value}")
    slash = "/" if m.group("slash") and options.keep_closing_slash else ""
    return "".join(parts) + slash + ">"


def _drop_type_attribute(tag: str, name: str, value: str | None, options: MinifyOptions) -> bool:
    if name.lower() != "type" or value is None:
        return False
    value = value.strip("\"'").strip().lower()
    if tag == "script" and options.remove_script_type_attributes:
        return value in _SCRIPT_TYPES
    if tag in ("style", "link") and options.remove_style_type_attributes:
        return value == "text/css"
    return False


def _emit_raw(tok: _Token, options: MinifyOptions) -> str:
    content = tok.text
    if tok.name not in ("script", "style"):
        return content
    if options.remove_cdata_sections_from_cdata:
        m = _CDATA_WRAP_RE.match(content)
        if m:
            content = m.group(1)
    if options.remove_comments_from_cdata:
        m = _COMMENT_WRAP_RE.match(content)
        if m:
            content = m.group(1)
    return content


def _emit_text(tokens: list[_Token], i: int, text: str, options: MinifyOptions) -> str:
    if not options.collapse_whitespace:
        return text
    text = _WS_RE.sub(" ", text)
    if options.conservative_collapse:
        return text
    if _is_block_boundary(tokens, i - 1, -1):
        text = text.lstrip()
    if _is_block_boundary(tokens, i + 1, 1):
        text = text.rstrip()
    return text


def _is_block_boundary(tokens: list[_Token], idx: int, step: int) -> bool:
    while 0 <= idx < len(tokens) and tokens[idx].kind == "comment":
        idx += step
    if idx < 0 or idx >= len(tokens):
        return True
    tok = tokens[idx]
    return tok.kind in ("start", "end", "decl") and (tok.kind == "decl" or tok.name in _BLOCK_TAGS)
