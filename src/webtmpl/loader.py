"""Compilation pipeline: markup with ``${...}`` markers in, template module source out."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

from webtmpl.attrs import attribute_predicate, rewrite_matches, scan_attributes
from webtmpl.codegen import build_module, check_expressions, compile_literal
from webtmpl.errors import ConfigError
from webtmpl.markers import unwrap_marker
from webtmpl.minify import HtmlMinifier, Minifier, MinifyOptions
from webtmpl.references import (
    AssetResolver,
    ReferenceResolver,
    is_url_request,
    new_placeholder,
    protect_references,
    restore_references,
)
from webtmpl.strings import escape_static
from webtmpl.stylesheets import DefaultStylesheetCompiler, StylesheetCompiler, inline_stylesheets, style_block

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LoaderConfig:
    """Compilation options. Defaults favour the smallest output."""

    minimize: bool = True
    remove_comments: bool = True
    collapse_whitespace: bool = True
    attributes: tuple[str, ...] = ()
    interpolate: bool = False
    url_root: str = ""
    remove_comments_from_cdata: bool = True
    remove_cdata_sections_from_cdata: bool = True
    conservative_collapse: bool = True
    use_short_doctype: bool = True
    keep_closing_slash: bool = True
    remove_script_type_attributes: bool = True
    remove_style_type_attributes: bool = True
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any], base: LoaderConfig | None = None) -> LoaderConfig:
        """Build a config from camelCase (``removeComments``) or snake_case keys.

        Unrecognised keys are kept in ``extra``; values of the wrong type
        raise ConfigError.
        """
        base = base or cls()
        known = {f.name: f for f in fields(cls) if f.name != "extra"}
        changes: dict[str, Any] = {}
        extra = dict(base.extra)
        for key, value in options.items():
            name = _OPTION_NAMES.get(key, key)
            if name not in known:
                extra[key] = value
                continue
            changes[name] = _coerce(key, name, value)
        return replace(base, **changes, extra=extra)


# External option names, as used in configuration files
_OPTION_NAMES = {
    "minimize": "minimize",
    "removeComments": "remove_comments",
    "collapseWhitespace": "collapse_whitespace",
    "attributes": "attributes",
    "attrs": "attributes",
    "interpolate": "interpolate",
    "urlRoot": "url_root",
    "removeCommentsFromCDATA": "remove_comments_from_cdata",
    "removeCDATASectionsFromCDATA": "remove_cdata_sections_from_cdata",
    "conservativeCollapse": "conservative_collapse",
    "useShortDoctype": "use_short_doctype",
    "keepClosingSlash": "keep_closing_slash",
    "removeScriptTypeAttributes": "remove_script_type_attributes",
    "removeStyleTypeAttributes": "remove_style_type_attributes",
}


def _coerce(key: str, name: str, value: Any) -> Any:
    if name == "attributes":
        if isinstance(value, str):
            return tuple(v for v in value.replace(",", " ").split() if v)
        if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
            return tuple(value)
        raise ConfigError(f"option '{key}' must be a list of strings")
    if name == "url_root":
        if not isinstance(value, str):
            raise ConfigError(f"option '{key}' must be a string")
        return value
    if not isinstance(value, bool):
        raise ConfigError(f"option '{key}' must be true or false")
    return value


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def compile_template(
    source: str,
    config: LoaderConfig | None = None,
    *,
    context_dir: Path | str | None = None,
    filename: str = "template.html",
    name: str = "template",
    minifier: Minifier | None = None,
    stylesheet_compiler: StylesheetCompiler | None = None,
    reference_resolver: ReferenceResolver | None = None,
    token_factory: Callable[[], str] = new_placeholder,
) -> str:
    """Compile markup source into Python module source defining ``name(p=None)``.

    Raises TemplateSyntaxError for malformed markers and lets
    StylesheetCompileError from the stylesheet compiler propagate.
    """
    config = config or LoaderConfig()
    context_dir = Path(context_dir) if context_dir is not None else Path(".")
    check_expressions(source, filename)

    # Resource references, protected from the minifier by placeholders
    matches = scan_attributes(source, attribute_predicate(config.attributes))
    requests = [m for m in matches if is_url_request(m.value, config.url_root or None)]
    protected = protect_references(source, requests, token_factory)
    log.debug("%s: %d of %d references protected", filename, len(requests), len(matches))

    markup, compiled_css = inline_stylesheets(
        protected.text,
        context_dir,
        stylesheet_compiler or DefaultStylesheetCompiler(),
    )
    markup = rewrite_event_attributes(markup)

    if config.minimize:
        markup = (minifier or HtmlMinifier()).minify(markup, MinifyOptions.from_config(config))

    resolver = reference_resolver or AssetResolver(context_dir, config.url_root)
    markup = restore_references(markup, protected.tokens, resolver)

    literal = escape_static(style_block(compiled_css)) + escape_static(markup)
    expression = compile_literal(literal)
    log.debug("%s: compiled %d stylesheet(s)", filename, len(compiled_css))
    return build_module(expression, name=name, header=filename)


def rewrite_event_attributes(markup: str) -> str:
    """Unwrap ``on*="${path}"`` to ``on*="path"``.

    Handler attributes then carry bare paths at render time, the one form
    the event binder resolves.
    """
    matches = scan_attributes(markup, lambda tag, attr: attr.startswith("on"))
    edits = []
    for match in matches:
        expression = unwrap_marker(match.value)
        if expression is not None:
            edits.append((match, expression))
    return rewrite_matches(markup, edits)


def compile_file(path: Path | str, config: LoaderConfig | None = None, **kwargs: Any) -> str:
    """Read and compile a template file, resolving references next to it."""
    path = Path(path)
    source = path.read_text(encoding="utf-8")
    kwargs.setdefault("context_dir", path.parent)
    kwargs.setdefault("filename", str(path))
    return compile_template(source, config, **kwargs)


def load_template(
    code: str,
    filename: str = "<template>",
    name: str = "template",
) -> Callable[..., Any]:
    """Execute compiled module source and return its template function."""
    namespace: dict[str, Any] = {"__name__": "webtmpl.compiled", "__file__": filename}
    exec(compile(code, filename, "exec"), namespace)
    return namespace[name]


def render(source: str, props: Any = None, config: LoaderConfig | None = None, **kwargs: Any) -> Any:
    """Compile, load, and call a template in one step."""
    code = compile_template(source, config, **kwargs)
    return load_template(code, kwargs.get("filename", "<template>"))(props)
