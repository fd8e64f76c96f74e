"""Stylesheet compilation and inlining of ``<link>`` stylesheets."""

from __future__ import annotations

import logging
import re
import shlex
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from webtmpl.errors import StylesheetCompileError

log = logging.getLogger(__name__)

# <link ... href="x.css|x.scss|x.sass" ...>, optionally with ?query or #fragment
_LINK_RE = re.compile(
    r"""<link\b[^>]*?\bhref\s*=\s*(?P<q>["'])"""
    r"""(?P<href>[^"'?#]+?\.(?:css|s[ac]ss)(?:[?#][^"']*)?)(?P=q)[^>]*>""",
    re.IGNORECASE,
)


class StylesheetCompiler(Protocol):
    def __call__(self, path: Path) -> str: ...


@dataclass
class CssFileCompiler:
    """Plain CSS needs no compilation; read the file."""

    encoding: str = "utf-8"

    def __call__(self, path: Path) -> str:
        try:
            return path.read_text(encoding=self.encoding)
        except OSError as exc:
            raise StylesheetCompileError(f"cannot read stylesheet: {exc}", path) from None


@dataclass
class SassCompiler:
    """Compile SCSS/Sass through the ``sass`` command-line compiler."""

    command: str = "sass"
    args: list[str] = field(default_factory=lambda: ["--no-source-map", "--style=compressed"])
    timeout: float = 30.0

    def __call__(self, path: Path) -> str:
        argv = [*shlex.split(self.command), *self.args, str(path)]
        if shutil.which(argv[0]) is None:
            raise StylesheetCompileError(
                f"stylesheet compiler '{argv[0]}' not found",
                path,
            )

        log.debug("running %s", " ".join(argv))
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise StylesheetCompileError(
                f"stylesheet compiler timed out after {self.timeout}s",
                path,
            ) from None

        if result.returncode != 0:
            raise StylesheetCompileError(
                f"stylesheet compiler failed (exit {result.returncode})",
                path,
                result.stderr.strip(),
            )

        return result.stdout


@dataclass
class DefaultStylesheetCompiler:
    """Dispatch on file extension: Sass sources to SassCompiler, the rest read as CSS."""

    sass: SassCompiler = field(default_factory=SassCompiler)
    css: CssFileCompiler = field(default_factory=CssFileCompiler)

    def __call__(self, path: Path) -> str:
        if path.suffix.lower() in (".scss", ".sass"):
            return self.sass(path)
        return self.css(path)


@dataclass(frozen=True, slots=True)
class StylesheetLink:
    """A ``<link>`` tag pointing at a stylesheet."""

    tag: str
    href: str
    start: int


def find_stylesheet_links(markup: str) -> list[StylesheetLink]:
    """Return every stylesheet ``<link>`` tag in markup, in source order."""
    return [
        StylesheetLink(m.group(0), m.group("href"), m.start())
        for m in _LINK_RE.finditer(markup)
    ]


def inline_stylesheets(
    markup: str,
    context_dir: Path,
    compiler: StylesheetCompiler,
) -> tuple[str, list[str]]:
    """Compile linked local stylesheets and drop their ``<link>`` tags.

    Links whose href does not resolve to an existing file are kept as
    written. Compiler errors propagate unchanged.
    """
    compiled: list[str] = []
    for link in find_stylesheet_links(markup):
        href = link.href.split("?", 1)[0].split("#", 1)[0]
        path = (context_dir / href.lstrip("/")).resolve()
        if not path.is_file():
            log.debug("stylesheet %s not found, link kept", path)
            continue
        compiled.append(compiler(path))
        markup = markup.replace(link.tag, "", 1)
        log.debug("inlined stylesheet %s", path)
    return markup, compiled


def style_block(compiled: list[str]) -> str:
    """Wrap compiled CSS in a ``<style>`` element; empty when there is none."""
    css = "\n".join(text.strip() for text in compiled if text.strip())
    if not css:
        return ""
    return f"<style>{css}</style>"
