"""Shared test fixtures and helpers."""

from __future__ import annotations

import itertools
import stat
from pathlib import Path

import pytest

from webtmpl.loader import LoaderConfig, compile_template, load_template
from webtmpl.markers import Marker, Segment, StaticText


@pytest.fixture
def render_template():
    """Return a helper that compiles source, loads it, and calls the template."""

    def _render(source: str, props=None, config: LoaderConfig | None = None, **kwargs):
        code = compile_template(source, config, **kwargs)
        return load_template(code)(props)

    return _render


@pytest.fixture
def counting_tokens():
    """Return a deterministic placeholder factory: ~~~HTMLLINK~~~0~~~, ~~~HTMLLINK~~~1~~~ ..."""
    counter = itertools.count()
    return lambda: f"~~~HTMLLINK~~~{next(counter)}~~~"


def make_script(path: Path, body: str) -> Path:
    """Write a small executable shell script."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"#!/bin/sh\n{body}\n")
    path.chmod(path.stat().st_mode | stat.S_IEXEC)
    return path


def static_values(segments: tuple[Segment, ...]) -> list[str]:
    """Return the static text values of a segment list."""
    return [s.value for s in segments if isinstance(s, StaticText)]


def marker_expressions(segments: tuple[Segment, ...]) -> list[str]:
    """Return the expressions of the top-level markers in a segment list."""
    return [s.expression for s in segments if isinstance(s, Marker)]
