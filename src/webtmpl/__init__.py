"""HTML template compiler with ``${...}`` interpolation and event binding."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from webtmpl.loader import LoaderConfig

__version__ = "0.1.0"


def compile(
    source: str,
    config: LoaderConfig | None = None,
    context_dir: str = ".",
    filename: str = "template.html",
) -> str:
    """Compile template markup to Python module source defining ``template``."""
    from webtmpl.loader import compile_template

    return compile_template(source, config, context_dir=context_dir, filename=filename)
