"""Error types with formatted source context."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from webtmpl.tokens import Position


def render_report(
    message: str,
    location: str,
    body: Iterable[tuple[str, str]] = (),
    width: int = 2,
) -> str:
    """Lay out ``error: message``, a ``-->`` location and gutter lines.

    Each body entry is ``(label, text)``; the label is right-aligned in a
    gutter ``width`` columns wide, so every ``|`` lines up.
    """
    out = [f"error: {message}", f"{' ' * width}--> {location}"]
    for label, text in body:
        gutter = f"{label:>{width - 1}} |"
        out.append(f"{gutter} {text}" if text else gutter)
    return "\n".join(out)


class TemplateSyntaxError(Exception):
    """Raised on a malformed interpolation marker, with position and source context."""

    def __init__(self, message: str, position: Position, source: str) -> None:
        self.message = message
        self.position = position
        self.source = source
        super().__init__(self.format())

    def format(self, filename: str = "template.html") -> str:
        line, col = self.position.line, self.position.column
        lines = self.source.splitlines()
        text = lines[line - 1] if 0 < line <= len(lines) else ""

        # Two carets under "${", fewer only when the line ends first
        carets = "^" * max(1, min(2, len(text) - col + 1))
        return render_report(
            self.message,
            f"{filename}:{line}:{col}",
            [("", ""), (str(line), text), ("", " " * (col - 1) + carets)],
            width=len(str(line)) + 1,
        )


class StylesheetCompileError(Exception):
    """Raised when the stylesheet compiler rejects a local file."""

    def __init__(self, message: str, path: Path, stderr: str = "") -> None:
        self.message = message
        self.path = path
        self.stderr = stderr
        super().__init__(self.format())

    def format(self) -> str:
        return render_report(
            self.message,
            str(self.path),
            [("", line) for line in self.stderr.splitlines()],
        )


class ConfigError(ValueError):
    """Raised on a configuration value of the wrong type."""
