"""Code generation — template literal compilation and the module skeleton."""

from __future__ import annotations

from string import Template

from webtmpl.errors import TemplateSyntaxError
from webtmpl.markers import Marker, StaticText, scan_markers
from webtmpl.tokens import position_at

# Named insertion points: ${header}, ${expression}, ${name}
_MODULE_SKELETON = Template('''\
# Compiled template: ${header}

from webtmpl.bind import bind_events
from webtmpl.connect import setup_connect
from webtmpl.context import RenderContext, to_text
from webtmpl.dom import parse_document


def _markup(this, props):
    return ${expression}


def ${name}(p=None):
    p = RenderContext.wrap(p)
    parsed = parse_document(_markup(p, p))
    elements = [*parsed.head.children, *bind_events(parsed.body, p).child_nodes]
    return setup_connect(elements, p)
''')

_INDENT = " " * 8


def check_expressions(source: str, filename: str = "template.html") -> None:
    """Raise TemplateSyntaxError for the first unterminated or invalid marker."""
    for segment in scan_markers(source, strict=True):
        if isinstance(segment, Marker):
            _check_expression(segment, source, filename)


def _check_expression(marker: Marker, source: str, filename: str) -> None:
    expression = marker.expression.strip()
    if not expression:
        raise TemplateSyntaxError(
            "empty interpolation marker",
            position_at(source, marker.start),
            source,
        )
    try:
        compile(f"({expression}\n)", filename, "eval")
    except SyntaxError as exc:
        raise TemplateSyntaxError(
            f"invalid expression in marker: {exc.msg}",
            position_at(source, marker.start),
            source,
        ) from None


def compile_literal(escaped: str) -> str:
    """Compile escaped markup with raw markers into a Python string expression.

    Static runs become string literals as-is (they are already escaped);
    each marker becomes ``to_text(<expression>)``.
    """
    parts: list[str] = []
    for segment in scan_markers(escaped, strict=True):
        if isinstance(segment, StaticText):
            parts.append(f'"{segment.value}"')
        else:
            parts.append(_text_call(segment.expression.strip()))

    if not parts:
        return '""'
    if len(parts) == 1 and parts[0].startswith('"'):
        return parts[0]
    body = "".join(f"{_INDENT}{part},\n" for part in parts)
    return f'"".join((\n{body}    ))'


def _text_call(expression: str) -> str:
    # A trailing comment would swallow the closing parenthesis
    if "\n" in expression or "#" in expression:
        return f"to_text((\n{expression}\n{_INDENT}))"
    return f"to_text({expression})"


def build_module(expression: str, *, name: str = "template", header: str = "") -> str:
    """Wrap a compiled string expression in the exported function skeleton."""
    if not name.isidentifier():
        raise ValueError(f"invalid template function name: {name!r}")
    header = " ".join(header.split()) or "<string>"
    return _MODULE_SKELETON.substitute(header=header, expression=expression, name=name)
