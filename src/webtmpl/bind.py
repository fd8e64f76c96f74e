"""Wire ``on*`` attributes to callables on the render context."""

from __future__ import annotations

import inspect
import logging
import types
from collections.abc import Callable
from typing import Any

from webtmpl.context import RenderContext
from webtmpl.dom import Element, Node
from webtmpl.evaluator import resolve
from webtmpl.markers import unwrap_marker

log = logging.getLogger(__name__)

EVENT_PREFIX = "on"
RECEIVER_NAMES = ("this", "self")


def bind_events(root: Node | None, context: Any = None) -> Node | None:
    """Attach listeners for every ``on*`` attribute below root.

    Handler attributes hold a path into the context, with or without a
    ``this.``/``props.`` prefix and with or without a ``${...}`` wrapper:
    ``onclick="itemClick"``, ``onclick="this.items.select"``,
    ``onclick="${this.itemClick}"``. Callables found on the context are
    called with the event arguments; a function whose first parameter is
    ``this`` or ``self`` also receives the context there.

    The attribute is removed whether or not a handler was found, so a second
    pass over the same tree attaches nothing. Root itself is not inspected.
    Returns root, or None when root is None.
    """
    if root is None:
        return None
    ctx = RenderContext.wrap(root if context is None else context)

    for el in root.query_all():
        for attr in el.attributes:
            if not attr.name.startswith(EVENT_PREFIX):
                continue
            handler = _find_handler(attr.value, ctx)
            if handler is not None:
                event_type = attr.name[len(EVENT_PREFIX) :]
                el.add_event_listener(event_type, _bound_listener(handler, ctx))
            else:
                log.debug("no handler for %s=%r on <%s>", attr.name, attr.value, el.tag_name)
            el.remove_attribute(attr.name)
    return root


def _find_handler(value: str, ctx: RenderContext) -> Callable[..., Any] | None:
    # A lone ${path} wrapper is the same handler as the bare path
    expression = unwrap_marker(value)
    if expression is not None:
        value = expression
    return ctx.get_callable(resolve(value, ctx))


def _bound_listener(handler: Callable[..., Any], ctx: RenderContext) -> Callable[..., Any]:
    """Call handler with the listener arguments.

    A function whose first parameter is named ``this`` or ``self`` is bound
    to the receiver and gets it as that argument; anything else is called
    with the listener arguments only.
    """
    if isinstance(handler, types.FunctionType) and _wants_receiver(handler):
        handler = types.MethodType(handler, _receiver(ctx))

    def listener(*args: Any) -> Any:
        return handler(*args)

    return listener


def _wants_receiver(fn: types.FunctionType) -> bool:
    try:
        params = list(inspect.signature(fn).parameters.values())
    except (TypeError, ValueError):
        return False
    if not params:
        return False
    first = params[0]
    return first.name in RECEIVER_NAMES and first.kind in (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    )


def _receiver(ctx: RenderContext) -> Any:
    source = ctx.source
    return source if isinstance(source, Element) else ctx
