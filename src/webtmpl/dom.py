"""Minimal DOM for rendered templates.

Elements carry ordered attributes, event listeners and optional shadow roots.
``parse_document`` sorts parsed markup into head and body the way
``DOMParser`` does for a fragment of HTML.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from html import escape
from html.parser import HTMLParser
from typing import Any

Listener = Callable[["Event"], Any]

VOID_ELEMENTS = frozenset(
    {
        "area", "base", "br", "col", "embed", "hr", "img", "input", "link",
        "meta", "param", "source", "track", "wbr",
    }
)  # fmt: skip

# Elements that land in <head> while no body content has been seen
HEAD_ELEMENTS = frozenset({"base", "link", "meta", "noscript", "script", "style", "title"})

# Serialized without escaping
_RAW_TEXT_ELEMENTS = frozenset({"script", "style"})

# Opening one of these closes an open sibling of the listed kinds
_IMPLIED_END: dict[str, frozenset[str]] = {
    "p": frozenset({"p"}),
    "li": frozenset({"li"}),
    "dt": frozenset({"dt", "dd"}),
    "dd": frozenset({"dt", "dd"}),
    "option": frozenset({"option"}),
    "tr": frozenset({"tr", "td", "th"}),
    "td": frozenset({"td", "th"}),
    "th": frozenset({"td", "th"}),
}


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass
class Event:
    """A dispatched event; listeners receive it as their only argument."""

    type: str
    bubbles: bool = False
    cancelable: bool = False
    detail: Any = None
    target: Element | None = field(default=None, init=False)
    current_target: Node | None = field(default=None, init=False)
    default_prevented: bool = field(default=False, init=False)
    _stopped: bool = field(default=False, init=False, repr=False)

    def prevent_default(self) -> None:
        if self.cancelable:
            self.default_prevented = True

    def stop_propagation(self) -> None:
        self._stopped = True


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


class Node:
    """Base tree node."""

    def __init__(self) -> None:
        self.parent_node: Node | None = None
        self._children: list[Node] = []

    @property
    def child_nodes(self) -> list[Node]:
        """Snapshot of the children, text nodes included."""
        return list(self._children)

    @property
    def children(self) -> list[Element]:
        """Element children only."""
        return [c for c in self._children if isinstance(c, Element)]

    @property
    def first_child(self) -> Node | None:
        return self._children[0] if self._children else None

    @property
    def text_content(self) -> str:
        return "".join(c.text_content for c in self._children if not isinstance(c, Comment))

    def append_child(self, node: Node) -> Node:
        """Append node, moving it from its current parent; fragments are emptied in."""
        if isinstance(node, DocumentFragment):
            for child in node.child_nodes:
                self.append_child(child)
            return node
        if node.parent_node is not None:
            node.parent_node.remove_child(node)
        node.parent_node = self
        self._children.append(node)
        return node

    def remove_child(self, node: Node) -> Node:
        self._children.remove(node)
        node.parent_node = None
        return node

    def replace_children(self, *nodes: Node) -> None:
        for child in self.child_nodes:
            self.remove_child(child)
        for node in nodes:
            self.append_child(node)

    def iter_descendants(self) -> Iterator[Node]:
        """All descendants in document order, self excluded."""
        stack = list(reversed(self._children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node._children))

    def query_all(self, tag_name: str | None = None) -> list[Element]:
        """Descendant elements in document order, optionally by tag name."""
        wanted = tag_name.lower() if tag_name else None
        return [
            n
            for n in self.iter_descendants()
            if isinstance(n, Element) and (wanted is None or n.tag_name == wanted)
        ]

    @property
    def inner_html(self) -> str:
        return "".join(_serialize(c) for c in self._children)

    @inner_html.setter
    def inner_html(self, markup: str) -> None:
        self.replace_children(*parse_fragment(markup))


class Text(Node):
    def __init__(self, data: str) -> None:
        super().__init__()
        self.data = data

    @property
    def text_content(self) -> str:
        return self.data

    def __repr__(self) -> str:
        return f"Text({self.data!r})"


class Comment(Node):
    def __init__(self, data: str) -> None:
        super().__init__()
        self.data = data

    @property
    def text_content(self) -> str:
        return ""

    def __repr__(self) -> str:
        return f"Comment({self.data!r})"


class DocumentFragment(Node):
    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self._children)} nodes)"


class ShadowRoot(DocumentFragment):
    def __init__(self, host: Element, mode: str) -> None:
        super().__init__()
        self.host = host
        self.mode = mode


@dataclass(frozen=True, slots=True)
class Attr:
    name: str
    value: str


class Element(Node):
    """An element with ordered attributes and event listeners."""

    def __init__(self, tag_name: str, attributes: dict[str, str] | None = None) -> None:
        super().__init__()
        self.tag_name = tag_name.lower()
        self._attributes: dict[str, str] = dict(attributes or {})
        self._listeners: dict[str, list[Listener]] = {}
        self._shadow_root: ShadowRoot | None = None

    def __repr__(self) -> str:
        return f"<Element {self.tag_name}>"

    # -- attributes ------------------------------------------------------

    @property
    def attributes(self) -> tuple[Attr, ...]:
        """Snapshot, safe to iterate while removing attributes."""
        return tuple(Attr(k, v) for k, v in self._attributes.items())

    def get_attribute(self, name: str) -> str | None:
        return self._attributes.get(name.lower())

    def set_attribute(self, name: str, value: Any) -> None:
        self._attributes[name.lower()] = str(value)

    def remove_attribute(self, name: str) -> None:
        self._attributes.pop(name.lower(), None)

    def has_attribute(self, name: str) -> bool:
        return name.lower() in self._attributes

    # -- text --------------------------------------------------------------

    @property
    def text_content(self) -> str:
        return super().text_content

    @text_content.setter
    def text_content(self, value: str) -> None:
        self.replace_children(Text(value))

    @property
    def outer_html(self) -> str:
        return _serialize(self)

    # -- events ------------------------------------------------------------

    def add_event_listener(self, event_type: str, listener: Listener) -> None:
        listeners = self._listeners.setdefault(event_type, [])
        if listener not in listeners:
            listeners.append(listener)

    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event_type: str | None = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return sum(len(v) for v in self._listeners.values())

    def dispatch_event(self, event: Event) -> bool:
        """Run listeners on this element, then ancestors if the event bubbles.

        Returns False if a listener called ``prevent_default``.
        """
        event.target = self
        node: Node | None = self
        while node is not None:
            if isinstance(node, Element):
                event.current_target = node
                for listener in list(node._listeners.get(event.type, [])):
                    listener(event)
            if event._stopped or not event.bubbles:
                break
            node = node.host if isinstance(node, ShadowRoot) else node.parent_node
        event.current_target = None
        return not event.default_prevented

    def click(self) -> bool:
        return self.dispatch_event(Event("click", bubbles=True, cancelable=True))

    # -- shadow DOM --------------------------------------------------------

    def attach_shadow(self, mode: str = "open") -> ShadowRoot:
        if mode not in ("open", "closed"):
            raise ValueError(f"invalid shadow root mode: {mode!r}")
        if self._shadow_root is not None:
            raise ValueError(f"<{self.tag_name}> already hosts a shadow root")
        self._shadow_root = ShadowRoot(self, mode)
        return self._shadow_root

    @property
    def shadow_root(self) -> ShadowRoot | None:
        """The attached shadow root, or None when absent or closed."""
        root = self._shadow_root
        if root is not None and root.mode == "open":
            return root
        return None


def create_element(tag_name: str, **attributes: str) -> Element:
    """Create a detached element; underscores in keyword names become dashes."""
    return Element(tag_name, {k.replace("_", "-"): v for k, v in attributes.items()})


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def _serialize(node: Node) -> str:
    if isinstance(node, Text):
        parent = node.parent_node
        if isinstance(parent, Element) and parent.tag_name in _RAW_TEXT_ELEMENTS:
            return node.data
        return escape(node.data, quote=False)
    if isinstance(node, Comment):
        return f"<!--{node.data}-->"
    if isinstance(node, Element):
        attrs = "".join(
            f' {k}="{escape(v, quote=True)}"' if v else f" {k}"
            for k, v in node._attributes.items()
        )
        if node.tag_name in VOID_ELEMENTS:
            return f"<{node.tag_name}{attrs}>"
        return f"<{node.tag_name}{attrs}>{node.inner_html}</{node.tag_name}>"
    return node.inner_html


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


@dataclass
class ParsedDocument:
    """Result of parsing markup: head-level elements and body content."""

    head: Element
    body: Element


class _TreeBuilder(HTMLParser):
    """Build head/body trees from markup, tolerating unbalanced tags."""

    def __init__(self, split_head: bool) -> None:
        super().__init__(convert_charrefs=True)
        self.head = Element("head")
        self.body = Element("body")
        self._split_head = split_head
        self._in_body = not split_head
        self._stack: list[Element] = []

    def _container(self) -> Node:
        if self._stack:
            return self._stack[-1]
        return self.body if self._in_body else self.head

    def _open(self, tag: str, attrs: list[tuple[str, str | None]], self_closing: bool) -> None:
        if not self._stack and tag in ("html", "head", "body"):
            return
        el = Element(tag, {k: (v if v is not None else "") for k, v in attrs})

        if not self._stack and not self._in_body and tag not in HEAD_ELEMENTS:
            self._in_body = True

        implied = _IMPLIED_END.get(tag)
        if implied and self._stack and self._stack[-1].tag_name in implied:
            self._stack.pop()

        self._container().append_child(el)
        if not self_closing and tag not in VOID_ELEMENTS:
            self._stack.append(el)

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._open(tag, attrs, self_closing=False)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._open(tag, attrs, self_closing=True)

    def handle_endtag(self, tag: str) -> None:
        for idx in range(len(self._stack) - 1, -1, -1):
            if self._stack[idx].tag_name == tag:
                del self._stack[idx:]
                return
        # Unmatched end tag: ignored

    def handle_data(self, data: str) -> None:
        if not self._stack and not self._in_body:
            if data.isspace():
                return
            self._in_body = True
        container = self._container()
        last = container._children[-1] if container._children else None
        if isinstance(last, Text):
            last.data += data
        else:
            container.append_child(Text(data))

    def handle_comment(self, data: str) -> None:
        self._container().append_child(Comment(data))


def parse_document(markup: str) -> ParsedDocument:
    """Parse markup the way ``DOMParser.parseFromString(markup, "text/html")`` does.

    Head-level elements (styles, links, meta, scripts, title) that appear
    before any body content land in ``head``; everything else in ``body``.
    """
    builder = _TreeBuilder(split_head=True)
    builder.feed(markup)
    builder.close()
    return ParsedDocument(builder.head, builder.body)


def parse_fragment(markup: str) -> list[Node]:
    """Parse markup into a detached list of top-level nodes."""
    builder = _TreeBuilder(split_head=False)
    builder.feed(markup)
    builder.close()
    return builder.body.child_nodes
