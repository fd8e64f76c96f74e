"""Deferred mounting of rendered nodes."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from webtmpl.context import RenderContext
from webtmpl.dom import Element, Node


class NodeList(list):
    """A list of rendered nodes carrying a ``connect(root=None)`` mount function."""


def setup_connect(nodes: Iterable[Node], context: Any = None) -> NodeList:
    """Attach ``connect`` to the node list and return it.

    ``connect(root=None)`` picks its mount target: root, or the context when
    no root is given and the context is an element. A target exposing an
    open shadow root mounts inside that root; anything else gets a fresh
    detached ``<div>``. The target's existing content is cleared, the nodes
    are appended in order, and the target is returned.
    """
    node_list = nodes if isinstance(nodes, NodeList) else NodeList(nodes)
    if isinstance(context, RenderContext):
        context = context.source

    def connect(root: Any = None) -> Node:
        if root is None and isinstance(context, Element):
            root = context
        if isinstance(root, Element) and root.shadow_root is not None:
            target: Node = root.shadow_root
        else:
            target = Element("div")
        target.replace_children(*node_list)
        return target

    node_list.connect = connect
    return node_list
