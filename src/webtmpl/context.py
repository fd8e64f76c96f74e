"""A uniform view over mappings and objects for template code."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any


class RenderContext:
    """Attribute- and item-style access to the properties passed to a template.

    Generated template code binds both ``this`` and ``props`` to one
    RenderContext, so ``${this.title}`` and ``${props.title}`` read the same
    value. Missing keys read as ``None`` so templates still render with
    partial data. Nested mappings come back wrapped, which keeps
    ``this.user.name`` working on plain dicts; lists and tuples come back as
    copies whose items are wrapped the same way, so ``this.users[0].name``
    and ``for user in this.users`` read alike.

    Keys named ``get``, ``get_callable`` or ``source`` are shadowed by the
    methods below; use ``this["get"]`` for those.
    """

    __slots__ = ("source",)

    def __init__(self, source: Any = None) -> None:
        self.source = {} if source is None else source

    @classmethod
    def wrap(cls, value: Any) -> RenderContext:
        """Return value itself if already a RenderContext, else wrap it."""
        if isinstance(value, RenderContext):
            return value
        return cls(value)

    def get(self, key: str, default: Any = None) -> Any:
        value = get_member(self.source, key)
        return default if value is None else value

    def get_callable(self, name: str) -> Callable[..., Any] | None:
        """Resolve name (dotted paths allowed) to a callable, or None."""
        from webtmpl.evaluator import lookup

        if not isinstance(name, str) or not name.strip():
            return None
        value = lookup(name, self.source)
        return value if callable(value) else None

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        return _wrap_value(get_member(self.source, name))

    def __getitem__(self, key: str) -> Any:
        value = get_member(self.source, key)
        if value is None:
            raise KeyError(key)
        return _wrap_value(value)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and get_member(self.source, key) is not None

    def __repr__(self) -> str:
        return f"RenderContext({self.source!r})"


def _wrap_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return RenderContext(value)
    if type(value) is list:
        return _ListView(value)
    if type(value) is tuple:
        return _TupleView(value)
    return value


class _ItemView:
    """Indexing and iteration hand back items wrapped like attribute reads."""

    __slots__ = ()

    def __getitem__(self, index):
        value = super().__getitem__(index)
        if isinstance(index, slice):
            return type(self)(value)
        return _wrap_value(value)

    def __iter__(self):
        for value in super().__iter__():
            yield _wrap_value(value)


class _ListView(_ItemView, list):
    __slots__ = ()


class _TupleView(_ItemView, tuple):
    __slots__ = ()


def get_member(container: Any, key: str) -> Any:
    """Read one path segment from a mapping, sequence, or object.

    Returns None when the member is absent; a member whose value is None is
    indistinguishable from an absent one.
    """
    if isinstance(container, RenderContext):
        container = container.source
    if container is None:
        return None
    if isinstance(container, Mapping):
        return container.get(key)
    if isinstance(container, Sequence) and not isinstance(container, str):
        try:
            return container[int(key)]
        except (ValueError, IndexError):
            return None
    if isinstance(container, str):
        return None
    return getattr(container, key, None)


def to_text(value: Any) -> str:
    """Stringify an interpolated value; None renders as an empty string."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)
