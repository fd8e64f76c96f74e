"""Resource references: request detection, placeholder protection, resolution."""

from __future__ import annotations

import logging
import posixpath
import re
import secrets
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from webtmpl.attrs import rewrite_matches
from webtmpl.tokens import ReferenceMatch

log = logging.getLogger(__name__)

PLACEHOLDER_PREFIX = "~~~HTMLLINK~~~"
PLACEHOLDER_SUFFIX = "~~~"

# scheme:..., except Windows drive letters (C:\ or C:/)
_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*:", re.IGNORECASE)
_DRIVE_RE = re.compile(r"^[a-z]:[\\/]", re.IGNORECASE)

# Values opening with these are templates, anchors, or garbage, not paths
_NON_REQUEST_START = frozenset("{}[]#*;,'§$%&(=?`´^°<>\"")


def is_url_request(url: str, root: str | None = None) -> bool:
    """Return True if url names a local resource the compiler should resolve.

    Absolute URLs (``http:``, ``mailto:``, ``data:`` ...), protocol-relative
    URLs, fragments, and template expressions are not requests. Root-relative
    paths (``/img/x.png``) are requests only when a URL root is configured.
    """
    url = url.strip()
    if not url:
        return False
    if _DRIVE_RE.match(url):
        return True
    if _SCHEME_RE.match(url):
        return False
    if url.startswith("//"):
        return False
    if url[0] in _NON_REQUEST_START:
        return False
    if url.startswith("/") and root is None:
        return False
    return "mailto:" not in url


def strip_fragment(url: str) -> str:
    """Drop a ``#fragment`` suffix."""
    return url.split("#", 1)[0]


def new_placeholder() -> str:
    return f"{PLACEHOLDER_PREFIX}{secrets.token_hex(8)}{PLACEHOLDER_SUFFIX}"


@dataclass
class ProtectedMarkup:
    """Markup with reference values swapped for placeholder tokens."""

    text: str
    tokens: dict[str, str] = field(default_factory=dict)


def protect_references(
    source: str,
    matches: Iterable[ReferenceMatch],
    token_factory: Callable[[], str] = new_placeholder,
) -> ProtectedMarkup:
    """Replace each match value with a token that occurs nowhere else.

    Only the part before any ``#fragment`` is replaced; the fragment stays
    in the markup after the token. The string is rebuilt from the highest
    offset down, so offsets from the scan stay valid throughout.
    """
    matches = list(matches)
    taken = {m.value for m in matches}
    tokens: dict[str, str] = {}
    edits: list[tuple[ReferenceMatch, str]] = []
    for match in matches:
        token = token_factory()
        while token in tokens or token in taken or token in source:
            log.debug("placeholder collision on %s, regenerating", token)
            token = token_factory()
        value = strip_fragment(match.value)
        tokens[token] = value
        edits.append((ReferenceMatch(match.start, len(value), value), token))
    return ProtectedMarkup(rewrite_matches(source, edits), tokens)


def restore_references(
    text: str,
    tokens: dict[str, str],
    resolver: ReferenceResolver | None = None,
) -> str:
    """Swap tokens back for resolved references (or the original value)."""
    for token, value in tokens.items():
        resolved = resolver(value) if resolver is not None else None
        text = text.replace(token, value if resolved is None else resolved)
    return text


class ReferenceResolver(Protocol):
    def __call__(self, value: str) -> str | None: ...


@dataclass
class AssetResolver:
    """Map a local reference to its public URL under ``url_root``.

    Returns None when the referenced file does not exist, which leaves the
    original text in place.
    """

    context_dir: Path
    url_root: str = ""

    def __call__(self, value: str) -> str | None:
        rel = value.split("?", 1)[0]
        query = value[len(rel) :]
        local = self._local_path(rel)
        if not local.is_file():
            log.debug("reference %s not found at %s, left as written", value, local)
            return None

        normalized = posixpath.normpath(rel.replace("\\", "/").lstrip("/"))
        if self.url_root:
            return f"{self.url_root.rstrip('/')}/{normalized}{query}"
        return f"{normalized}{query}"

    def _local_path(self, rel: str) -> Path:
        if rel.startswith("/"):
            return self.context_dir / rel.lstrip("/")
        return self.context_dir / rel
