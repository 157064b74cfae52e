"""Excerpt extraction — content tree to a bounded plain-text summary."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, assert_never

from folio.models.content import ElementNode, TextNode

if TYPE_CHECKING:
    from folio.models.content import ContentNode

DEFAULT_MAX_LENGTH = 200
ELLIPSIS = "…"
PLACEHOLDER = "No summary yet. Open the post to start writing."

_WHITESPACE = re.compile(r"\s+")


def collect_text(root: ContentNode | None) -> str:
    """Concatenate every text leaf depth-first, joining siblings with a space.

    Formatting and paragraph boundaries collapse to single spaces.
    """
    if root is None:
        return ""
    parts: list[str] = []
    stack: list[ContentNode] = [root]
    while stack:
        node = stack.pop()
        if isinstance(node, TextNode):
            parts.append(node.text)
        elif isinstance(node, ElementNode):
            stack.extend(reversed(node.children))
        else:
            assert_never(node)
    return " ".join(parts)


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def extract_excerpt(
    root: ContentNode | None,
    explicit_fallback: str | None = None,
    max_len: int = DEFAULT_MAX_LENGTH,
) -> str:
    """Derive a summary, preferring a non-blank explicit fallback over the tree.

    Results longer than ``max_len`` are cut, right-trimmed and given a single
    ellipsis character, so the output never exceeds ``max_len + 1``.
    """
    if max_len < 0:
        msg = f"max_len must be non-negative, got {max_len}"
        raise ValueError(msg)
    if explicit_fallback and explicit_fallback.strip():
        plain = normalize_whitespace(explicit_fallback)
    else:
        plain = normalize_whitespace(collect_text(root))
    if len(plain) > max_len:
        return plain[:max_len].rstrip() + ELLIPSIS
    return plain


def excerpt_or_placeholder(
    root: ContentNode | None,
    explicit_fallback: str | None = None,
    max_len: int = DEFAULT_MAX_LENGTH,
) -> str:
    return extract_excerpt(root, explicit_fallback, max_len) or PLACEHOLDER
