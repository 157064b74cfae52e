"""Content tree model — the structured body of a draft.

The tree is stored as editor JSON (``type``/``text``/``content``/``attrs``)
and validated into a closed two-variant union:

* ``TextNode`` carries inline text and never contributes children.
* ``ElementNode`` is every other kind (doc, paragraph, heading, lists,
  images, hard breaks...) and owns an ordered list of children.

A raw node that has a string ``text`` is always read as a ``TextNode``;
any stray ``content`` on it is preserved untouched but never traversed.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag


class TextNode(BaseModel):
    """Inline text leaf. Marks and other editor extras round-trip as extra fields."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    kind: str = Field(default="text", alias="type")
    text: str


class ElementNode(BaseModel):
    """Container node; atoms like images or hard breaks simply have no children."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    kind: str = Field(alias="type")
    children: list[ContentNode] = Field(default_factory=list, alias="content")
    attributes: dict[str, Any] = Field(default_factory=dict, alias="attrs")


def _node_tag(value: Any) -> str:
    if isinstance(value, dict):
        return "text" if isinstance(value.get("text"), str) else "element"
    return "text" if isinstance(value, TextNode) else "element"


ContentNode = Annotated[
    Annotated[TextNode, Tag("text")] | Annotated[ElementNode, Tag("element")],
    Discriminator(_node_tag),
]

ElementNode.model_rebuild()


def empty_document() -> ElementNode:
    """Return a document holding a single empty paragraph."""
    return ElementNode(kind="doc", children=[ElementNode(kind="paragraph")])


def paragraph_document(*paragraphs: str) -> ElementNode:
    """Build a document with one paragraph per string; blank strings stay empty."""
    return ElementNode(
        kind="doc",
        children=[
            ElementNode(kind="paragraph", children=[TextNode(text=text)] if text else [])
            for text in paragraphs
        ],
    )
