"""Flatten Atlassian Document Format (ADF) content into plain text.

Only the block kinds used in issue descriptions are rendered:
paragraphs, ordered lists and bullet lists. Anything else becomes an
empty string so new ADF node types never break a sync.
"""

from enum import Enum
from typing import Any


class NodeKind(Enum):
    PARAGRAPH = "paragraph"
    ORDERED_LIST = "orderedList"
    BULLET_LIST = "bulletList"
    OTHER = "other"

    @classmethod
    def of(cls, node: Any) -> "NodeKind":
        """Return the kind of an ADF node, OTHER for unknown or malformed nodes."""
        if not isinstance(node, dict):
            return cls.OTHER
        try:
            return cls(node.get("type"))
        except ValueError:
            return cls.OTHER


def _children(node: dict) -> list:
    content = node.get("content")
    return content if isinstance(content, list) else []


def _paragraph_text(node: dict) -> str:
    return " ".join(
        str(item.get("text") or "") if isinstance(item, dict) else ""
        for item in _children(node)
    )


def _list_item_text(item: Any) -> str:
    if not isinstance(item, dict):
        return ""
    return extract_text(_children(item))


def _ordered_list_text(node: dict) -> str:
    attrs = node.get("attrs")
    if not isinstance(attrs, dict):
        attrs = {}
    start = attrs.get("order", 1)
    if not isinstance(start, int):
        start = 1
    return "\n".join(
        f"{start + index}. {_list_item_text(item)}"
        for index, item in enumerate(_children(node))
    )


def _bullet_list_text(node: dict) -> str:
    return "\n".join(f"- {_list_item_text(item)}" for item in _children(node))


_RENDERERS = {
    NodeKind.PARAGRAPH: _paragraph_text,
    NodeKind.ORDERED_LIST: _ordered_list_text,
    NodeKind.BULLET_LIST: _bullet_list_text,
}


def extract_text(nodes: list | None) -> str:
    """Extract plain text from a sequence of ADF block nodes.

    Top-level blocks are separated by a blank line. List items are
    numbered from the list's ``attrs.order`` (ordered lists) or prefixed
    with ``- `` (bullet lists).
    """
    if not nodes or not isinstance(nodes, list):
        return ""

    blocks = []
    for node in nodes:
        renderer = _RENDERERS.get(NodeKind.of(node))
        blocks.append(renderer(node) if renderer else "")

    return "\n\n".join(blocks)
