"""Find the image and raw-HTML nodes of a document, with their link context."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Sequence

from .tree import Node, NodeKind, walk_with_ancestors

ANCHOR_OPEN = re.compile(r'<a[\s>]', re.IGNORECASE)
ANCHOR_CLOSE = re.compile(r'</a\s*>', re.IGNORECASE)

IMAGE_KINDS = (NodeKind.IMAGE, NodeKind.IMAGE_REFERENCE)
HTML_KINDS = (NodeKind.HTML,)


@dataclass
class Entry:
    node: Node
    in_link: bool = False


@dataclass
class Discovery:
    images: List[Entry] = field(default_factory=list)
    html: List[Entry] = field(default_factory=list)


def _anchor_depth(siblings: Sequence[Node], stop: Node) -> int:
    """Net number of ``<a>`` tags left open by raw HTML before ``stop``."""
    depth = 0
    for sibling in siblings:
        if sibling is stop:
            break
        if sibling.kind == NodeKind.HTML and sibling.value:
            depth += len(ANCHOR_OPEN.findall(sibling.value))
            depth -= len(ANCHOR_CLOSE.findall(sibling.value))
    return depth


def is_in_link(ancestors: Sequence[Node], node: Node) -> bool:
    """True when ``node`` sits inside a markdown link or a raw ``<a>`` tag.

    Raw HTML anchors are siblings of what they wrap (``<a href>``, image,
    ``</a>``), so each level of the ancestor chain is scanned for anchors
    still open before the branch leading to ``node``.
    """
    chain = list(ancestors) + [node]
    for ancestor, child in zip(chain, chain[1:]):
        if ancestor.kind == NodeKind.LINK:
            return True
        if _anchor_depth(ancestor.children, child) > 0:
            return True
    return False


def discover(tree: Node) -> Discovery:
    """Collect image and raw-HTML entries in document order. Nothing is mutated."""
    found = Discovery()
    for node, ancestors in walk_with_ancestors(tree, IMAGE_KINDS):
        found.images.append(Entry(node, is_in_link(ancestors, node)))
    for node, ancestors in walk_with_ancestors(tree, HTML_KINDS):
        found.html.append(Entry(node, is_in_link(ancestors, node)))
    return found
