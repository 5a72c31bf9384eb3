"""Document tree model used by the image transform.

The parser adapter (see ``markdown.py``) turns its own token stream into
these nodes. Nodes are mutable: splicing a generated fragment into the
document means flipping ``kind`` to ``NodeKind.HTML`` and setting ``value``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple


class NodeKind(str, Enum):
    ROOT = 'root'
    PARAGRAPH = 'paragraph'
    TEXT = 'text'
    IMAGE = 'image'
    IMAGE_REFERENCE = 'imageReference'
    DEFINITION = 'definition'
    LINK = 'link'
    HTML = 'html'
    OTHER = 'other'


@dataclass(eq=False)
class Node:
    kind: NodeKind
    url: Optional[str] = None
    alt: Optional[str] = None
    title: Optional[str] = None
    identifier: Optional[str] = None
    value: Optional[str] = None
    children: List['Node'] = field(default_factory=list)
    # parser-specific handle (a markdown-it token) used to write mutations back
    source: Any = field(default=None, repr=False)


def walk_with_ancestors(
    tree: Node, kinds: Iterable[NodeKind]
) -> Iterator[Tuple[Node, List[Node]]]:
    """Yield ``(node, ancestors)`` for every node of ``kinds``, depth-first.

    ``ancestors`` runs from the root down to the direct parent. Each yielded
    list is a fresh copy, so callers may keep it.
    """
    wanted = frozenset(kinds)
    stack: List[Tuple[Node, List[Node]]] = [(tree, [])]
    while stack:
        node, ancestors = stack.pop()
        if node.kind in wanted:
            yield node, list(ancestors)
        if node.children:
            path = ancestors + [node]
            for child in reversed(node.children):
                stack.append((child, path))


def normalize_identifier(identifier: str) -> str:
    return ' '.join(identifier.split()).upper()


def build_definitions(tree: Node) -> Callable[[Optional[str]], Optional[Node]]:
    """Collect definition nodes into a case-insensitive lookup.

    The first definition of an identifier wins, as in CommonMark.
    """
    table = {}
    for node, _ in walk_with_ancestors(tree, (NodeKind.DEFINITION,)):
        if not node.identifier:
            continue
        table.setdefault(normalize_identifier(node.identifier), node)

    def lookup(identifier: Optional[str]) -> Optional[Node]:
        if not identifier:
            return None
        return table.get(normalize_identifier(identifier))

    return lookup
