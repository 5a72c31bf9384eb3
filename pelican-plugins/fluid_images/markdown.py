"""markdown-it-py adapter: tokens -> Node tree -> tokens -> HTML.

Every Node built here keeps its markdown-it token in ``Node.source``; after
the transform, ``apply_mutations`` copies the new HTML back onto those tokens
and the stock renderer does the rest.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from markdown_it import MarkdownIt
from markdown_it.token import Token

from .transform import transform_sync
from .tree import Node, NodeKind

_KINDS = {
    'paragraph': NodeKind.PARAGRAPH,
    'text': NodeKind.TEXT,
    'link': NodeKind.LINK,
    'image': NodeKind.IMAGE,
    'html_block': NodeKind.HTML,
    'html_inline': NodeKind.HTML,
}


def create_parser() -> MarkdownIt:
    return MarkdownIt('commonmark', {'html': True}).enable('table').enable('strikethrough')


@dataclass
class ParsedDocument:
    tree: Node
    tokens: List[Token]
    env: Dict[str, Any] = field(default_factory=dict)


def _node_for(token: Token, md: MarkdownIt, env: Dict[str, Any]) -> Node:
    name = token.type[:-len('_open')] if token.type.endswith('_open') else token.type
    kind = _KINDS.get(name, NodeKind.OTHER)
    if kind == NodeKind.IMAGE:
        # plain text of the label, as the stock renderer writes it
        alt = md.renderer.renderInlineAsText(token.children or [], md.options, env)
        return Node(kind, url=token.attrGet('src'), alt=alt or None,
                    title=token.attrGet('title') or None, source=token)
    if kind == NodeKind.LINK:
        return Node(kind, url=token.attrGet('href'), title=token.attrGet('title') or None, source=token)
    if kind in (NodeKind.HTML, NodeKind.TEXT):
        return Node(kind, value=token.content, source=token)
    return Node(kind, source=token)


def _attach(tokens: Iterable[Token], parent: Node, md: MarkdownIt, env: Dict[str, Any]) -> None:
    stack = [parent]
    for token in tokens:
        if token.nesting == -1:
            stack.pop()
            continue
        node = _node_for(token, md, env)
        stack[-1].children.append(node)
        if token.nesting == 1:
            stack.append(node)
        elif token.type == 'inline' and token.children:
            _attach(token.children, node, md, env)


def parse_document(text: str, md: Optional[MarkdownIt] = None) -> ParsedDocument:
    md = md or create_parser()
    env: Dict[str, Any] = {}
    tokens = md.parse(text, env)
    root = Node(NodeKind.ROOT)
    _attach(tokens, root, md, env)
    for label, ref in env.get('references', {}).items():
        root.children.append(Node(
            NodeKind.DEFINITION,
            identifier=label,
            url=ref.get('href'),
            title=ref.get('title') or None,
        ))
    return ParsedDocument(root, tokens, env)


def apply_mutations(nodes: Iterable[Node]) -> None:
    """Write the HTML of transformed nodes back onto their tokens."""
    for node in nodes:
        token = node.source
        if token is None or node.kind != NodeKind.HTML:
            continue
        if token.type not in ('html_block', 'html_inline'):
            token.type = 'html_inline'
            token.tag = ''
            token.attrs = {}
            token.children = None
        token.content = node.value or ''


def render_document(parsed: ParsedDocument, md: MarkdownIt) -> str:
    return md.renderer.render(parsed.tokens, md.options, parsed.env)


class MarkdownCaptionRenderer:
    """Renders captions as inline markdown (no wrapping ``<p>``)."""

    def __init__(self, md: Optional[MarkdownIt] = None):
        self.md = md or create_parser()

    def parse_string(self, text: str) -> List[Token]:
        return self.md.parseInline(text, {})

    def generate_html(self, parsed: List[Token]) -> str:
        return self.md.renderer.render(parsed, self.md.options, {})


def convert(text: str, md: Optional[MarkdownIt] = None, **transform_kwargs) -> str:
    """Render ``text`` to HTML with its images replaced.

    ``transform_kwargs`` are passed to ``transform`` (service, files,
    parent_dir, options, renderer).
    """
    md = md or create_parser()
    parsed = parse_document(text, md)
    changed = transform_sync(parsed.tree, **transform_kwargs)
    apply_mutations(changed)
    return render_document(parsed, md)
