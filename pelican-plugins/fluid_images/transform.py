"""Replace the images of one document with responsive markup.

If the image is relative (not hosted elsewhere):
  1. find the image file next to the document,
  2. ask the image service for its fluid variants,
  3. render the aspect-ratio markup,
  4. splice it into the tree in place of the image.

Markdown images are handled first, then raw HTML nodes (which may hold
several ``<img>`` tags each). Each image is its own coroutine; a phase ends
when all of its coroutines are done.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence

from bs4 import BeautifulSoup

from .constants import IMAGE_CLASS
from .discovery import Entry, discover
from .markup import CaptionRenderer, build_markup
from .options import Options, merge_options
from .resolution import ImageRef, build_image_ref, is_eligible, resolve_file
from .service import FileRecord, ImageService, ImageServiceError
from .tree import Node, NodeKind, build_definitions

logger = logging.getLogger(__name__)


def lookup_parent_dir(get_node: Callable[[str], object], parent_id: Optional[str]) -> Optional[str]:
    """Directory of the file a document was read from, if there is one."""
    if parent_id is None:
        return None
    parent = get_node(parent_id)
    return getattr(parent, 'dir', None) or None


@dataclass
class _Pass:
    """State shared by every image coroutine of one document (read-only)."""

    definitions: Callable[[Optional[str]], Optional[Node]]
    parent_dir: Optional[str]
    files: Sequence[FileRecord]
    service: ImageService
    options: Options
    renderer: Optional[CaptionRenderer]

    async def generate(self, ref: ImageRef) -> Optional[str]:
        file = resolve_file(ref, self.parent_dir, self.files)
        if file is None:
            return None
        try:
            result = await self.service.fluid(file, self.options)
        except ImageServiceError as exc:
            logger.warning('Could not create fluid images for %s: %s', file.absolute_path, exc)
            return None
        except Exception:
            logger.exception('Image service crashed on %s, leaving it alone', file.absolute_path)
            return None
        if result is None:
            return None
        return build_markup(
            ref.node,
            result,
            url=ref.url,
            in_link=ref.in_link,
            options=self.options,
            overrides=ref.overrides,
            renderer=self.renderer,
        )

    async def markdown_image(self, entry: Entry) -> Optional[Node]:
        ref = build_image_ref(entry.node, self.definitions, entry.in_link)
        if ref is None:
            return None
        html = await self.generate(ref)
        if not html:
            return None
        # reference images: the referencing node is replaced, not the definition
        node = entry.node
        node.kind = NodeKind.HTML
        node.value = html
        return node

    async def html_node(self, entry: Entry) -> Optional[Node]:
        node = entry.node
        if not node.value:
            return None

        soup = BeautifulSoup(node.value, 'html.parser')
        images = [img for img in soup.find_all('img') if IMAGE_CLASS not in (img.get('class') or [])]
        if not images:
            return None

        replaced = 0
        for img in images:
            src = img.get('src')
            if not src:
                logger.debug('<img> without src, leaving the whole HTML node alone')
                return None
            if not is_eligible(src):
                continue
            image = Node(NodeKind.IMAGE, url=src, alt=img.get('alt'), title=img.get('title'))
            in_link = entry.in_link or img.find_parent('a') is not None
            ref = build_image_ref(image, self.definitions, in_link)
            html = await self.generate(ref) if ref else None
            if not html:
                return None
            img.replace_with(BeautifulSoup(html, 'html.parser'))
            replaced += 1

        if not replaced:
            return None
        node.kind = NodeKind.HTML
        node.value = soup.decode(formatter='html')
        return node


async def transform(
    tree: Node,
    *,
    service: ImageService,
    files: Iterable[FileRecord] = (),
    parent_dir: Optional[str] = None,
    options: Optional[Options] = None,
    renderer: Optional[CaptionRenderer] = None,
) -> List[Node]:
    """Rewrite the images of ``tree`` in place and return the nodes that changed."""
    run = _Pass(
        definitions=build_definitions(tree),
        parent_dir=parent_dir,
        files=list(files),
        service=service,
        options=options or merge_options(),
        renderer=renderer,
    )
    found = discover(tree)

    image_nodes = await asyncio.gather(*(run.markdown_image(entry) for entry in found.images))
    html_nodes = await asyncio.gather(*(run.html_node(entry) for entry in found.html))

    changed = [node for node in list(image_nodes) + list(html_nodes) if node is not None]
    logger.debug('Replaced %d of %d image/HTML nodes', len(changed), len(found.images) + len(found.html))
    return changed


def transform_sync(tree: Node, **kwargs) -> List[Node]:
    """Blocking wrapper for synchronous hosts such as Pelican readers."""
    return asyncio.run(transform(tree, **kwargs))
