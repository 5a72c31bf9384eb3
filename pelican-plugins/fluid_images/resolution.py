"""Turn an image node into the local file it points at.

Every failure here is a skip: the helpers return ``None`` and the caller
leaves the node alone. A document with a broken image still builds.
"""
from __future__ import annotations

import logging
import posixpath
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Optional, Tuple
from urllib.parse import unquote

from .constants import SKIPPED_EXTENSIONS
from .service import FileRecord
from .tree import Node

logger = logging.getLogger(__name__)

SCHEME = re.compile(r'^[a-zA-Z][a-zA-Z\d+\-.]*:')


@dataclass(frozen=True)
class ImageInfo:
    url: str
    query: str = ''
    ext: str = ''


@dataclass
class ImageRef:
    """What the markup step needs to know about one image."""

    node: Node
    url: str
    query: str = ''
    ext: str = ''
    overrides: Dict[str, str] = field(default_factory=dict)
    in_link: bool = False


def parse_image_url(uri: str) -> ImageInfo:
    url, _, query = uri.partition('?')
    url = url.partition('#')[0]
    query = query.partition('#')[0]
    name = url.rsplit('/', 1)[-1]
    ext = name.rsplit('.', 1)[-1].lower() if '.' in name.lstrip('.') else ''
    return ImageInfo(url=url, query=query, ext=ext)


def is_relative_url(url: str) -> bool:
    return not SCHEME.match(url)


def is_eligible(url: Optional[str]) -> bool:
    if not url:
        return False
    return is_relative_url(url) and parse_image_url(url).ext not in SKIPPED_EXTENSIONS


def resolve_reference(
    node: Node, definitions: Callable[[Optional[str]], Optional[Node]]
) -> Optional[Tuple[Node, Dict[str, str]]]:
    """Return the node holding the URL plus any overrides from the referencing node.

    Plain image nodes resolve to themselves. A reference with no matching
    definition resolves to ``None``.
    """
    if node.url is not None or node.identifier is None:
        return node, {}
    definition = definitions(node.identifier)
    if definition is None:
        logger.debug('No definition for image reference %r', node.identifier)
        return None
    overrides = {}
    if node.alt:
        overrides['alt'] = node.alt
    return definition, overrides


def build_image_ref(
    node: Node,
    definitions: Callable[[Optional[str]], Optional[Node]],
    in_link: bool = False,
) -> Optional[ImageRef]:
    resolved = resolve_reference(node, definitions)
    if resolved is None:
        return None
    target, overrides = resolved
    if not is_eligible(target.url):
        logger.debug('Leaving %r alone (external, gif or svg)', target.url)
        return None
    info = parse_image_url(target.url)
    return ImageRef(
        node=target,
        url=info.url,
        query=info.query,
        ext=info.ext,
        overrides=overrides,
        in_link=in_link,
    )


def resolve_image_path(parent_dir: str, url: str) -> str:
    base = parent_dir.replace('\\', '/').rstrip('/')
    return posixpath.normpath(f'{base}/{unquote(url)}'.replace('\\', '/'))


def find_file(files: Iterable[FileRecord], path: str) -> Optional[FileRecord]:
    for file in files:
        if file and file.absolute_path and file.absolute_path == path:
            return file
    return None


def resolve_file(
    ref: ImageRef,
    parent_dir: Optional[str],
    files: Iterable[FileRecord],
) -> Optional[FileRecord]:
    if not parent_dir:
        logger.debug('Document has no parent directory, skipping %s', ref.url)
        return None
    path = resolve_image_path(parent_dir, ref.url)
    file = find_file(files, path)
    if file is None:
        logger.debug('No file found at %s', path)
    return file
