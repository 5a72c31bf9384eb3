"""Pelican reader that renders markdown with fluid images.

It replaces Pelican's own markdown reader for ``.md`` files. Metadata uses
the usual header block::

    Title: Goblin hole, part 2
    Date: 2024-05-01
    Tags: photos, cave

    ![Looking up from the hole](../media/images/hole.jpg "Up")

Image paths are resolved against the directory of the article, and only
files found below the content ``PATH`` are processed.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pelican.readers import BaseReader
from pelican.utils import pelican_open

from .markdown import MarkdownCaptionRenderer, convert, create_parser
from .options import options_from_settings
from .service import FileRecord, PillowImageService, collect_image_files
from .transform import lookup_parent_dir

META_LINE = re.compile(r'^(?P<key>[A-Za-z0-9_-]+):\s*(?P<value>.*)$')
FENCES = ('---', '...')


@dataclass(frozen=True)
class SourceFile:
    dir: str


def source_file(source_path: str) -> SourceFile:
    return SourceFile(dir=Path(source_path).resolve().parent.as_posix())


def split_metadata(text: str) -> Tuple[Dict[str, str], str]:
    """Split a ``Key: value`` header block from the markdown body.

    Continuation lines are indented. The header ends at the first blank line
    (or a ``---``/``...`` fence). Text that does not open with a header is
    all body.
    """
    lines = text.splitlines()
    start = 1 if lines and lines[0].strip() == '---' else 0
    meta: Dict[str, str] = {}
    key: Optional[str] = None
    index = start
    while index < len(lines):
        line = lines[index]
        if not line.strip() or (index > start and line.strip() in FENCES):
            index += 1
            break
        match = META_LINE.match(line)
        if match:
            key = match.group('key').lower()
            meta[key] = match.group('value').strip()
        elif key and line[:1] in (' ', '\t'):
            meta[key] = f'{meta[key]}\n{line.strip()}'.strip()
        else:
            return {}, text
        index += 1
    else:
        # header only, no body
        return meta, ''
    return meta, '\n'.join(lines[index:])


class FluidMarkdownReader(BaseReader):
    enabled = True
    file_extensions = ['md', 'markdown', 'mkd', 'mdown']

    def __init__(self, settings):
        super().__init__(settings)
        self.md = create_parser()
        self.options = options_from_settings(settings)
        self.service = PillowImageService.from_settings(settings)
        self.renderer = MarkdownCaptionRenderer(self.md)
        self._files: Optional[List[FileRecord]] = None

    @property
    def files(self) -> List[FileRecord]:
        if self._files is None:
            self._files = collect_image_files(self.settings.get('PATH', 'content'))
        return self._files

    def read(self, source_path):
        with pelican_open(source_path) as text:
            header, body = split_metadata(text)

        metadata = {}
        for name, value in header.items():
            if name == 'summary':
                value = self.md.render(value)
            metadata[name] = self.process_metadata(name, value)

        content = convert(
            body,
            md=self.md,
            service=self.service,
            files=self.files,
            parent_dir=lookup_parent_dir(source_file, source_path),
            options=self.options,
            renderer=self.renderer,
        )
        return content, metadata


def add_reader(readers):
    for ext in FluidMarkdownReader.file_extensions:
        readers.reader_classes[ext] = FluidMarkdownReader
