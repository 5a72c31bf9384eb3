"""Image service used to produce fluid (multi-width) images.

The transform only needs something with an async ``fluid(file, options)``
method. ``PillowImageService`` is the one the Pelican plugin uses: it writes
every width variant under ``OUTPUT_PATH/static/fluid/<digest>/`` and returns
the URLs and numbers the markup needs.

Requirements:
    - Pillow
    - pillow-heif for HEIC/HEIF sources
"""
from __future__ import annotations

import asyncio
import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, List, Optional, Protocol, Tuple

from PIL import Image, ImageColor, ImageOps  # type: ignore
import pillow_heif  # type: ignore

if TYPE_CHECKING:
    from .options import Options

pillow_heif.register_heif_opener()  # pragma: no cover - registration has no return

logger = logging.getLogger(__name__)

IMAGE_EXT = {'.jpg', '.jpeg', '.png', '.webp', '.tif', '.tiff', '.bmp', '.heic', '.heif', '.gif', '.svg'}

# (width multiplier of max_width) used to build the srcset
FLUID_BREAKPOINTS = (0.25, 0.5, 1, 1.5, 2, 3)

PIL_FORMATS = {
    'jpg': 'JPEG',
    'jpeg': 'JPEG',
    'png': 'PNG',
    'webp': 'WEBP',
    'tif': 'TIFF',
    'tiff': 'TIFF',
    'bmp': 'BMP',
    'heic': 'JPEG',
    'heif': 'JPEG',
}
EXTENSIONS = {'JPEG': 'jpg', 'PNG': 'png', 'WEBP': 'webp', 'TIFF': 'tif', 'BMP': 'bmp'}
ALPHA_FORMATS = {'PNG', 'WEBP', 'TIFF'}
QUALITY = 85


class ImageServiceError(Exception):
    """Raised when a source image cannot be turned into fluid variants."""


@dataclass(frozen=True)
class FileRecord:
    absolute_path: str
    relative_path: Optional[str] = None


@dataclass(frozen=True)
class FluidResult:
    original_img: str
    src: str
    src_set: str
    presentation_width: int
    aspect_ratio: float
    sizes: str = ''
    src_set_webp: Optional[str] = None
    traced_svg: Optional[str] = None


class ImageService(Protocol):
    async def fluid(self, file: FileRecord, options: 'Options') -> Optional[FluidResult]:
        ...


def collect_image_files(root, extensions: Iterable[str] = IMAGE_EXT) -> List[FileRecord]:
    """Return a FileRecord for every image below ``root``."""
    root = Path(root)
    if not root.is_dir():
        return []
    wanted = {ext.lower() for ext in extensions}
    records = []
    for path in sorted(root.rglob('*')):
        if path.is_file() and path.suffix.lower() in wanted:
            records.append(FileRecord(
                absolute_path=path.resolve().as_posix(),
                relative_path=path.relative_to(root).as_posix(),
            ))
    return records


def fluid_widths(max_width: int, original_width: int) -> List[int]:
    """Widths to generate: the breakpoints below the original, plus the original."""
    widths = {round(max_width * factor) for factor in FLUID_BREAKPOINTS}
    widths = {w for w in widths if 0 < w < original_width}
    widths.add(original_width)
    return sorted(widths)


def _flatten(img: Image.Image, background_color: str) -> Image.Image:
    """Composite transparent images onto ``background_color``."""
    if img.mode in ('RGBA', 'LA') or (img.mode == 'P' and 'transparency' in img.info):
        rgba = img.convert('RGBA')
        canvas = Image.new('RGB', rgba.size, ImageColor.getrgb(background_color))
        canvas.paste(rgba, mask=rgba.split()[-1])
        return canvas
    if img.mode not in ('RGB', 'L'):
        return img.convert('RGB')
    return img


class PillowImageService:
    def __init__(self, output_path, url_prefix: str = 'static/fluid'):
        self.output_path = Path(output_path)
        self.url_prefix = url_prefix.strip('/')

    @classmethod
    def from_settings(cls, settings) -> 'PillowImageService':
        return cls(
            settings.get('OUTPUT_PATH', 'output'),
            settings.get('FLUID_IMAGES_OUTPUT_DIR', 'static/fluid'),
        )

    async def fluid(self, file: FileRecord, options: 'Options') -> Optional[FluidResult]:
        source = Path(file.absolute_path)
        if not source.is_file():
            return None
        try:
            return await asyncio.to_thread(self._process, source, options)
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise ImageServiceError(f'{source}: {exc}') from exc

    def _target_format(self, source: Path, options: 'Options') -> str:
        wanted = (options.to_format or source.suffix.lstrip('.')).lower()
        try:
            return PIL_FORMATS[wanted]
        except KeyError:
            raise ImageServiceError(f'Unsupported output format {wanted!r} for {source.name}') from None

    def _digest(self, source: Path, options: 'Options') -> str:
        stat = source.stat()
        key = '|'.join(str(part) for part in (
            source.as_posix(), stat.st_mtime_ns, stat.st_size,
            options.max_width, options.to_format, options.grayscale, options.background_color,
        ))
        return hashlib.sha1(key.encode('utf-8')).hexdigest()[:12]

    def _url(self, options: 'Options', digest: str, name: str) -> str:
        return f'{options.path_prefix}/{self.url_prefix}/{digest}/{name}'

    def _write_variants(
        self, img: Image.Image, widths: List[int], fmt: str, stem: str,
        digest: str, options: 'Options',
    ) -> List[Tuple[int, str]]:
        out_dir = self.output_path / self.url_prefix / digest
        out_dir.mkdir(parents=True, exist_ok=True)
        ext = EXTENSIONS[fmt]
        variants = []
        for width in widths:
            height = max(1, round(width * img.height / img.width))
            name = f'{stem}-{width}.{ext}'
            if width == img.width:
                resized = img
            else:
                resized = img.resize((width, height), Image.Resampling.LANCZOS)
            save_kwargs = {'quality': QUALITY} if fmt in ('JPEG', 'WEBP') else {}
            resized.save(out_dir / name, format=fmt, **save_kwargs)
            variants.append((width, self._url(options, digest, name)))
        return variants

    def _process(self, source: Path, options: 'Options') -> FluidResult:
        fmt = self._target_format(source, options)
        digest = self._digest(source, options)
        stem = source.stem

        with Image.open(source) as opened:
            img = ImageOps.exif_transpose(opened)
            img.load()
        if options.grayscale:
            img = img.convert('LA' if 'A' in img.getbands() else 'L')
        if fmt not in ALPHA_FORMATS:
            img = _flatten(img, options.background_color)

        width, height = img.size
        if not width or not height:
            raise ImageServiceError(f'{source.name} has no pixels')

        widths = fluid_widths(options.max_width, width)
        variants = self._write_variants(img, widths, fmt, stem, digest, options)
        logger.debug('Wrote %d fluid variants for %s', len(variants), source.name)

        src_set_webp = None
        if options.with_webp and fmt != 'WEBP':
            webp = self._write_variants(img, widths, 'WEBP', stem, digest, options)
            src_set_webp = ',\n'.join(f'{url} {w}w' for w, url in webp)
        if options.traced_svg:
            logger.debug('traced_svg is not supported by the Pillow service; %s gets no trace', source.name)

        presentation_width = min(options.max_width, width)
        fallback = min(variants, key=lambda variant: abs(options.max_width - variant[0]))
        return FluidResult(
            original_img=variants[-1][1],
            src=fallback[1],
            src_set=',\n'.join(f'{url} {w}w' for w, url in variants),
            presentation_width=presentation_width,
            aspect_ratio=width / height,
            sizes=f'(max-width: {presentation_width}px) 100vw, {presentation_width}px',
            src_set_webp=src_set_webp,
        )
