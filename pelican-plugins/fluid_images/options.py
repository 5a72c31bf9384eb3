"""Plugin options.

Options are merged once per invocation, in this order of precedence::

    caller overrides  >  path prefix  >  DEFAULT_OPTIONS

and frozen afterwards. In ``pelicanconf.py`` they live in a single dict::

    FLUID_IMAGES = {
        'max_width': 720,
        'show_captions': ['title', 'alt'],
        'wrapper_style': lambda result: f'width: {result.presentation_width}px;',
    }
    FLUID_IMAGES_PATH_PREFIX = ''

The camelCase names (``maxWidth``, ``showCaptions`` ...) are accepted too.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Tuple, Union

from .constants import CAPTION_SOURCES, DEFAULT_OPTIONS

if TYPE_CHECKING:
    from .service import FluidResult


class OptionsError(ValueError):
    """Raised when the plugin configuration cannot be understood."""


@dataclass(frozen=True)
class StaticStyle:
    value: str = ''

    def resolve(self, result: 'FluidResult') -> str:
        return self.value


@dataclass(frozen=True)
class ComputedStyle:
    func: Callable[['FluidResult'], str]

    def resolve(self, result: 'FluidResult') -> str:
        return self.func(result)


WrapperStyle = Union[StaticStyle, ComputedStyle]


@dataclass(frozen=True)
class Options:
    max_width: int = DEFAULT_OPTIONS['max_width']
    to_format: str = DEFAULT_OPTIONS['to_format']
    grayscale: bool = DEFAULT_OPTIONS['grayscale']
    wrapper_style: WrapperStyle = field(default_factory=StaticStyle)
    background_color: str = DEFAULT_OPTIONS['background_color']
    link_images_to_original: bool = DEFAULT_OPTIONS['link_images_to_original']
    show_captions: Tuple[str, ...] = ()
    markdown_captions: bool = DEFAULT_OPTIONS['markdown_captions']
    with_webp: bool = DEFAULT_OPTIONS['with_webp']
    traced_svg: bool = DEFAULT_OPTIONS['traced_svg']
    loading: str = DEFAULT_OPTIONS['loading']
    path_prefix: str = ''


_ALIASES = {
    'maxWidth': 'max_width',
    'toFormat': 'to_format',
    'wrapperStyle': 'wrapper_style',
    'backgroundColor': 'background_color',
    'linkImagesToOriginal': 'link_images_to_original',
    'showCaptions': 'show_captions',
    'markdownCaptions': 'markdown_captions',
    'withWebp': 'with_webp',
    'tracedSVG': 'traced_svg',
    'pathPrefix': 'path_prefix',
}


def _wrapper_style(value: Any) -> WrapperStyle:
    if isinstance(value, (StaticStyle, ComputedStyle)):
        return value
    if value is None:
        return StaticStyle('')
    if isinstance(value, str):
        return StaticStyle(value)
    if callable(value):
        return ComputedStyle(value)
    raise OptionsError(f'wrapper_style must be a string or a callable, got {type(value).__name__}')


def _caption_sources(value: Any) -> Tuple[str, ...]:
    if value is True:
        return CAPTION_SOURCES
    if not value:
        return ()
    if isinstance(value, str):
        value = [value]
    sources = tuple(value)
    for source in sources:
        if source not in CAPTION_SOURCES:
            raise OptionsError(
                f'show_captions entries must be one of {", ".join(CAPTION_SOURCES)}, got {source!r}'
            )
    return sources


def merge_options(
    overrides: Optional[Mapping[str, Any]] = None, path_prefix: str = ''
) -> Options:
    merged = dict(DEFAULT_OPTIONS)
    merged['path_prefix'] = path_prefix or ''
    for key, value in (overrides or {}).items():
        name = _ALIASES.get(key, key)
        if name not in merged:
            raise OptionsError(f'Unknown fluid_images option: {key!r}')
        merged[name] = value

    try:
        max_width = int(merged['max_width'])
    except (TypeError, ValueError) as exc:
        raise OptionsError(f'max_width must be an integer, got {merged["max_width"]!r}') from exc
    if max_width <= 0:
        raise OptionsError(f'max_width must be positive, got {max_width}')

    merged['max_width'] = max_width
    merged['wrapper_style'] = _wrapper_style(merged['wrapper_style'])
    merged['show_captions'] = _caption_sources(merged['show_captions'])
    merged['path_prefix'] = (merged['path_prefix'] or '').rstrip('/')
    return Options(**merged)


def options_from_settings(settings: Mapping[str, Any]) -> Options:
    """Build options from Pelican settings."""
    return merge_options(
        settings.get('FLUID_IMAGES') or {},
        settings.get('FLUID_IMAGES_PATH_PREFIX', ''),
    )
