"""Build the HTML that replaces an image.

Layout, outermost first::

    <figure class="response-image-figure">          (only with a caption)
      <span class="response-image-wrapper">         (max-width = presentation width)
        <a class="response-image-link">             (unless already in a link)
          <span class="response-image-background-image"></span>   (aspect-ratio box)
          <img class="response-image-image">
        </a>
      </span>
      <figcaption class="response-image-figcaption">...</figcaption>
    </figure>

The background span reserves the image's height with a padding-bottom
percentage, so the page does not jump when the image loads.
"""
from __future__ import annotations

import logging
import re
from html import escape
from typing import Any, Mapping, Optional, Protocol

from .constants import (
    FIGCAPTION_CLASS,
    FIGURE_CLASS,
    IMAGE_BACKGROUND_CLASS,
    IMAGE_CLASS,
    IMAGE_LINK_CLASS,
    IMAGE_WRAPPER_CLASS,
    LOADING_VALUES,
)
from .options import Options
from .resolution import parse_image_url
from .service import FluidResult
from .tree import Node

logger = logging.getLogger(__name__)

IMAGE_STYLE = (
    'width:100%;height:100%;margin:0;vertical-align:middle;'
    'position:absolute;top:0;left:0;'
)
NON_ALNUM = re.compile(r'[^A-Za-z0-9]+')


class CaptionRenderer(Protocol):
    def parse_string(self, text: str) -> Any:
        ...

    def generate_html(self, parsed: Any) -> str:
        ...


def format_number(value: float) -> str:
    """Format like a template literal would: ``50.0 -> '50'``, ``66.6... -> '66.66666666666667'``."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def placeholder_ratio(aspect_ratio: float) -> str:
    return f'{format_number((1 / aspect_ratio) * 100)}%'


def default_alt(url: str) -> str:
    file_name = parse_image_url(url).url.rsplit('/', 1)[-1]
    stem = re.sub(r'\.[^/.]+$', '', file_name)
    return NON_ALNUM.sub(' ', stem)


def caption_text(node: Node, overrides: Mapping[str, str], options: Options) -> str:
    for source in options.show_captions:
        if source == 'title' and node.title:
            return node.title
        if source == 'alt':
            if overrides.get('alt'):
                return overrides['alt']
            if node.alt:
                return node.alt
    return ''


def image_caption(
    node: Node,
    overrides: Mapping[str, str],
    options: Options,
    renderer: Optional[CaptionRenderer] = None,
) -> str:
    text = caption_text(node, overrides, options)
    if not options.markdown_captions or renderer is None:
        return escape(text)
    return renderer.generate_html(renderer.parse_string(text))


def check_loading(loading: str) -> str:
    if loading not in LOADING_VALUES:
        logger.warning(
            '%s is an invalid value for the loading option. Please pass one of "lazy", "eager" or "auto".',
            loading,
        )
    return loading


def _img_tag(alt: str, title: str, result: FluidResult, loading: str) -> str:
    attrs = [
        f'class="{IMAGE_CLASS}"',
        f'alt="{alt}"',
        f'title="{title}"',
        f'src="{escape(result.src)}"',
    ]
    if result.src_set:
        attrs.append(f'srcset="{escape(result.src_set)}"')
    if result.sizes:
        attrs.append(f'sizes="{escape(result.sizes)}"')
    attrs.append(f'style="{IMAGE_STYLE}"')
    attrs.append(f'loading="{escape(loading)}"')
    return '<img\n    ' + '\n    '.join(attrs) + '\n  />'


def _picture(img_tag: str, result: FluidResult) -> str:
    sizes = f' sizes="{escape(result.sizes)}"' if result.sizes else ''
    return (
        '<picture>\n'
        f'  <source srcset="{escape(result.src_set_webp)}"{sizes} type="image/webp" />\n'
        f'  <source srcset="{escape(result.src_set)}"{sizes} />\n'
        f'  {img_tag}\n'
        '</picture>'
    )


def _background_span(result: FluidResult) -> str:
    style = (
        f'padding-bottom: {placeholder_ratio(result.aspect_ratio)}; '
        'position: relative; bottom: 0; left: 0; display: block;'
    )
    if result.traced_svg:
        style += f" background-image: url('{escape(result.traced_svg)}'); background-size: cover;"
    return f'<span\n  class="{IMAGE_BACKGROUND_CLASS}"\n  style="{style}"\n></span>'


def build_markup(
    node: Node,
    result: FluidResult,
    *,
    url: str,
    in_link: bool,
    options: Options,
    overrides: Optional[Mapping[str, str]] = None,
    renderer: Optional[CaptionRenderer] = None,
) -> str:
    """Render the replacement HTML for one image.

    ``node`` is the node that carries the URL (the definition for reference
    images); ``overrides`` hold values taken from the referencing node.
    """
    overrides = overrides or {}
    alt = escape(overrides.get('alt') or node.alt or default_alt(url))
    title = escape(node.title) if node.title else alt
    loading = check_loading(options.loading)

    img_tag = _img_tag(alt, title, result, loading)
    if options.with_webp and result.src_set_webp:
        img_tag = _picture(img_tag, result)

    wrapper_style = options.wrapper_style.resolve(result)
    caption = image_caption(node, overrides, options, renderer) if options.show_captions else ''

    html = f'{_background_span(result)}\n{img_tag}'

    if not in_link and options.link_images_to_original:
        html = (
            f'<a\n  class="{IMAGE_LINK_CLASS}"\n'
            f'  href="{escape(result.original_img)}"\n'
            '  style="display: block"\n'
            '  target="_blank"\n'
            '  rel="noopener"\n'
            f'>\n{html}\n</a>'
        )

    span_style = 'position: relative; display: block; margin-left: auto; margin-right: auto;'
    if not caption and wrapper_style:
        span_style += f' {wrapper_style}'
    span_style += f' max-width: {result.presentation_width}px;'
    html = f'<span\n  class="{IMAGE_WRAPPER_CLASS}"\n  style="{span_style}"\n>\n{html}\n</span>'

    if caption:
        html = (
            f'<figure class="{FIGURE_CLASS}" style="{wrapper_style}">\n'
            f'{html}\n'
            f'<figcaption class="{FIGCAPTION_CLASS}">{caption}</figcaption>\n'
            '</figure>'
        )
    return html
