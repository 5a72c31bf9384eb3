"""Class names and defaults shared by the markup and the theme."""
from __future__ import annotations

DEFAULT_OPTIONS = {
    'max_width': 590,
    'to_format': 'jpg',
    'grayscale': False,
    'wrapper_style': '',
    'background_color': 'white',
    'link_images_to_original': True,
    'show_captions': False,
    'markdown_captions': False,
    'with_webp': False,
    'traced_svg': False,
    'loading': 'lazy',
}

IMAGE_CLASS = 'response-image-image'
IMAGE_WRAPPER_CLASS = 'response-image-wrapper'
IMAGE_BACKGROUND_CLASS = 'response-image-background-image'
IMAGE_LINK_CLASS = 'response-image-link'
FIGURE_CLASS = 'response-image-figure'
FIGCAPTION_CLASS = 'response-image-figcaption'

LOADING_VALUES = ('lazy', 'eager', 'auto')
CAPTION_SOURCES = ('title', 'alt')

# gifs can't be resized, svgs are already responsive
SKIPPED_EXTENSIONS = frozenset({'gif', 'svg'})
