"""
Fluid Images Plugin for Pelican

This plugin renders markdown with a reader that turns relative image
references into responsive, aspect-ratio preserving markup.

It converts:
  ![Alt text](../media/image.jpg "Title")

To:
  <span class="response-image-wrapper" style="... max-width: 590px;">
    <a class="response-image-link" href="/static/fluid/<digest>/image-1200.jpg" ...>
      <span class="response-image-background-image" style="padding-bottom: 66.6%; ..."></span>
      <img class="response-image-image" alt="Alt text" title="Title"
           src="/static/fluid/<digest>/image-590.jpg" srcset="..." sizes="..." loading="lazy" />
    </a>
  </span>

<img> tags inside raw HTML blocks are converted the same way. External
images, gifs and svgs are left alone.

Settings (pelicanconf.py):
    FLUID_IMAGES = {'max_width': 590, 'show_captions': True, ...}
    FLUID_IMAGES_PATH_PREFIX = ''
    FLUID_IMAGES_OUTPUT_DIR = 'static/fluid'
    TYPOGRAPHY_CSS_PATH = 'theme/css/typography.css'
"""
from pelican import signals

from .markdown import convert, parse_document
from .options import Options, OptionsError, merge_options, options_from_settings
from .reader import FluidMarkdownReader, add_reader
from .service import FileRecord, FluidResult, ImageServiceError, PillowImageService
from .transform import transform, transform_sync
from .tree import Node, NodeKind
from .typography import site_typography, write_typography_css


def register():
    """Register the plugin with Pelican."""
    signals.readers_init.connect(add_reader)
    signals.finalized.connect(write_typography_css)


__all__ = [
    'FileRecord',
    'FluidMarkdownReader',
    'FluidResult',
    'ImageServiceError',
    'Node',
    'NodeKind',
    'Options',
    'OptionsError',
    'PillowImageService',
    'convert',
    'merge_options',
    'options_from_settings',
    'parse_document',
    'register',
    'site_typography',
    'transform',
    'transform_sync',
]
