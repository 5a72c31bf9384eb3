"""Typography theme for the site.

A theme is a frozen value: build it once, hand it to whatever renders CSS.
``site_typography()`` is the one the site uses; it starts from the
Wordpress 2016 theme, drops the Google fonts and switches to Georgia. It also
stops the link underline shadow from showing under fluid images.

Set ``TYPOGRAPHY_CSS_PATH = 'theme/css/typography.css'`` to have the plugin
write the stylesheet into the output directory at the end of the build.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Mapping, Tuple

from .constants import IMAGE_LINK_CLASS
from .markup import format_number

logger = logging.getLogger(__name__)

Declarations = Tuple[Tuple[str, str], ...]
Styles = Tuple[Tuple[str, Declarations], ...]


def freeze_styles(styles: Mapping[str, Mapping[str, str]]) -> Styles:
    return tuple((selector, tuple(decls.items())) for selector, decls in styles.items())


@dataclass(frozen=True)
class TypographyTheme:
    base_font_size: str = '16px'
    base_line_height: float = 1.45
    scale_ratio: float = 2.0
    header_font_family: Tuple[str, ...] = ('Georgia', 'serif')
    body_font_family: Tuple[str, ...] = ('Georgia', 'serif')
    header_color: str = 'inherit'
    body_color: str = 'hsla(0,0%,0%,0.8)'
    header_weight: int = 700
    body_weight: int = 400
    bold_weight: int = 700
    google_fonts: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()
    override_styles: Styles = field(default_factory=tuple)

    @property
    def base_font_px(self) -> float:
        return float(self.base_font_size.rstrip('px'))

    def with_overrides(self, **changes) -> 'TypographyTheme':
        styles = changes.get('override_styles')
        if isinstance(styles, Mapping):
            changes['override_styles'] = freeze_styles(styles)
        return replace(self, **changes)


WORDPRESS_2016 = TypographyTheme(
    base_font_size='21px',
    base_line_height=1.75,
    scale_ratio=5 / 2,
    header_font_family=('Merriweather', 'Georgia', 'serif'),
    body_font_family=('Merriweather', 'Georgia', 'serif'),
    body_color='hsla(0,0%,0%,0.9)',
    header_weight=900,
    body_weight=400,
    bold_weight=700,
    google_fonts=(
        ('Montserrat', ('900',)),
        ('Merriweather', ('400', '400i', '700', '700i', '900', '900i')),
    ),
    override_styles=freeze_styles({
        'h1': {'font-family': 'Montserrat, sans-serif'},
        'blockquote': {
            'color': 'hsla(0,0%,0%,0.59)',
            'font-style': 'italic',
            'padding-left': '1.3125rem',
            'margin-left': '-1.75rem',
            'border-left': '0.328rem solid hsla(0,0%,0%,0.9)',
        },
        'a': {
            'box-shadow': '0 1px 0 0 currentColor',
            'color': '#007acc',
            'text-decoration': 'none',
        },
        'a:hover,a:active': {'box-shadow': 'none'},
    }),
)


def site_typography(base: TypographyTheme = WORDPRESS_2016) -> TypographyTheme:
    # replaces the base theme's overrides, it does not extend them
    styles = {
        f'a.{IMAGE_LINK_CLASS}': {'box-shadow': 'none'},
        'img': {'filter': 'sepia(1) hue-rotate(170deg)'},
    }
    return base.with_overrides(
        google_fonts=(),
        header_font_family=('Georgia', 'serif'),
        body_font_family=('Georgia', 'serif'),
        override_styles=styles,
    )


def rhythm(theme: TypographyTheme, lines: float = 1) -> str:
    """Vertical rhythm unit: ``lines`` base line heights, in rem."""
    return f'{format_number(round(lines * theme.base_line_height, 4))}rem'


def scale(theme: TypographyTheme, value: float = 0) -> Dict[str, str]:
    """Font size ``scale_ratio ** value`` with a line height snapped to half rhythm lines."""
    ratio = theme.scale_ratio ** value
    font_px = theme.base_font_px * ratio
    line_px = theme.base_font_px * theme.base_line_height
    lines = math.ceil(2 * font_px / line_px) / 2
    return {
        'font-size': f'{format_number(round(ratio, 4))}rem',
        'line-height': format_number(round(lines * line_px / font_px, 4)),
    }


def _font_stack(families: Tuple[str, ...]) -> str:
    return ', '.join(f"'{name}'" if ' ' in name else name for name in families)


def _block(selector: str, declarations) -> str:
    body = ''.join(f'  {prop}: {value};\n' for prop, value in declarations)
    return f'{selector} {{\n{body}}}\n'


def to_css(theme: TypographyTheme) -> str:
    parts = []
    if theme.google_fonts:
        families = '|'.join(
            f"{name.replace(' ', '+')}:{','.join(styles)}" for name, styles in theme.google_fonts
        )
        parts.append(f"@import url('https://fonts.googleapis.com/css?family={families}');\n")

    base_pct = format_number(round(theme.base_font_px / 16 * 100, 4))
    parts.append(_block('html', (
        ('font', f'{theme.body_weight} {base_pct}%/{format_number(theme.base_line_height)} '
                 f'{_font_stack(theme.body_font_family)}'),
        ('box-sizing', 'border-box'),
    )))
    parts.append(_block('body', (
        ('color', theme.body_color),
        ('font-family', _font_stack(theme.body_font_family)),
        ('font-weight', str(theme.body_weight)),
        ('word-wrap', 'break-word'),
    )))
    header_scales = {'h1': 1, 'h2': 0.6, 'h3': 0.4, 'h4': 0, 'h5': -0.2, 'h6': -0.3}
    for tag, value in header_scales.items():
        sized = scale(theme, value)
        parts.append(_block(tag, (
            ('color', theme.header_color),
            ('font-family', _font_stack(theme.header_font_family)),
            ('font-weight', str(theme.header_weight)),
            ('font-size', sized['font-size']),
            ('line-height', sized['line-height']),
            ('margin-bottom', rhythm(theme, 1)),
        )))
    parts.append(_block('p,ul,ol,blockquote,figure,pre,table', (
        ('margin-top', '0'),
        ('margin-bottom', rhythm(theme, 1)),
    )))
    parts.append(_block('b,strong', (('font-weight', str(theme.bold_weight)),)))
    for selector, declarations in theme.override_styles:
        parts.append(_block(selector, declarations))
    return '\n'.join(parts)


def write_typography_css(pelican) -> None:
    """``finalized`` hook: write the site stylesheet if TYPOGRAPHY_CSS_PATH is set."""
    relative = pelican.settings.get('TYPOGRAPHY_CSS_PATH')
    if not relative:
        return
    target = Path(pelican.output_path) / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(to_css(site_typography()), encoding='utf-8')
    logger.info('Wrote typography stylesheet to %s', target)
