# --- Site Information ---
SITENAME = 'eloise.rip'
SITEURL = 'https://eloise.rip'
SITESUBTITLE = 'from the goblin hole 🕳'

# --- Paths ---
PATH = 'content'
ARTICLE_PATHS = ['articles']
PAGE_PATHS = ['pages']
STATIC_PATHS = ['media', 'extra']
OUTPUT_PATH = 'output'

# --- Content Settings ---
TIMEZONE = 'UTC'
DEFAULT_LANG = 'en'
ARTICLE_SAVE_AS = 'blog/{slug}.html'
ARTICLE_URL = 'blog/{slug}.html'
PAGE_SAVE_AS = '{slug}.html'
PAGE_URL = '{slug}.html'
DELETE_OUTPUT_DIRECTORY = True

# --- Plugins ---
PLUGIN_PATHS = ['pelican-plugins']
PLUGINS = ['fluid_images']

# Fluid images: markdown images become responsive, aspect-ratio boxes
FLUID_IMAGES = {
    'max_width': 590,
    'to_format': 'jpg',
    'link_images_to_original': True,
    'show_captions': ['title', 'alt'],
    'markdown_captions': True,
    'with_webp': True,
    'loading': 'lazy',
}
FLUID_IMAGES_PATH_PREFIX = ''
FLUID_IMAGES_OUTPUT_DIR = 'static/fluid'

# Stylesheet written at the end of the build by the typography hook
TYPOGRAPHY_CSS_PATH = 'theme/css/typography.css'

# --- URL Settings ---
RELATIVE_URLS = True
