"""Configuration utility for Stylus Bundler."""

import os

# Project version
VERSION = "1.0.0"

# Default directories
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.path.join(BASE_DIR, 'data')

# Vendor-prefix database
RULESET_FILE = os.path.join(DATA_DIR, 'prefixes.json')
DEFAULT_BROWSERS = 'defaults'
BROWSERSLIST_FILES = ['.browserslistrc', 'browserslist']

# Import depth (mixin expansion and nested imports)
MAX_IMPORT_DEPTH = 64

# Supported file extensions
STYL_EXTENSIONS = ['.styl']
CSS_EXTENSIONS = ['.css']
SOURCE_EXTENSIONS = STYL_EXTENSIONS + CSS_EXTENSIONS

# Path of CSS compiled from a string; never looked up on disk
STRING_SOURCE = '<string>.css'

# MIME types used when inlining url() resources
MIME_TYPES = {
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.gif': 'image/gif',
    '.svg': 'image/svg+xml',
    '.webp': 'image/webp',
    '.ico': 'image/x-icon',
    '.bmp': 'image/bmp',
    '.woff': 'font/woff',
    '.woff2': 'font/woff2',
    '.ttf': 'font/ttf',
    '.otf': 'font/otf',
    '.eot': 'application/vnd.ms-fontobject',
}
FALLBACK_MIME_TYPE = 'application/octet-stream'
SVG_CHARSET = 'US-ASCII'

# Source maps
SOURCE_MAP_SUFFIX = '.css.map'
SOURCE_MAP_MIME_TYPE = 'application/json'

# Logging
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
LOG_LEVEL = 'INFO'

# Exported config
__all__ = [
    'VERSION', 'BASE_DIR', 'DATA_DIR',
    'RULESET_FILE', 'DEFAULT_BROWSERS', 'BROWSERSLIST_FILES',
    'MAX_IMPORT_DEPTH',
    'STYL_EXTENSIONS', 'CSS_EXTENSIONS', 'SOURCE_EXTENSIONS', 'STRING_SOURCE',
    'MIME_TYPES', 'FALLBACK_MIME_TYPE', 'SVG_CHARSET',
    'SOURCE_MAP_SUFFIX', 'SOURCE_MAP_MIME_TYPE',
    'LOG_FORMAT', 'LOG_DATE_FORMAT', 'LOG_LEVEL',
]
