"""Shared constants, regex patterns, and attribute configuration.

Centralizes the patterns and configuration shared across analysis,
manifest generation and the output (merge) modules.
"""

import re

# ── Bundler Defaults ─────────────────────────────────────────────────────

DEFAULT_SHARED_BUNDLE_PREFIX = 'shared_bundle_'
DEFAULT_MIN_ENTRYPOINTS = 2

# Marker attribute on the hidden container that collects order-sensitive
# content (imports, scripts, styles) of a bundle.
HIDDEN_DIV_ATTR = 'by-html-bundler'

# ── Link Relations ───────────────────────────────────────────────────────

REL_IMPORT = 'import'
REL_LAZY_IMPORT = 'lazy-import'
REL_STYLESHEET = 'stylesheet'

# Script types treated as JavaScript (absent type attribute included).
JS_SCRIPT_TYPES = frozenset({
    '',
    'module',
    'text/javascript',
    'application/javascript',
    'text/ecmascript',
    'application/ecmascript',
})

# ── URL Patterns ─────────────────────────────────────────────────────────

# {{binding}} and [[binding]] expressions must never be resolved as URLs.
TEMPLATE_EXPRESSION_RE = re.compile(r'\{\{|\[\[')

# url(...) references in CSS, optionally quoted.
CSS_URL_RE = re.compile(r"url\(\s*([\"']?)([^)\"']+)\1\s*\)", re.IGNORECASE)

# Trailing source map reference in a script.
SOURCE_MAPPING_URL_RE = re.compile(r'(//[#@]\s*sourceMappingURL=)(\S+)')

# Closing script tag inside inlined script content.
CLOSING_SCRIPT_RE = re.compile(r'</script', re.IGNORECASE)

# ── Rewritable Attributes ────────────────────────────────────────────────
#
# Attributes holding URLs that must be rebased when content moves to a
# document at a different location.

URL_ATTRIBUTES: tuple[str, ...] = (
    'action',
    'assetpath',
    'background',
    'href',
    'poster',
    'src',
)

# Elements unwrapped when an imported document is inlined.
DOCUMENT_WRAPPER_TAGS: tuple[str, ...] = ('html', 'head', 'body')

# Comments kept (once each) when comment stripping is enabled.
LICENSE_COMMENT_RE = re.compile(r'@license', re.IGNORECASE)
