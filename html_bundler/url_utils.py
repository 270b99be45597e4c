"""URL helpers shared by the analyzer, the manifest filters and the inliner.

URLs are POSIX-style paths relative to the project root (``"a/b.html"``).
Anything carrying a scheme or starting with ``//`` is absolute and is never
resolved or rewritten.
"""

import posixpath
from urllib.parse import urlsplit, urlunsplit

from html_bundler.domain.constants import TEMPLATE_EXPRESSION_RE


def is_absolute_url(url: str) -> bool:
    """True for ``scheme:...`` and protocol-relative ``//host/...`` URLs."""
    return bool(urlsplit(url).scheme) or url.startswith('//')


def is_template_expression(url: str) -> bool:
    return bool(TEMPLATE_EXPRESSION_RE.search(url))


def is_rewritable_url(url: str) -> bool:
    """Whether a raw attribute value is a relative reference we may rewrite."""
    url = url.strip()
    if not url or url.startswith('#'):
        return False
    return not (is_absolute_url(url) or is_template_expression(url))


def resolve_url(base_url: str, href: str) -> str:
    """Resolve ``href`` as written in a document located at ``base_url``.

    A leading ``/`` is relative to the project root. Query strings and
    fragments are kept.
    """
    href = href.strip()
    if not is_rewritable_url(href):
        return href
    parts = urlsplit(href)
    if parts.path.startswith('/'):
        joined = parts.path.lstrip('/')
    elif not parts.path:
        joined = base_url
    else:
        joined = posixpath.join(posixpath.dirname(base_url), parts.path)
    path = posixpath.normpath(joined) if joined else joined
    if path == '.':
        path = ''
    if parts.path.endswith('/') and path and not path.endswith('/'):
        path += '/'
    return urlunsplit(('', '', path, parts.query, parts.fragment))


def relative_url(from_url: str, to_url: str) -> str:
    """Href that, written in a document at ``from_url``, resolves to ``to_url``."""
    if not is_rewritable_url(to_url):
        return to_url
    parts = urlsplit(to_url)
    from_dir = posixpath.dirname(from_url) or '.'
    path = posixpath.relpath(parts.path or '.', from_dir)
    if parts.path.endswith('/') and not path.endswith('/'):
        path += '/'
    return urlunsplit(('', '', path, parts.query, parts.fragment))


def rebase_url(href: str, old_base: str, new_base: str) -> str:
    """Rewrite an href authored at ``old_base`` so it keeps resolving at ``new_base``."""
    if not is_rewritable_url(href):
        return href
    return relative_url(new_base, resolve_url(old_base, href))


def relative_dir(from_url: str, to_url: str) -> str:
    """Directory of ``to_url`` expressed relative to the directory of ``from_url``.

    Returns an empty string when both live in the same directory, otherwise a
    path ending with ``/``.
    """
    from_dir = posixpath.dirname(from_url) or '.'
    to_dir = posixpath.dirname(to_url) or '.'
    path = posixpath.relpath(to_dir, from_dir)
    if path == '.':
        return ''
    return path + '/'


def strip_url(url: str) -> str:
    """Drop query string and fragment (for file lookups)."""
    parts = urlsplit(url)
    return parts.path if not is_absolute_url(url) else url


def is_excluded(url: str, excludes) -> bool:
    """True when ``url`` equals an exclude or lives below it as a folder.

    ``"a"`` and ``"a/"`` both exclude ``"a/b.html"``; neither excludes
    ``"ab.html"``.
    """
    for exclude in excludes:
        if url == exclude:
            return True
        folder = exclude if exclude.endswith('/') else exclude + '/'
        if url.startswith(folder):
            return True
    return False
