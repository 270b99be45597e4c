"""Hook point for remapping embedded source locations after a merge.

Translating line/column mappings into the merged document's coordinate space
is delegated to a ``SourcemapRemapper``: a callable taking the pre-merge
document and the merged tree and returning the tree to emit. Only the URL of
``sourceMappingURL`` comments in inlined scripts is handled here.
"""

import logging

from bs4 import BeautifulSoup

from html_bundler.analysis.document import Document
from html_bundler.domain.constants import SOURCE_MAPPING_URL_RE
from html_bundler.url_utils import rebase_url

logger = logging.getLogger(__name__)


def keep_source_locations(document: Document, ast: BeautifulSoup) -> BeautifulSoup:
    """Default remapper: emit the merged tree as is."""
    logger.debug("No source location remapping for %s", document.url)
    return ast


def rebase_sourcemap_url(script: str, script_url: str, bundle_url: str) -> str:
    """Keep a relative ``sourceMappingURL`` resolving once the script is inlined."""
    def repl(m) -> str:
        return m.group(1) + rebase_url(m.group(2), script_url, bundle_url)
    return SOURCE_MAPPING_URL_RE.sub(repl, script)
