"""Document analyzer.

Loads documents through a ``UrlLoader``, parses them and resolves their
HTML imports (eager and lazy) recursively. Parsed documents are cached per
URL until ``files_changed`` invalidates them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from html_bundler.analysis.document import Document, FeatureKind
from html_bundler.analysis.url_loader import FSUrlLoader, UrlLoader, UrlLoadError

logger = logging.getLogger(__name__)


class DocumentNotFoundError(Exception):
    """A requested document is not part of an analysis."""

    def __init__(self, url: str, reason: str = ''):
        self.url = url
        super().__init__(f"Unable to get document {url}" + (f": {reason}" if reason else ''))


@dataclass
class Analysis:
    """Result of analyzing a set of URLs."""

    documents: dict[str, Document] = field(default_factory=dict)
    errors: dict[str, UrlLoadError] = field(default_factory=dict)

    def get_document(self, url: str) -> Document:
        if url in self.documents:
            return self.documents[url]
        error = self.errors.get(url)
        raise DocumentNotFoundError(url, error.reason if error else 'not analyzed')


class Analyzer:
    """Parses documents and their import graphs, caching by URL."""

    def __init__(self, url_loader: UrlLoader | None = None):
        self.url_loader = url_loader or FSUrlLoader('.')
        self._cache: dict[str, Document] = {}
        self._failures: dict[str, UrlLoadError] = {}

    def fork(self, url_loader: UrlLoader | None = None) -> Analyzer:
        """A fresh analyzer sharing no cached state with this one."""
        return Analyzer(url_loader or self.url_loader)

    async def analyze(self, urls: Iterable[str]) -> Analysis:
        analysis = Analysis()
        for url in urls:
            try:
                analysis.documents[url] = await self._get_document(url)
            except UrlLoadError as e:
                analysis.errors[url] = e
        return analysis

    async def load(self, url: str) -> str:
        """Raw contents of ``url``, bypassing the document cache."""
        return await self.url_loader.load(url)

    async def files_changed(self, urls: Iterable[str]) -> None:
        """Invalidate cached state for ``urls`` and every document importing them."""
        stale = set(urls)
        grew = True
        while grew:
            grew = False
            for url, document in self._cache.items():
                if url in stale:
                    continue
                if any(f.url in stale for f in document.features if f.kind is FeatureKind.HTML_IMPORT):
                    stale.add(url)
                    grew = True
        for url in stale:
            self._cache.pop(url, None)
            self._failures.pop(url, None)
        logger.debug("Invalidated %d cached document(s)", len(stale))

    async def _get_document(self, url: str) -> Document:
        if url in self._cache:
            return self._cache[url]
        if url in self._failures:
            raise self._failures[url]
        try:
            contents = await self.url_loader.load(url)
        except UrlLoadError as e:
            self._failures[url] = e
            raise

        document = Document.parse(url, contents)
        # Cached before resolving imports so import cycles terminate.
        self._cache[url] = document
        for feature in document.features:
            if feature.kind is not FeatureKind.HTML_IMPORT:
                continue
            try:
                feature.document = await self._get_document(feature.url)
            except UrlLoadError as e:
                logger.warning("Unresolved import %s in %s: %s", feature.href, url, e.reason)
        return document
