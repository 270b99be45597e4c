"""Parsed documents and the features (links, scripts, styles) they declare.

A ``Document`` is one source file. Its kind selects the feature extractor,
so queries work the same way for HTML, JavaScript and CSS files; only HTML
declares features.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from html_bundler.domain import matchers
from html_bundler.tree_utils import elements, in_template, parse_html
from html_bundler.url_utils import is_absolute_url, is_rewritable_url, resolve_url


class DocumentKind(Enum):
    """Source document kinds."""
    HTML = "html"
    JS = "js"
    CSS = "css"


class FeatureKind(Enum):
    """Feature kinds a document can be queried for."""
    HTML_IMPORT = "html-import"
    HTML_SCRIPT = "html-script"
    HTML_STYLE = "html-style"


@dataclass(eq=False)
class Feature:
    """A link from a document to another URL."""

    kind: FeatureKind
    href: str
    url: str
    lazy: bool
    node_index: int
    document: Document | None = None

    @property
    def resolved(self) -> bool:
        return self.document is not None


@dataclass(eq=False)
class Document:
    """A parsed source file."""

    url: str
    kind: DocumentKind
    contents: str
    ast: BeautifulSoup | None = None
    features: list[Feature] = field(default_factory=list)

    @classmethod
    def parse(cls, url: str, contents: str) -> Document:
        kind = document_kind_for(url)
        ast = parse_html(contents) if kind is DocumentKind.HTML else None
        document = cls(url=url, kind=kind, contents=contents, ast=ast)
        document.features = _FEATURE_EXTRACTORS[kind](document)
        return document

    def get_features(
        self,
        kind: FeatureKind,
        *,
        imported: bool = False,
        no_lazy_imports: bool = False,
    ) -> list[Feature]:
        """Query features of ``kind``.

        Args:
            kind: Feature kind to collect.
            imported: Also collect features of eagerly imported documents,
                transitively. Lazy import targets are never traversed.
            no_lazy_imports: Leave lazy imports out of the result.

        Returns:
            Matching features, in document order, depth-first across
            documents.
        """
        found: list[Feature] = []
        visited: set[str] = set()
        self._collect_features(kind, imported, no_lazy_imports, visited, found)
        return found

    def _collect_features(
        self,
        kind: FeatureKind,
        imported: bool,
        no_lazy_imports: bool,
        visited: set[str],
        found: list[Feature],
    ) -> None:
        if self.url in visited:
            return
        visited.add(self.url)
        for feature in self.features:
            if feature.kind is kind and not (no_lazy_imports and feature.lazy):
                found.append(feature)
            if (
                imported
                and feature.kind is FeatureKind.HTML_IMPORT
                and not feature.lazy
                and feature.document is not None
            ):
                feature.document._collect_features(kind, imported, no_lazy_imports, visited, found)

    def eager_import_urls(self) -> set[str]:
        """URLs of every document this one eagerly depends on, transitively."""
        return {
            f.url for f in self.get_features(FeatureKind.HTML_IMPORT, imported=True, no_lazy_imports=True)
            if f.resolved
        }


def document_kind_for(url: str) -> DocumentKind:
    ext = posixpath.splitext(url.split('?', 1)[0])[1].lower()
    if ext in ('.js', '.mjs'):
        return DocumentKind.JS
    if ext == '.css':
        return DocumentKind.CSS
    return DocumentKind.HTML


# ── Feature extraction ───────────────────────────────────────────────────

def _base_url(document: Document) -> str:
    """URL that relative hrefs in ``document`` resolve against (its ``<base href>`` applied)."""
    base = document.ast.find('base', href=True)
    if base is None:
        return document.url
    href = base['href'].strip()
    if is_absolute_url(href):
        return href
    if not is_rewritable_url(href):
        return document.url
    return resolve_url(document.url, href)


def _resolve_href(base_url: str, href: str) -> str:
    if is_absolute_url(base_url) and is_rewritable_url(href):
        return urljoin(base_url, href)
    return resolve_url(base_url, href)


def _html_features(document: Document) -> list[Feature]:
    features: list[Feature] = []
    base_url = _base_url(document)
    for index, tag in enumerate(elements(document.ast)):
        if tag.name not in ('link', 'script') or in_template(tag):
            continue
        if matchers.is_html_import(tag):
            kind, attr = FeatureKind.HTML_IMPORT, 'href'
        elif matchers.is_external_script(tag):
            kind, attr = FeatureKind.HTML_SCRIPT, 'src'
        elif matchers.is_external_stylesheet(tag) or matchers.is_css_import(tag):
            kind, attr = FeatureKind.HTML_STYLE, 'href'
        else:
            continue
        href = tag[attr].strip()
        features.append(Feature(
            kind=kind,
            href=href,
            url=_resolve_href(base_url, href),
            lazy=matchers.is_lazy_html_import(tag),
            node_index=index,
        ))
    return features


def _no_features(document: Document) -> list[Feature]:
    return []


_FEATURE_EXTRACTORS: dict[DocumentKind, Callable[[Document], list[Feature]]] = {
    DocumentKind.HTML: _html_features,
    DocumentKind.JS: _no_features,
    DocumentKind.CSS: _no_features,
}
