"""Shared data models for bundler configuration and results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from bs4 import BeautifulSoup

from html_bundler.tree_utils import serialize

if TYPE_CHECKING:
    from html_bundler.analysis.analyzer import Analyzer
    from html_bundler.analysis.document import Document
    from html_bundler.bundles.bundle_manifest import (
        AssignedBundle,
        Bundle,
        BundleManifest,
        BundleStrategy,
        BundleUrlMapper,
    )

SourcemapRemapper = Callable[['Document', BeautifulSoup], BeautifulSoup]


@dataclass
class BundlerOptions:
    """Options controlling manifest generation and document merging."""

    analyzer: Analyzer | None = None
    root_dir: str = '.'
    excludes: list[str] = field(default_factory=list)
    inline_css: bool = True
    inline_scripts: bool = True
    strip_comments: bool = False
    rewrite_urls_in_templates: bool = False
    skip_unresolved_imports: bool = False
    sourcemaps: bool = False
    strategy: BundleStrategy | None = None
    url_mapper: BundleUrlMapper | None = None
    sourcemap_remapper: SourcemapRemapper | None = None


@dataclass
class DocBundle:
    """A bundle paired with the tree being assembled for it (one run only)."""

    assigned: AssignedBundle
    ast: BeautifulSoup | None = None

    @property
    def url(self) -> str:
        return self.assigned.url

    @property
    def bundle(self) -> Bundle:
        return self.assigned.bundle


@dataclass
class MergedDocument:
    """One produced bundle document."""

    ast: BeautifulSoup
    files: list[str]

    def serialize(self) -> str:
        return serialize(self.ast)


@dataclass
class BundleResult:
    """Result of ``Bundler.bundle``."""

    manifest: BundleManifest
    documents: dict[str, MergedDocument]


@dataclass
class BundleRunResult:
    """Result summary of a CLI bundling run."""

    entrypoints: list[str]
    bundles_written: list[str]
    output_dir: str
    manifest: dict[str, Any] = field(default_factory=dict)
