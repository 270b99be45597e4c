"""Plans bundles for a set of entrypoints and produces the merged documents.

``Bundler.generate_manifest`` runs the planning phase (dependency index,
exclusion filter, strategy, URL mapping). ``Bundler.bundle`` runs the
production phase, one bundle at a time and in manifest order: later bundles
read analyzer state (overlaid contents) written while producing earlier ones.
"""

from __future__ import annotations

import logging
from typing import Iterable

from bs4 import BeautifulSoup, Tag

from html_bundler.analysis.analyzer import Analyzer
from html_bundler.analysis.document import Document, FeatureKind
from html_bundler.analysis.url_loader import FSUrlLoader, InMemoryOverlayUrlLoader
from html_bundler.bundles.bundle_manifest import (
    AssignedBundle,
    BundleManifest,
    generate_bundles,
    generate_counting_shared_bundle_url_mapper,
    generate_shared_deps_merge_strategy,
)
from html_bundler.bundles.excludes import filter_excludes_from_bundles
from html_bundler.dependencies.deps_index import build_deps_index
from html_bundler.domain import matchers
from html_bundler.domain.constants import HIDDEN_DIV_ATTR, REL_IMPORT
from html_bundler.domain.models import BundleResult, BundlerOptions, DocBundle, MergedDocument
from html_bundler.errors import MalformedManifestError
from html_bundler.output.import_inliner import ImportInliner
from html_bundler.output.source_map import keep_source_locations
from html_bundler.output.url_rewriter import rewrite_ast_to_emulate_base_tag
from html_bundler.tree_utils import (
    clone,
    create_element,
    elements,
    is_empty,
    prepend,
    remove_element_and_newline,
    serialize,
    siblings_after,
    strip_comments,
)
from html_bundler.url_utils import relative_url

logger = logging.getLogger(__name__)


class Bundler:
    """Merges linked HTML documents into bundles.

    The analyzer given in the options (or one reading ``root_dir``) is
    forked behind an in-memory overlay, so mutated trees can be re-analyzed
    under their own URL without touching the source files.
    """

    def __init__(self, options: BundlerOptions | None = None):
        self.options = options or BundlerOptions()
        if self.options.analyzer is not None:
            self._overlay_url_loader = InMemoryOverlayUrlLoader(self.options.analyzer.url_loader)
            self.analyzer = self.options.analyzer.fork(url_loader=self._overlay_url_loader)
        else:
            self._overlay_url_loader = InMemoryOverlayUrlLoader(FSUrlLoader(self.options.root_dir))
            self.analyzer = Analyzer(self._overlay_url_loader)
        self.excludes = list(self.options.excludes)
        self.strategy = self.options.strategy or generate_shared_deps_merge_strategy()
        self.url_mapper = self.options.url_mapper or generate_counting_shared_bundle_url_mapper()
        self.sourcemap_remapper = self.options.sourcemap_remapper or keep_source_locations

    # ── Public API ───────────────────────────────────────────────────────

    async def generate_manifest(self, entrypoints: Iterable[str]) -> BundleManifest:
        """Analyze ``entrypoints`` and plan their bundles."""
        entrypoint_to_deps = await build_deps_index(entrypoints, self.analyzer)
        bundles = generate_bundles(entrypoint_to_deps)
        filter_excludes_from_bundles(bundles, self.excludes)
        bundles = self.strategy(bundles)
        manifest = BundleManifest(bundles, self.url_mapper)
        logger.info(
            "Planned %d bundle(s) for %d entrypoint(s)", len(manifest.bundles), len(entrypoint_to_deps),
        )
        return manifest

    async def bundle(self, manifest: BundleManifest) -> BundleResult:
        """Produce one merged document per bundle of ``manifest``.

        The manifest is forked first; the caller's copy is never mutated.
        """
        manifest = manifest.fork()
        documents: dict[str, MergedDocument] = {}
        for url, bundle in manifest.bundles.items():
            doc_bundle = DocBundle(AssignedBundle(url, bundle))
            ast = await self._bundle_document(doc_bundle, manifest)
            documents[url] = MergedDocument(ast=ast, files=sorted(bundle.files))
            logger.info("Bundled %s from %d file(s)", url, len(bundle.files))
        return BundleResult(manifest=manifest, documents=documents)

    async def bundle_entrypoints(self, entrypoints: Iterable[str]) -> BundleResult:
        """Plan and produce bundles for ``entrypoints`` in one call."""
        manifest = await self.generate_manifest(entrypoints)
        return await self.bundle(manifest)

    # ── Per-bundle pipeline ──────────────────────────────────────────────

    async def _bundle_document(self, doc_bundle: DocBundle, manifest: BundleManifest) -> BeautifulSoup:
        await self._check_bundle_files(doc_bundle)
        document = await self._prepare_bundle_document(doc_bundle)

        ast = clone(document.ast)
        self._inject_html_imports_for_bundle(document, ast, doc_bundle)

        # Re-analyze so the document reflects the injected imports.
        document = await self._analyze_contents(document.url, serialize(ast))
        ast = clone(document.ast)
        doc_bundle.ast = ast

        bundle = doc_bundle.bundle
        if doc_bundle.url in bundle.files:
            bundle.inlined_html_imports.add(doc_bundle.url)

        inliner = ImportInliner(self.analyzer, manifest, doc_bundle.assigned, self.options)
        await inliner.inline_html_imports(ast)
        if self.options.inline_scripts:
            await inliner.inline_scripts(ast)
        if self.options.inline_css:
            await inliner.inline_stylesheet_links(ast)
            await inliner.inline_stylesheet_imports(ast)

        if self.options.strip_comments:
            strip_comments(ast)
        self._remove_empty_hidden_divs(ast)
        if self.options.sourcemaps:
            ast = self.sourcemap_remapper(document, ast)
        return ast

    async def _check_bundle_files(self, doc_bundle: DocBundle) -> None:
        analysis = await self.analyzer.analyze(sorted(doc_bundle.bundle.files))
        if analysis.errors:
            missing = ', '.join(sorted(analysis.errors))
            raise MalformedManifestError(f"Bundle {doc_bundle.url} references unknown file(s): {missing}")

    async def _analyze_contents(self, url: str, contents: str) -> Document:
        """Analyze ``url`` as if it held ``contents``."""
        self._overlay_url_loader.url_contents_map[url] = contents
        await self.analyzer.files_changed([url])
        analysis = await self.analyzer.analyze([url])
        return analysis.get_document(url)

    async def _prepare_bundle_document(self, doc_bundle: DocBundle) -> Document:
        """Base document for the bundle.

        A bundle whose URL is one of its files starts from that file, with
        its base tag applied and its order-sensitive content normalized into
        the hidden container; any other bundle starts from an empty document.
        Injected links are relative to the bundle URL, so the base tag must be
        gone before injection.
        """
        if doc_bundle.url not in doc_bundle.bundle.files:
            return await self._analyze_contents(doc_bundle.url, '')

        analysis = await self.analyzer.analyze([doc_bundle.url])
        document = analysis.get_document(doc_bundle.url)
        ast = clone(document.ast)
        rewrite_ast_to_emulate_base_tag(ast, document.url, self.options.rewrite_urls_in_templates)
        self._move_ordered_imperatives_from_head_into_hidden_div(ast)
        self._move_unhidden_html_imports_into_hidden_div(ast)
        return await self._analyze_contents(document.url, serialize(ast))

    # ── Import injection ─────────────────────────────────────────────────

    def _inject_html_imports_for_bundle(self, document: Document, ast: BeautifulSoup, doc_bundle: DocBundle) -> None:
        """Add an import link for every bundle file the document lacks.

        A new link goes right before the earliest existing eager import,
        owned by another bundle, that transitively depends on it, so the
        dependency loads first. Without such an import it goes at the end
        of the hidden container.
        """
        bundle = doc_bundle.bundle
        existing_imports = document.get_features(FeatureKind.HTML_IMPORT, no_lazy_imports=True)
        existing_urls = {f.url for f in existing_imports}
        foreign_imports = [f for f in existing_imports if f.url not in bundle.files]
        dependencies = {
            f.url: f.document.eager_import_urls() if f.document is not None else set()
            for f in foreign_imports
        }
        # ``ast`` is a clone of ``document.ast``; feature node indexes line up.
        nodes = elements(ast)

        for import_url in sorted(bundle.files):
            if import_url == doc_bundle.url or import_url in existing_urls:
                continue
            link = create_element(ast, 'link', {
                'rel': REL_IMPORT,
                'href': relative_url(doc_bundle.url, import_url),
            })
            anchors = [f for f in foreign_imports if import_url in dependencies[f.url]]
            if anchors:
                anchor = min(anchors, key=lambda f: f.node_index)
                nodes[anchor.node_index].insert_before(link)
            else:
                self._find_or_create_hidden_div(ast).append(link)

    # ── Hidden container ─────────────────────────────────────────────────

    def _find_or_create_hidden_div(self, ast: BeautifulSoup) -> Tag:
        hidden = ast.find(matchers.is_hidden_div)
        if hidden is None:
            hidden = create_element(ast, 'div', {'hidden': '', HIDDEN_DIV_ATTR: ''})
            self._attach_hidden_div(ast, hidden)
        return hidden

    @staticmethod
    def _attach_hidden_div(ast: BeautifulSoup, hidden: Tag) -> None:
        """Place the hidden container where the first eager import sits.

        It never goes into ``<head>``: an import there puts the container at
        the start of ``<body>``.
        """
        first_import = ast.find(matchers.outside_template(matchers.is_eager_html_import))
        body = ast.find('body')
        container = body if body is not None else ast.find('html')
        if container is None:
            container = ast
        if first_import is not None and first_import.parent is container:
            first_import.insert_after(hidden)
        elif body is not None:
            prepend(body, hidden)
        else:
            container.append(hidden)

    def _move_ordered_imperatives_from_head_into_hidden_div(self, ast: BeautifulSoup) -> None:
        """Move the first head import and every order-sensitive sibling after it."""
        head = ast.find('head')
        if head is None:
            return
        first_import = head.find(matchers.outside_template(matchers.is_eager_html_import))
        if first_import is None:
            return
        for node in [first_import] + siblings_after(first_import):
            if matchers.is_ordered_imperative(node):
                remove_element_and_newline(node)
                self._find_or_create_hidden_div(ast).append(node)

    def _move_unhidden_html_imports_into_hidden_div(self, ast: BeautifulSoup) -> None:
        unhidden = ast.find_all(
            lambda tag: matchers.outside_template(matchers.is_eager_html_import)(tag)
            and not matchers.in_hidden_div(tag)
        )
        for html_import in unhidden:
            hidden = self._find_or_create_hidden_div(ast)
            remove_element_and_newline(html_import)
            hidden.append(html_import)

    @staticmethod
    def _remove_empty_hidden_divs(ast: BeautifulSoup) -> None:
        for div in ast.find_all(matchers.is_hidden_div):
            if is_empty(div):
                remove_element_and_newline(div)
