"""Inlines HTML imports, external scripts and external stylesheets.

Every href in a bundle's tree is kept relative to the bundle's own URL:
content pulled in from another document is rebased before it is inserted,
so nested links resolve the same way as top-level ones.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup, Tag

from html_bundler.analysis.analyzer import Analyzer, DocumentNotFoundError
from html_bundler.analysis.url_loader import UrlLoadError
from html_bundler.bundles.bundle_manifest import AssignedBundle, BundleManifest
from html_bundler.domain import matchers
from html_bundler.domain.constants import CLOSING_SCRIPT_RE, DOCUMENT_WRAPPER_TAGS
from html_bundler.domain.models import BundlerOptions
from html_bundler.errors import UnresolvedImportError
from html_bundler.output.source_map import rebase_sourcemap_url
from html_bundler.output.url_rewriter import (
    rewrite_ast_base_url,
    rewrite_ast_to_emulate_base_tag,
    rewrite_css_urls,
)
from html_bundler.tree_utils import (
    clone,
    create_element,
    in_template,
    prepend,
    remove_doctypes,
    remove_element_and_newline,
    replace_with_children,
    unwrap_tags,
)
from html_bundler.url_utils import is_excluded, is_rewritable_url, relative_url, resolve_url

logger = logging.getLogger(__name__)


class ImportInliner:
    """Inlines the content referenced from one bundle's tree.

    Args:
        analyzer: Analyzer used to load referenced documents.
        manifest: The (forked) manifest being produced.
        doc_bundle: The bundle whose tree is being assembled. Its per-run
            ``inlined_*`` sets are updated as content is inlined.
        options: Bundler options (excludes, policies).
    """

    def __init__(
        self,
        analyzer: Analyzer,
        manifest: BundleManifest,
        doc_bundle: AssignedBundle,
        options: BundlerOptions,
    ) -> None:
        self.analyzer = analyzer
        self.manifest = manifest
        self.doc_bundle = doc_bundle
        self.options = options

    @property
    def bundle_url(self) -> str:
        return self.doc_bundle.url

    # ── HTML imports ─────────────────────────────────────────────────────

    async def inline_html_imports(self, ast: BeautifulSoup) -> None:
        for link in ast.find_all(matchers.outside_template(matchers.is_html_import)):
            await self.inline_html_import(link)

    async def inline_html_import(self, link: Tag) -> None:
        """Replace ``link`` by the content of its target, once per URL."""
        bundle = self.doc_bundle.bundle
        import_url = resolve_url(self.bundle_url, link['href'])
        if not is_rewritable_url(import_url):
            return

        if matchers.is_lazy_html_import(link):
            self._point_lazy_import_at_bundle(link, import_url)
            return

        if import_url in bundle.strip_imports or import_url in bundle.inlined_html_imports:
            remove_element_and_newline(link)
            return

        if is_excluded(import_url, self.options.excludes):
            logger.debug("Leaving excluded import %s as a link", import_url)
            return

        import_bundle = self.manifest.get_bundle_for_file(import_url)
        if import_bundle is None:
            analysis = await self.analyzer.analyze([import_url])
            if import_url in analysis.errors:
                self._unresolved(import_url, analysis.errors[import_url].reason)
            return

        if import_bundle.url != self.bundle_url:
            # Owned by another bundle: link to that bundle, once.
            if import_bundle.url in bundle.inlined_html_imports:
                remove_element_and_newline(link)
            else:
                bundle.inlined_html_imports.add(import_bundle.url)
                link['href'] = relative_url(self.bundle_url, import_bundle.url)
            return

        bundle.inlined_html_imports.add(import_url)
        analysis = await self.analyzer.analyze([import_url])
        try:
            document = analysis.get_document(import_url)
        except DocumentNotFoundError as e:
            self._unresolved(import_url, str(e))
            return

        import_ast = clone(document.ast)
        remove_doctypes(import_ast)
        unwrap_tags(import_ast, DOCUMENT_WRAPPER_TAGS)
        rewrite_ast_to_emulate_base_tag(import_ast, import_url, self.options.rewrite_urls_in_templates)
        rewrite_ast_base_url(import_ast, import_url, self.bundle_url, self.options.rewrite_urls_in_templates)
        if self.options.sourcemaps:
            self._rebase_inline_sourcemaps(import_ast, import_url)

        # Nested imports first, so their content lands ahead of the importer's.
        for nested in import_ast.find_all(matchers.outside_template(matchers.is_html_import)):
            await self.inline_html_import(nested)

        replace_with_children(link, import_ast)

    def _point_lazy_import_at_bundle(self, link: Tag, import_url: str) -> None:
        import_bundle = self.manifest.get_bundle_for_file(import_url)
        if import_bundle is not None and import_bundle.url != import_url:
            link['href'] = relative_url(self.bundle_url, import_bundle.url)

    def _rebase_inline_sourcemaps(self, ast: BeautifulSoup, source_url: str) -> None:
        for script in ast.find_all(matchers.is_js_script):
            if not script.get('src') and script.string:
                script.string = rebase_sourcemap_url(str(script.string), source_url, self.bundle_url)

    # ── Scripts ──────────────────────────────────────────────────────────

    async def inline_scripts(self, ast: BeautifulSoup) -> None:
        for script in ast.find_all(matchers.outside_template(matchers.is_external_script)):
            await self.inline_script(ast, script)

    async def inline_script(self, ast: BeautifulSoup, script: Tag) -> Tag | None:
        """Replace an external ``<script src>`` by an inline script."""
        script_url = resolve_url(self.bundle_url, script['src'])
        if not is_rewritable_url(script_url) or is_excluded(script_url, self.options.excludes):
            return None
        contents = await self._load(script_url)
        if contents is None:
            return None
        if self.options.sourcemaps:
            contents = rebase_sourcemap_url(contents, script_url, self.bundle_url)
        contents = CLOSING_SCRIPT_RE.sub(lambda m: '<\\/' + m.group(0)[2:], contents)

        attrs = {k: v for k, v in script.attrs.items() if k != 'src'}
        inlined = create_element(ast, 'script', attrs)
        inlined.string = contents
        script.replace_with(inlined)
        self.doc_bundle.bundle.inlined_scripts.add(script_url)
        return inlined

    # ── Stylesheets ──────────────────────────────────────────────────────

    async def inline_stylesheet_links(self, ast: BeautifulSoup) -> None:
        # Stylesheets inside templates are inlined too.
        for link in ast.find_all(matchers.is_external_stylesheet):
            await self.inline_stylesheet(ast, link)

    async def inline_stylesheet_imports(self, ast: BeautifulSoup) -> None:
        last_inlined = None
        for link in ast.find_all(matchers.outside_template(matchers.is_css_import)):
            style = await self.inline_stylesheet(ast, link)
            if style is not None:
                move_dom_module_style_into_template(ast, style, last_inlined)
                last_inlined = style

    async def inline_stylesheet(self, ast: BeautifulSoup, link: Tag) -> Tag | None:
        """Replace a stylesheet link by a ``<style>`` with rebased ``url()`` references."""
        base_url = self._style_base_url(link)
        stylesheet_url = resolve_url(base_url, link['href'])
        if not is_rewritable_url(stylesheet_url) or is_excluded(stylesheet_url, self.options.excludes):
            return None
        contents = await self._load(stylesheet_url)
        if contents is None:
            return None

        attrs = {'media': link['media']} if link.get('media') else {}
        style = create_element(ast, 'style', attrs)
        style.string = rewrite_css_urls(contents, stylesheet_url, base_url)
        link.replace_with(style)
        self.doc_bundle.bundle.inlined_styles.add(stylesheet_url)
        return style

    def _style_base_url(self, link: Tag) -> str:
        """URL that hrefs and CSS urls at ``link``'s position are relative to.

        Template content keeps its original URLs unless
        ``rewrite_urls_in_templates`` is set; those resolve against the
        enclosing ``<dom-module>``'s ``assetpath``.
        """
        if self.options.rewrite_urls_in_templates or not in_template(link):
            return self.bundle_url
        dom_module = link.find_parent('dom-module')
        if dom_module is not None and dom_module.get('assetpath'):
            return resolve_url(self.bundle_url, dom_module['assetpath'])
        return self.bundle_url

    # ── Loading ──────────────────────────────────────────────────────────

    async def _load(self, url: str) -> str | None:
        try:
            return await self.analyzer.load(url)
        except UrlLoadError as e:
            self._unresolved(url, e.reason)
            return None

    def _unresolved(self, url: str, reason: str) -> None:
        if not self.options.skip_unresolved_imports:
            raise UnresolvedImportError(url, self.bundle_url, reason)
        logger.warning("Skipping unresolved %s in %s: %s", url, self.bundle_url, reason)


def move_dom_module_style_into_template(ast: BeautifulSoup, style: Tag, ref_style: Tag | None = None) -> None:
    """Move a ``<style>`` sitting in a ``<dom-module>`` into its ``<template>``.

    A template is created when the module has none; styles
    moved one after another keep their relative order through ``ref_style``.
    """
    dom_module = style.find_parent('dom-module')
    if dom_module is None or style.find_parent('template') is not None:
        return
    template = dom_module.find('template', recursive=False)
    if template is None:
        template = create_element(ast, 'template')
        prepend(dom_module, template)
    remove_element_and_newline(style)
    if ref_style is not None and ref_style.find_parent('template') is template:
        ref_style.insert_after(style)
    else:
        prepend(template, style)
