"""Bundles linked HTML documents (HTML imports) into fewer merged documents."""

from html_bundler.analysis.analyzer import Analysis, Analyzer, DocumentNotFoundError
from html_bundler.analysis.url_loader import FSUrlLoader, InMemoryOverlayUrlLoader, UrlLoadError
from html_bundler.bundler import Bundler
from html_bundler.bundles.bundle_manifest import (
    AssignedBundle,
    Bundle,
    BundleManifest,
    compose_strategies,
    generate_bundles,
    generate_counting_shared_bundle_url_mapper,
    generate_eager_merge_strategy,
    generate_match_merge_strategy,
    generate_shared_bundle_url_mapper,
    generate_shared_deps_merge_strategy,
    generate_shell_merge_strategy,
    merge_bundles,
)
from html_bundler.dependencies.deps_index import build_deps_index
from html_bundler.domain.models import BundleResult, BundleRunResult, BundlerOptions, MergedDocument
from html_bundler.errors import BundlerError, MalformedManifestError, UnresolvedImportError

__all__ = [
    'Analysis', 'Analyzer', 'DocumentNotFoundError',
    'FSUrlLoader', 'InMemoryOverlayUrlLoader', 'UrlLoadError',
    'Bundler', 'BundlerOptions', 'BundleResult', 'BundleRunResult', 'MergedDocument',
    'AssignedBundle', 'Bundle', 'BundleManifest', 'build_deps_index', 'generate_bundles',
    'merge_bundles', 'compose_strategies', 'generate_match_merge_strategy',
    'generate_shared_deps_merge_strategy', 'generate_eager_merge_strategy',
    'generate_shell_merge_strategy', 'generate_shared_bundle_url_mapper',
    'generate_counting_shared_bundle_url_mapper',
    'BundlerError', 'MalformedManifestError', 'UnresolvedImportError',
]
