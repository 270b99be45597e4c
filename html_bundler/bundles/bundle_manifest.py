"""Bundles, the manifest that assigns them output URLs, and merge policies.

Files are first grouped by the exact set of entrypoints that depend on
them (``generate_bundles``). A strategy then merges those groups and a URL
mapper names the result. Both are plain callables so callers can swap
them without touching the rest of the pipeline.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Callable, Iterable

from html_bundler.domain.constants import DEFAULT_MIN_ENTRYPOINTS, DEFAULT_SHARED_BUNDLE_PREFIX
from html_bundler.errors import MalformedManifestError


@dataclass
class Bundle:
    """A group of source files merged into one output document."""

    entrypoints: set[str] = field(default_factory=set)
    files: set[str] = field(default_factory=set)
    # Links to these URLs are removed from the output without inlining.
    strip_imports: set[str] = field(default_factory=set)
    # Per-run state, filled while the bundle's document is produced.
    inlined_html_imports: set[str] = field(default_factory=set)
    inlined_scripts: set[str] = field(default_factory=set)
    inlined_styles: set[str] = field(default_factory=set)


@dataclass
class AssignedBundle:
    """A bundle together with its output URL."""

    url: str
    bundle: Bundle


BundleStrategy = Callable[[list[Bundle]], list[Bundle]]
BundleUrlMapper = Callable[[list[Bundle]], dict[str, Bundle]]


class BundleManifest:
    """Ordered mapping of output URL to bundle, with a file -> bundle index."""

    def __init__(self, bundles: Iterable[Bundle], url_mapper: BundleUrlMapper):
        self.url_mapper = url_mapper
        bundles = list(bundles)
        self.bundles: dict[str, Bundle] = url_mapper(bundles)
        if len(self.bundles) != len(bundles):
            raise MalformedManifestError("URL mapper assigned the same URL to more than one bundle")
        self._bundle_url_for_file: dict[str, str] = {}
        for url, bundle in self.bundles.items():
            for file_url in bundle.files:
                self._bundle_url_for_file[file_url] = url

    def fork(self) -> BundleManifest:
        """A structurally independent copy sharing no mutable state."""
        forked = BundleManifest.__new__(BundleManifest)
        forked.url_mapper = self.url_mapper
        forked.bundles = {url: copy.deepcopy(bundle) for url, bundle in self.bundles.items()}
        forked._bundle_url_for_file = dict(self._bundle_url_for_file)
        return forked

    def get_bundle_for_file(self, url: str) -> AssignedBundle | None:
        bundle_url = self._bundle_url_for_file.get(url)
        if bundle_url is None:
            return None
        return AssignedBundle(bundle_url, self.bundles[bundle_url])

    def to_json_dict(self) -> dict[str, dict[str, list[str]]]:
        return {
            url: {
                'entrypoints': sorted(bundle.entrypoints),
                'files': sorted(bundle.files),
                'strip_imports': sorted(bundle.strip_imports),
            }
            for url, bundle in self.bundles.items()
        }


# ── Provisional grouping ─────────────────────────────────────────────────

def generate_bundles(entrypoint_to_deps: dict[str, set[str]]) -> list[Bundle]:
    """Group files by the exact set of entrypoints depending on them."""
    owners: dict[str, set[str]] = {}
    for entrypoint, deps in entrypoint_to_deps.items():
        for dep in sorted(deps):
            owners.setdefault(dep, set()).add(entrypoint)

    bundles: list[Bundle] = []
    by_signature: dict[tuple[str, ...], Bundle] = {}
    for dep, entrypoints in owners.items():
        signature = tuple(sorted(entrypoints))
        bundle = by_signature.get(signature)
        if bundle is None:
            bundle = Bundle(entrypoints=set(entrypoints))
            by_signature[signature] = bundle
            bundles.append(bundle)
        bundle.files.add(dep)
    return bundles


def get_bundle_entrypoint(bundle: Bundle) -> str | None:
    """The owning entrypoint contained in the bundle, if any (in-place bundle)."""
    for entrypoint in sorted(bundle.entrypoints):
        if entrypoint in bundle.files:
            return entrypoint
    return None


# ── Strategies ───────────────────────────────────────────────────────────

def merge_bundles(bundles: Iterable[Bundle]) -> Bundle:
    merged = Bundle()
    for bundle in bundles:
        merged.entrypoints.update(bundle.entrypoints)
        merged.files.update(bundle.files)
        merged.strip_imports.update(bundle.strip_imports)
    return merged


def merge_matching_bundles(bundles: list[Bundle], predicate: Callable[[Bundle], bool]) -> list[Bundle]:
    """Replace every bundle matching ``predicate`` by their single merge."""
    matching = [b for b in bundles if predicate(b)]
    if len(matching) < 2:
        return list(bundles)
    rest = [b for b in bundles if not any(b is m for m in matching)]
    return rest + [merge_bundles(matching)]


def generate_match_merge_strategy(predicate: Callable[[Bundle], bool]) -> BundleStrategy:
    return lambda bundles: merge_matching_bundles(bundles, predicate)


def generate_shared_deps_merge_strategy(min_entrypoints: int = DEFAULT_MIN_ENTRYPOINTS) -> BundleStrategy:
    """Merge every bundle shared by ``min_entrypoints`` or more entrypoints.

    Bundles holding one of their own entrypoints stay where they are; they
    become that entrypoint's in-place output.
    """
    return generate_match_merge_strategy(
        lambda b: len(b.entrypoints) >= min_entrypoints and get_bundle_entrypoint(b) is None
    )


def generate_eager_merge_strategy(entrypoint: str, min_entrypoints: int = DEFAULT_MIN_ENTRYPOINTS) -> BundleStrategy:
    """Fold the shared bundles ``entrypoint`` depends on into its own bundle."""
    def strategy(bundles: list[Bundle]) -> list[Bundle]:
        return merge_matching_bundles(
            bundles,
            lambda b: entrypoint in b.files or (
                entrypoint in b.entrypoints
                and len(b.entrypoints) >= min_entrypoints
                and get_bundle_entrypoint(b) is None
            ),
        )
    return strategy


def generate_shell_merge_strategy(shell: str, min_entrypoints: int = DEFAULT_MIN_ENTRYPOINTS) -> BundleStrategy:
    """Fold every shared bundle into the bundle of the application shell."""
    def strategy(bundles: list[Bundle]) -> list[Bundle]:
        merged = merge_matching_bundles(
            bundles,
            lambda b: shell in b.files or (
                len(b.entrypoints) >= min_entrypoints and get_bundle_entrypoint(b) is None
            ),
        )
        for bundle in merged:
            if shell in bundle.files:
                # The merged shell bundle must keep the shell's in-place URL.
                bundle.entrypoints.add(shell)
        return merged
    return strategy


def compose_strategies(strategies: Iterable[BundleStrategy]) -> BundleStrategy:
    strategies = list(strategies)

    def strategy(bundles: list[Bundle]) -> list[Bundle]:
        for s in strategies:
            bundles = s(bundles)
        return bundles
    return strategy


# ── URL mappers ──────────────────────────────────────────────────────────

def generate_shared_bundle_url_mapper(mapper: Callable[[list[Bundle]], list[str]]) -> BundleUrlMapper:
    """In-place URLs for entrypoint bundles, ``mapper`` names the others."""
    def url_mapper(bundles: list[Bundle]) -> dict[str, Bundle]:
        manifest: dict[str, Bundle] = {}
        shared: list[Bundle] = []
        for bundle in bundles:
            entrypoint = get_bundle_entrypoint(bundle)
            if entrypoint is not None:
                manifest[entrypoint] = bundle
            else:
                shared.append(bundle)
        for url, bundle in zip(mapper(shared), shared):
            if url in manifest:
                raise MalformedManifestError(f"Bundle URL {url} is already assigned")
            manifest[url] = bundle
        return manifest
    return url_mapper


def generate_counting_shared_bundle_url_mapper(prefix: str = DEFAULT_SHARED_BUNDLE_PREFIX) -> BundleUrlMapper:
    """Name shared bundles ``<prefix>1.html``, ``<prefix>2.html``, ..."""
    return generate_shared_bundle_url_mapper(
        lambda shared: [f"{prefix}{i}.html" for i in range(1, len(shared) + 1)]
    )
