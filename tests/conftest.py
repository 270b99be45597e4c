"""Shared test fixtures."""

import pytest

from html_bundler.analysis.analyzer import Analyzer
from html_bundler.analysis.url_loader import FSUrlLoader


# ── Sample Documents ─────────────────────────────────────────────────────

# Dependency graph from the bundler's end-to-end scenario: endpoint1 imports
# common and dep1, endpoint2 imports common, dep1, dep2 and endpoint1.
SCENARIO_FILES = {
    'common.html': '<div id="common"></div>\n',
    'dep1.html': '<link rel="import" href="common.html">\n<div id="dep1"></div>\n',
    'dep2.html': '<div id="dep2"></div>\n',
    'endpoint1.html': (
        '<link rel="import" href="common.html">\n'
        '<link rel="import" href="dep1.html">\n'
        '<div id="endpoint1"></div>\n'
    ),
    'endpoint2.html': (
        '<link rel="import" href="common.html">\n'
        '<link rel="import" href="dep1.html">\n'
        '<link rel="import" href="dep2.html">\n'
        '<link rel="import" href="endpoint1.html">\n'
        '<div id="endpoint2"></div>\n'
    ),
}

LAZY_FILES = {
    'lazy-imports.html': (
        '<link rel="import" href="shared-eager-and-lazy-import-1.html">\n'
        '<link rel="lazy-import" href="lazy-imports/lazy-import-1.html">\n'
        '<link rel="lazy-import" href="lazy-imports/lazy-import-2.html">\n'
        '<link rel="lazy-import" href="lazy-imports/shared-eager-import-2.html">\n'
    ),
    'shared-eager-and-lazy-import-1.html': '<div id="shared-1"></div>\n',
    'lazy-imports/lazy-import-1.html': (
        '<link rel="import" href="../shared-eager-and-lazy-import-1.html">\n'
        '<link rel="import" href="shared-eager-import-2.html">\n'
        '<div id="lazy-1"></div>\n'
    ),
    'lazy-imports/lazy-import-2.html': (
        '<link rel="import" href="../shared-eager-and-lazy-import-1.html">\n'
        '<div id="lazy-2"></div>\n'
    ),
    'lazy-imports/shared-eager-import-2.html': '<div id="shared-2"></div>\n',
}


def write_files(root, files: dict[str, str]) -> None:
    for url, contents in files.items():
        path = root.joinpath(*url.split('/'))
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(contents, encoding='utf-8')


@pytest.fixture
def make_site(tmp_path):
    """Write ``{url: contents}`` below tmp_path and return the root."""
    def _make(files: dict[str, str]):
        write_files(tmp_path, files)
        return tmp_path
    return _make


@pytest.fixture
def scenario_site(make_site):
    return make_site(SCENARIO_FILES)


@pytest.fixture
def lazy_site(make_site):
    return make_site(LAZY_FILES)


@pytest.fixture
def make_analyzer():
    def _make(root) -> Analyzer:
        return Analyzer(FSUrlLoader(str(root)))
    return _make
