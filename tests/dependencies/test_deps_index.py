"""Tests for the entrypoint dependency index."""

import asyncio

from html_bundler.dependencies.deps_index import build_deps_index


class TestBuildDepsIndex:

    def test_eager_closures(self, scenario_site, make_analyzer):
        index = asyncio.run(build_deps_index(
            ['common.html', 'endpoint1.html', 'endpoint2.html'], make_analyzer(scenario_site),
        ))
        assert index == {
            'common.html': {'common.html'},
            'endpoint1.html': {'common.html', 'dep1.html', 'endpoint1.html'},
            'endpoint2.html': {'common.html', 'dep1.html', 'dep2.html', 'endpoint1.html', 'endpoint2.html'},
        }

    def test_entrypoint_always_in_own_closure(self, make_site, make_analyzer):
        root = make_site({'alone.html': '<p>alone</p>'})
        index = asyncio.run(build_deps_index(['alone.html'], make_analyzer(root)))
        assert index == {'alone.html': {'alone.html'}}

    def test_lazy_imports_become_entrypoints(self, lazy_site, make_analyzer):
        index = asyncio.run(build_deps_index(['lazy-imports.html'], make_analyzer(lazy_site)))
        assert index['lazy-imports.html'] == {
            'lazy-imports.html',
            'shared-eager-and-lazy-import-1.html',
        }
        assert index['lazy-imports/lazy-import-1.html'] == {
            'lazy-imports/lazy-import-1.html',
            'shared-eager-and-lazy-import-1.html',
            'lazy-imports/shared-eager-import-2.html',
        }
        assert index['lazy-imports/lazy-import-2.html'] == {
            'lazy-imports/lazy-import-2.html',
            'shared-eager-and-lazy-import-1.html',
        }
        assert index['lazy-imports/shared-eager-import-2.html'] == {
            'lazy-imports/shared-eager-import-2.html',
        }

    def test_requested_entrypoints_come_first(self, lazy_site, make_analyzer):
        index = asyncio.run(build_deps_index(['lazy-imports.html'], make_analyzer(lazy_site)))
        assert list(index) == [
            'lazy-imports.html',
            'lazy-imports/lazy-import-1.html',
            'lazy-imports/lazy-import-2.html',
            'lazy-imports/shared-eager-import-2.html',
        ]

    def test_import_cycle(self, make_site, make_analyzer):
        root = make_site({
            'a.html': '<link rel="import" href="b.html">',
            'b.html': '<link rel="import" href="a.html">',
        })
        index = asyncio.run(build_deps_index(['a.html'], make_analyzer(root)))
        assert index == {'a.html': {'a.html', 'b.html'}}

    def test_unresolved_imports_are_left_out(self, make_site, make_analyzer):
        root = make_site({'a.html': '<link rel="import" href="missing.html">'})
        index = asyncio.run(build_deps_index(['a.html'], make_analyzer(root)))
        assert index == {'a.html': {'a.html'}}

    def test_imports_resolve_against_base_tag(self, make_site, make_analyzer):
        root = make_site({
            'index.html': '<base href="sub/">\n<link rel="import" href="x.html">',
            'sub/x.html': '<div id="x"></div>',
        })
        index = asyncio.run(build_deps_index(['index.html'], make_analyzer(root)))
        assert index == {'index.html': {'index.html', 'sub/x.html'}}
