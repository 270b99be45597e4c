"""Tests for bundle grouping, merge strategies and the manifest."""

import pytest

from html_bundler.bundles.bundle_manifest import (
    Bundle,
    BundleManifest,
    compose_strategies,
    generate_bundles,
    generate_counting_shared_bundle_url_mapper,
    generate_eager_merge_strategy,
    generate_shared_bundle_url_mapper,
    generate_shared_deps_merge_strategy,
    generate_shell_merge_strategy,
    get_bundle_entrypoint,
    merge_bundles,
)
from html_bundler.errors import MalformedManifestError


# Closures of the end-to-end scenario (see conftest.SCENARIO_FILES).
SCENARIO_INDEX = {
    'common.html': {'common.html'},
    'endpoint1.html': {'common.html', 'dep1.html', 'endpoint1.html'},
    'endpoint2.html': {'common.html', 'dep1.html', 'dep2.html', 'endpoint1.html', 'endpoint2.html'},
}

SHELL_INDEX = {
    'shell.html': {'shell.html', 'framework.html'},
    'a.html': {'a.html', 'framework.html', 'widgets.html'},
    'b.html': {'b.html', 'framework.html', 'widgets.html'},
}


def _by_files(bundles):
    return {frozenset(b.files): b for b in bundles}


class TestGenerateBundles:

    def test_groups_by_owning_entrypoints(self):
        bundles = _by_files(generate_bundles(SCENARIO_INDEX))
        assert set(bundles) == {
            frozenset({'common.html'}),
            frozenset({'dep1.html', 'endpoint1.html'}),
            frozenset({'dep2.html', 'endpoint2.html'}),
        }
        assert bundles[frozenset({'common.html'})].entrypoints == {
            'common.html', 'endpoint1.html', 'endpoint2.html',
        }
        assert bundles[frozenset({'dep2.html', 'endpoint2.html'})].entrypoints == {'endpoint2.html'}

    def test_every_file_in_exactly_one_bundle(self):
        bundles = generate_bundles(SHELL_INDEX)
        files = [f for b in bundles for f in b.files]
        assert sorted(files) == sorted(set().union(*SHELL_INDEX.values()))

    def test_bundle_entrypoint(self):
        assert get_bundle_entrypoint(Bundle({'a.html', 'b.html'}, {'b.html', 'x.html'})) == 'b.html'
        assert get_bundle_entrypoint(Bundle({'a.html', 'b.html'}, {'x.html'})) is None


class TestStrategies:

    def test_shared_deps_merges_shared_bundles(self):
        bundles = generate_shared_deps_merge_strategy()(generate_bundles(SHELL_INDEX))
        shared = [b for b in bundles if get_bundle_entrypoint(b) is None]
        assert len(shared) == 1
        assert shared[0].files == {'framework.html', 'widgets.html'}
        assert shared[0].entrypoints == {'shell.html', 'a.html', 'b.html'}

    def test_shared_deps_keeps_entrypoint_bundles(self):
        bundles = generate_shared_deps_merge_strategy()(generate_bundles(SCENARIO_INDEX))
        assert frozenset({'common.html'}) in _by_files(bundles)
        assert len(bundles) == 3

    def test_min_entrypoints_threshold(self):
        bundles = generate_shared_deps_merge_strategy(min_entrypoints=3)(generate_bundles(SHELL_INDEX))
        shared = [b for b in bundles if get_bundle_entrypoint(b) is None]
        assert sorted(sorted(b.files) for b in shared) == [['framework.html'], ['widgets.html']]

    def test_eager_strategy_folds_shared_deps_into_entrypoint(self):
        bundles = generate_eager_merge_strategy('a.html')(generate_bundles(SHELL_INDEX))
        a_bundle = next(b for b in bundles if 'a.html' in b.files)
        assert a_bundle.files == {'a.html', 'framework.html', 'widgets.html'}
        assert get_bundle_entrypoint(a_bundle) == 'a.html'

    def test_shell_strategy(self):
        bundles = generate_shell_merge_strategy('shell.html')(generate_bundles(SHELL_INDEX))
        shell_bundle = next(b for b in bundles if 'shell.html' in b.files)
        assert shell_bundle.files == {'shell.html', 'framework.html', 'widgets.html'}
        assert len(bundles) == 3

    def test_compose_runs_in_order(self):
        strategy = compose_strategies([
            generate_shared_deps_merge_strategy(min_entrypoints=3),
            generate_shell_merge_strategy('shell.html'),
        ])
        bundles = strategy(generate_bundles(SHELL_INDEX))
        shell_bundle = next(b for b in bundles if 'shell.html' in b.files)
        assert shell_bundle.files == {'shell.html', 'framework.html', 'widgets.html'}

    def test_merge_bundles_unions(self):
        merged = merge_bundles([
            Bundle({'a.html'}, {'x.html'}, strip_imports={'s.html'}),
            Bundle({'b.html'}, {'y.html'}),
        ])
        assert merged.entrypoints == {'a.html', 'b.html'}
        assert merged.files == {'x.html', 'y.html'}
        assert merged.strip_imports == {'s.html'}


class TestBundleManifest:

    def test_counting_mapper_names_shared_bundles(self):
        bundles = generate_shared_deps_merge_strategy()(generate_bundles(SHELL_INDEX))
        manifest = BundleManifest(bundles, generate_counting_shared_bundle_url_mapper('shared_bundle_'))
        assert set(manifest.bundles) == {'shell.html', 'a.html', 'b.html', 'shared_bundle_1.html'}
        assert manifest.bundles['shared_bundle_1.html'].files == {'framework.html', 'widgets.html'}

    def test_entrypoint_bundles_keep_their_url(self):
        bundles = generate_shared_deps_merge_strategy()(generate_bundles(SCENARIO_INDEX))
        manifest = BundleManifest(bundles, generate_counting_shared_bundle_url_mapper())
        assert set(manifest.bundles) == {'common.html', 'endpoint1.html', 'endpoint2.html'}

    def test_shared_file_never_duplicated(self):
        bundles = generate_shared_deps_merge_strategy()(generate_bundles(SHELL_INDEX))
        manifest = BundleManifest(bundles, generate_counting_shared_bundle_url_mapper('bundle-'))
        owners = [url for url, b in manifest.bundles.items() if 'framework.html' in b.files]
        assert owners == ['bundle-1.html']

    def test_get_bundle_for_file(self):
        bundles = generate_bundles(SCENARIO_INDEX)
        manifest = BundleManifest(bundles, generate_counting_shared_bundle_url_mapper())
        assigned = manifest.get_bundle_for_file('dep1.html')
        assert assigned.url == 'endpoint1.html'
        assert manifest.get_bundle_for_file('unknown.html') is None

    def test_fork_is_independent(self):
        manifest = BundleManifest(generate_bundles(SCENARIO_INDEX), generate_counting_shared_bundle_url_mapper())
        forked = manifest.fork()
        forked.bundles['endpoint1.html'].inlined_html_imports.add('dep1.html')
        forked.bundles['endpoint1.html'].files.add('extra.html')
        assert manifest.bundles['endpoint1.html'].inlined_html_imports == set()
        assert 'extra.html' not in manifest.bundles['endpoint1.html'].files

    def test_duplicate_urls_rejected(self):
        mapper = generate_shared_bundle_url_mapper(lambda shared: ['a.html'] * len(shared))
        bundles = [Bundle({'a.html'}, {'a.html'}), Bundle({'a.html', 'b.html'}, {'x.html'})]
        with pytest.raises(MalformedManifestError):
            BundleManifest(bundles, mapper)

    def test_to_json_dict(self):
        manifest = BundleManifest(
            [Bundle({'a.html'}, {'a.html', 'b.html'}, strip_imports={'c.html'})],
            generate_counting_shared_bundle_url_mapper(),
        )
        assert manifest.to_json_dict() == {
            'a.html': {
                'entrypoints': ['a.html'],
                'files': ['a.html', 'b.html'],
                'strip_imports': ['c.html'],
            },
        }
