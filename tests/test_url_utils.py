"""Tests for URL resolution and rewriting helpers."""

from html_bundler.url_utils import (
    is_excluded,
    is_rewritable_url,
    rebase_url,
    relative_dir,
    relative_url,
    resolve_url,
)


class TestResolveUrl:

    def test_relative_to_document_folder(self):
        assert resolve_url('a/b/index.html', 'c.html') == 'a/b/c.html'
        assert resolve_url('a/b/index.html', '../c.html') == 'a/c.html'

    def test_root_relative(self):
        assert resolve_url('a/b/index.html', '/c.html') == 'c.html'

    def test_keeps_query_and_fragment(self):
        assert resolve_url('a/index.html', 'x.js?v=2#main') == 'a/x.js?v=2#main'

    def test_leaves_absolute_and_bindings_alone(self):
        assert resolve_url('a/index.html', 'https://cdn.example.com/x.js') == 'https://cdn.example.com/x.js'
        assert resolve_url('a/index.html', '{{base}}/x.js') == '{{base}}/x.js'


class TestRelativeUrl:

    def test_same_folder(self):
        assert relative_url('a/index.html', 'a/x.html') == 'x.html'

    def test_other_folder(self):
        assert relative_url('a/index.html', 'b/x.html') == '../b/x.html'
        assert relative_url('index.html', 'b/x.html') == 'b/x.html'

    def test_rebase(self):
        assert rebase_url('img/bg.png', 'styles/theme.css', 'index.html') == 'styles/img/bg.png'
        assert rebase_url('#anchor', 'styles/theme.css', 'index.html') == '#anchor'

    def test_relative_dir(self):
        assert relative_dir('index.html', 'elements/x.html') == 'elements/'
        assert relative_dir('a/index.html', 'a/x.html') == ''


class TestRewritable:

    def test_non_rewritable(self):
        assert not is_rewritable_url('')
        assert not is_rewritable_url('#top')
        assert not is_rewritable_url('data:image/png;base64,AAAA')
        assert not is_rewritable_url('//cdn.example.com/x.js')
        assert not is_rewritable_url('[[path]]/x.html')

    def test_rewritable(self):
        assert is_rewritable_url('x.html')
        assert is_rewritable_url('../x.html')


class TestIsExcluded:

    def test_folder_prefix(self):
        assert is_excluded('a/b/c.html', ['a/'])
        assert is_excluded('a/b.html', ['a'])
        assert not is_excluded('ab.html', ['a'])

    def test_exact(self):
        assert is_excluded('x.html', ['x.html'])
        assert not is_excluded('x.html', [])
