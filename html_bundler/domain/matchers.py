"""Tag predicates used to find order-sensitive constructs in a tree."""

from bs4 import Tag

from html_bundler.domain.constants import (
    HIDDEN_DIV_ATTR,
    JS_SCRIPT_TYPES,
    REL_IMPORT,
    REL_LAZY_IMPORT,
    REL_STYLESHEET,
)
from html_bundler.tree_utils import in_template


def _rels(tag: Tag) -> set[str]:
    return set((tag.get('rel') or '').lower().split())


def _has_href(tag: Tag) -> bool:
    return bool((tag.get('href') or '').strip())


def is_css_import(tag: Tag) -> bool:
    """Deprecated ``<link rel="import" type="css">`` stylesheet import."""
    return (
        tag.name == 'link'
        and REL_IMPORT in _rels(tag)
        and (tag.get('type') or '').lower() == 'css'
        and _has_href(tag)
    )


def is_eager_html_import(tag: Tag) -> bool:
    return (
        tag.name == 'link'
        and REL_IMPORT in _rels(tag)
        and not is_css_import(tag)
        and _has_href(tag)
    )


def is_lazy_html_import(tag: Tag) -> bool:
    return tag.name == 'link' and REL_LAZY_IMPORT in _rels(tag) and _has_href(tag)


def is_html_import(tag: Tag) -> bool:
    return is_eager_html_import(tag) or is_lazy_html_import(tag)


def is_js_script(tag: Tag) -> bool:
    return tag.name == 'script' and (tag.get('type') or '').strip().lower() in JS_SCRIPT_TYPES


def is_external_script(tag: Tag) -> bool:
    return is_js_script(tag) and bool((tag.get('src') or '').strip())


def is_external_stylesheet(tag: Tag) -> bool:
    return tag.name == 'link' and REL_STYLESHEET in _rels(tag) and _has_href(tag)


def is_style(tag: Tag) -> bool:
    return tag.name == 'style' or is_external_stylesheet(tag) or is_css_import(tag)


def is_ordered_imperative(node) -> bool:
    """Constructs whose relative order affects evaluation."""
    if not isinstance(node, Tag):
        return False
    return is_eager_html_import(node) or is_js_script(node) or is_style(node)


def is_hidden_div(tag: Tag) -> bool:
    return tag.name == 'div' and tag.has_attr('hidden') and tag.has_attr(HIDDEN_DIV_ATTR)


def in_hidden_div(tag: Tag) -> bool:
    return tag.find_parent(is_hidden_div) is not None


def outside_template(predicate):
    """Wrap ``predicate`` so elements inside ``<template>`` never match."""
    def matcher(tag: Tag) -> bool:
        return predicate(tag) and not in_template(tag)
    return matcher
