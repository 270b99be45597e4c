"""Rebases relative references when content moves between documents."""

import logging

from bs4 import BeautifulSoup

from html_bundler.domain.constants import CSS_URL_RE, URL_ATTRIBUTES
from html_bundler.tree_utils import elements, in_template, remove_element_and_newline
from html_bundler.url_utils import is_absolute_url, rebase_url, relative_dir, resolve_url

logger = logging.getLogger(__name__)


def rewrite_css_urls(css_text: str, old_base: str, new_base: str) -> str:
    """Rebase every relative ``url(...)`` in ``css_text``."""
    if old_base == new_base:
        return css_text

    def repl(m) -> str:
        quote = m.group(1) or ''
        url = m.group(2).strip()
        return f"url({quote}{rebase_url(url, old_base, new_base)}{quote})"

    return CSS_URL_RE.sub(repl, css_text)


def rewrite_ast_base_url(
    ast: BeautifulSoup,
    old_base: str,
    new_base: str,
    rewrite_urls_in_templates: bool = False,
) -> None:
    """Rewrite URL attributes and inline CSS authored at ``old_base`` to resolve at ``new_base``.

    Content inside ``<template>`` is left alone unless
    ``rewrite_urls_in_templates`` is set; a ``<dom-module>`` then gets an
    ``assetpath`` pointing back at its original folder instead.
    """
    if old_base == new_base:
        return
    for tag in elements(ast):
        if not rewrite_urls_in_templates and in_template(tag):
            continue
        for attr in URL_ATTRIBUTES:
            value = tag.get(attr)
            if value is not None:
                tag[attr] = rebase_url(value, old_base, new_base)
        if tag.get('style'):
            tag['style'] = rewrite_css_urls(tag['style'], old_base, new_base)
        if tag.name == 'style' and tag.string:
            tag.string = rewrite_css_urls(str(tag.string), old_base, new_base)
        if tag.name == 'dom-module' and not rewrite_urls_in_templates and not tag.has_attr('assetpath'):
            assetpath = relative_dir(new_base, old_base)
            if assetpath:
                tag['assetpath'] = assetpath


def rewrite_ast_to_emulate_base_tag(
    ast: BeautifulSoup,
    doc_url: str,
    rewrite_urls_in_templates: bool = False,
) -> None:
    """Apply a relative ``<base href>`` to the tree's URLs and drop the tag.

    Once content is merged into another document its base tag would apply
    to everything else in that document, so its effect is baked in instead.
    """
    base = ast.find('base', href=True)
    if base is None:
        return
    base_url = resolve_url(doc_url, base['href'])
    if is_absolute_url(base_url):
        logger.debug("Keeping absolute <base href=%s> in %s", base['href'], doc_url)
        return
    remove_element_and_newline(base)
    rewrite_ast_base_url(ast, base_url, doc_url, rewrite_urls_in_templates)
