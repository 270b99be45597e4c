"""Parse, serialize and perform surgery on BeautifulSoup trees.

Trees are treated as values: a stage that mutates a tree works on its own
``clone`` and hands it to the next stage.
"""

from bs4 import BeautifulSoup, Comment, Doctype, NavigableString, Tag

from html_bundler.domain.constants import LICENSE_COMMENT_RE


def parse_html(contents: str) -> BeautifulSoup:
    """Parse markup without inventing html/head/body wrappers."""
    return BeautifulSoup(contents, 'html.parser', multi_valued_attributes=None)


def serialize(ast: BeautifulSoup | Tag) -> str:
    return ast.decode()


def clone(ast: BeautifulSoup) -> BeautifulSoup:
    return parse_html(serialize(ast))


def elements(ast: BeautifulSoup | Tag) -> list[Tag]:
    """All elements below ``ast`` in document (source) order."""
    return ast.find_all(True)


def in_template(node: Tag) -> bool:
    return node.find_parent('template') is not None


def create_element(ast: BeautifulSoup, name: str, attrs: dict[str, str] | None = None) -> Tag:
    return ast.new_tag(name, attrs=attrs or {})


def prepend(parent: Tag, node) -> None:
    parent.insert(0, node)


def siblings_after(node: Tag) -> list:
    return list(node.next_siblings)


def remove_element_and_newline(node: Tag) -> None:
    """Detach ``node`` along with the line break that follows it."""
    following = node.next_sibling
    if (
        isinstance(following, NavigableString)
        and not isinstance(following, Comment)
        and following.startswith('\n')
    ):
        rest = str(following)[1:]
        if rest:
            following.replace_with(rest)
        else:
            following.extract()
    node.extract()


def replace_with_children(node: Tag, fragment: BeautifulSoup | Tag) -> None:
    """Replace ``node`` by the top-level children of ``fragment``, in order."""
    for child in list(fragment.contents):
        child.extract()
        node.insert_before(child)
    node.extract()


def unwrap_tags(ast: BeautifulSoup, names) -> None:
    for name in names:
        for tag in ast.find_all(name):
            tag.unwrap()


def remove_doctypes(ast: BeautifulSoup) -> None:
    for doctype in ast.find_all(string=lambda s: isinstance(s, Doctype)):
        remove_element_and_newline(doctype)


def is_empty(node: Tag) -> bool:
    return node.decode_contents().strip() == ''


def strip_comments(ast: BeautifulSoup) -> None:
    """Remove comments, keeping each distinct ``@license`` comment once."""
    seen_licenses: set[str] = set()
    for comment in ast.find_all(string=lambda s: isinstance(s, Comment)):
        text = str(comment)
        if LICENSE_COMMENT_RE.search(text) and text not in seen_licenses:
            seen_licenses.add(text)
            continue
        comment.extract()
