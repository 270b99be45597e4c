"""Dependency index: which documents each entrypoint eagerly depends on.

For every entrypoint the index holds the transitive closure of documents
reached through eager HTML imports, the entrypoint included. A document
reached only through a lazy import is not part of the referencing
entrypoint's closure; it becomes an entrypoint of its own, so the index can
hold more entrypoints than were requested.

Known limitation: the eager dependencies of a lazily imported document are
attributed to that document's closure only. They are never merged back into
the closure of the entrypoint that lazily imports it, even though at runtime
they load once the lazy import fires.
"""

import logging
from collections import deque
from typing import Iterable

from html_bundler.analysis.analyzer import Analyzer
from html_bundler.analysis.document import FeatureKind

logger = logging.getLogger(__name__)

# entrypoint url -> urls it eagerly depends on (itself included)
DependencyClosure = dict[str, set[str]]


async def build_deps_index(entrypoints: Iterable[str], analyzer: Analyzer) -> DependencyClosure:
    """Compute the eager dependency closure of every discovered entrypoint.

    Args:
        entrypoints: Requested entrypoint URLs.
        analyzer: Analyzer used to load and parse documents.

    Returns:
        Mapping of entrypoint URL to its closure, requested entrypoints first,
        then lazily discovered ones in discovery order.
    """
    entrypoint_to_deps: DependencyClosure = {}
    queue = deque(dict.fromkeys(entrypoints))
    known: set[str] = set(queue)

    while queue:
        entrypoint = queue.popleft()
        analysis = await analyzer.analyze([entrypoint])
        document = analysis.get_document(entrypoint)

        deps: set[str] = {entrypoint}
        for feature in document.get_features(FeatureKind.HTML_IMPORT, imported=True):
            if feature.lazy:
                if feature.resolved and feature.url not in known:
                    logger.debug("Lazy import %s becomes an entrypoint", feature.url)
                    known.add(feature.url)
                    queue.append(feature.url)
            elif feature.resolved:
                deps.add(feature.url)

        entrypoint_to_deps[entrypoint] = deps

    return entrypoint_to_deps
