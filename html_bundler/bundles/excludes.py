"""Removes excluded files from provisional bundles."""

import logging

from html_bundler.bundles.bundle_manifest import Bundle
from html_bundler.url_utils import is_excluded

logger = logging.getLogger(__name__)


def filter_excludes_from_bundles(bundles: list[Bundle], excludes: list[str]) -> None:
    """Drop excluded files from ``bundles`` in place, then drop emptied bundles.

    An exclude matches a file equal to it or any file below it taken as a
    folder, so ``"a"`` and ``"a/"`` both remove ``"a/b/c.html"`` but not
    ``"ab.html"``.
    """
    if not excludes:
        return
    for bundle in bundles:
        excluded = {f for f in bundle.files if is_excluded(f, excludes)}
        if excluded:
            logger.debug("Excluding %s", ', '.join(sorted(excluded)))
            bundle.files -= excluded

    kept = [b for b in bundles if b.files]
    if len(kept) != len(bundles):
        logger.info("Pruned %d bundle(s) left empty by excludes", len(bundles) - len(kept))
    bundles[:] = kept
