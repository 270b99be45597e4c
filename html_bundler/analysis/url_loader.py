"""URL loaders feeding the analyzer."""

import asyncio
import logging
import os
from typing import Protocol

from html_bundler.url_utils import is_absolute_url, strip_url

logger = logging.getLogger(__name__)


class UrlLoadError(Exception):
    """Error loading a URL."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to load {url}: {reason}")


class UrlLoader(Protocol):
    """Anything the analyzer can read documents through."""

    def can_load(self, url: str) -> bool: ...

    async def load(self, url: str) -> str: ...


class FSUrlLoader:
    """Loads project-relative URLs from files below a root directory."""

    def __init__(self, root: str = '.'):
        self.root = os.path.abspath(root)

    def can_load(self, url: str) -> bool:
        if not url or is_absolute_url(url):
            return False
        return self._path_for(url) is not None

    def _path_for(self, url: str) -> str | None:
        path = os.path.normpath(os.path.join(self.root, strip_url(url).lstrip('/')))
        if path != self.root and not path.startswith(self.root + os.sep):
            return None
        return path

    async def load(self, url: str) -> str:
        if not self.can_load(url):
            raise UrlLoadError(url, 'outside of the project root')
        path = self._path_for(url)
        try:
            return await asyncio.to_thread(_read_text, path)
        except (OSError, UnicodeDecodeError) as e:
            raise UrlLoadError(url, str(e)) from e


def _read_text(path: str) -> str:
    with open(path, encoding='utf-8') as f:
        return f.read()


class InMemoryOverlayUrlLoader:
    """Serves in-memory contents in place of what the fallback loader has.

    Used to analyze a mutated tree under its original URL without touching
    the file on disk. Callers must invalidate the analyzer's cache for a URL
    after writing it here.
    """

    def __init__(self, fallback: UrlLoader | None = None):
        self.fallback = fallback
        self.url_contents_map: dict[str, str] = {}

    def can_load(self, url: str) -> bool:
        if url in self.url_contents_map:
            return True
        return self.fallback is not None and self.fallback.can_load(url)

    async def load(self, url: str) -> str:
        if url in self.url_contents_map:
            logger.debug("Loading %s from overlay", url)
            return self.url_contents_map[url]
        if self.fallback is None:
            raise UrlLoadError(url, 'no overlay contents and no fallback loader')
        return await self.fallback.load(url)
