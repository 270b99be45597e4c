"""Bundler error taxonomy."""


class BundlerError(Exception):
    """Base class for errors raised while planning or producing bundles."""
    pass


class UnresolvedImportError(BundlerError):
    """An import, script or stylesheet target could not be loaded."""

    def __init__(self, url: str, referrer: str, reason: str = ''):
        self.url = url
        self.referrer = referrer
        message = f"Unable to inline {url} (referenced from {referrer})"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class MalformedManifestError(BundlerError):
    """A manifest bundle references an unknown file or collides on its URL."""
    pass
