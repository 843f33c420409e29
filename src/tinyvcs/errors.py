"""Exception hierarchy for tinyvcs.

The strict API (``Repository`` and the components it wires together) raises
these. The convenience functions in :mod:`tinyvcs.api` catch them and only
log.
"""


class VcsError(Exception):
    """Base class for all tinyvcs errors."""


class NotFoundError(VcsError):
    """Raised when a path or object does not exist."""


class ObjectNotFoundError(NotFoundError):
    """Raised when an object cannot be found in the object store."""


class RepositoryNotFoundError(NotFoundError):
    """Raised when a directory holds no tinyvcs storage directory."""


class AccessDeniedError(VcsError):
    """Raised when a source entry cannot be read."""


class CycleDetectedError(VcsError):
    """Raised when a directory is reached twice while building one tree."""


class IOFailureError(VcsError):
    """Raised when an underlying read or write fails."""


class DigestUnavailableError(VcsError):
    """Raised when the fingerprint algorithm is not available."""


class ObjectCorruptedError(VcsError):
    """Raised when an object's content does not match its fingerprint."""


class InvalidObjectError(VcsError):
    """Raised when commit or tree text cannot be parsed."""
