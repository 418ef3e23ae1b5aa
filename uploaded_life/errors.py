"""
Exception hierarchy for the dataset loader.

**Conceptual**: Every failure the loader can hit has a named type, so callers
can catch exactly the kind they know how to recover from:

  - TransportError and subclasses: one transport strategy failed. The resolver
    catches these and moves on to the next strategy.
  - ResourceUnavailable: every strategy failed for one resource. The library
    assembler catches it and substitutes embedded data.
  - ParseError: a document or a single row could not be turned into records.
    Row-level parse errors are counted and the row is dropped; document-level
    ones are treated like an unavailable resource.
  - ConfigDecodeError: a config cell could not be decoded. normalize_config
    always recovers it locally.
  - SchemaValidationError: a loaded library violates its data contract
    (dangling navigation targets, missing option definitions).

None of these reaches the readiness future: the worst outcome of a load cycle
is a library built entirely from embedded data.
"""

from typing import Optional, Sequence


class UploadedLifeError(Exception):
    """Base exception for all loader errors."""
    pass


class TransportError(UploadedLifeError):
    """
    Raised when one transport strategy fails to load a resource.

    Covers non-2xx responses, network errors, unreadable files and anything
    else a single strategy can run into. The resolver records it and tries the
    next strategy.
    """

    def __init__(self, message: str, transport: str = "", path: str = ""):
        super().__init__(message)
        self.transport = transport
        self.path = path


class TransportTimeout(TransportError):
    """Raised when a transport attempt exceeds its own timeout."""
    pass


class TransportDisallowed(TransportError):
    """
    Raised when the execution context does not allow a transport.

    Examples: no http(s) base URL is configured for the HTTP loader, or a
    path would escape the static root for the static loader.
    """
    pass


class ResourceUnavailable(UploadedLifeError):
    """
    Raised when every transport strategy failed for one resource.

    Attributes:
        resource: Name of the resource (e.g. "scenarios").
        path: Relative path that was requested.
        attempts: The TransportError from each strategy, in the order tried.
    """

    def __init__(self, resource: str, path: str, attempts: Sequence[Exception] = ()):
        self.resource = resource
        self.path = path
        self.attempts = tuple(attempts)
        detail = "; ".join(str(err) for err in self.attempts) or "no transport attempted"
        super().__init__(f"Unable to load {resource} from {path} ({detail})")


class ParseError(UploadedLifeError):
    """
    Raised when raw text or a single raw row cannot be parsed.

    Attributes:
        resource: Name of the resource being parsed.
        row_index: Zero-based row index for row-level errors, None for
                   document-level errors.
    """

    def __init__(self, message: str, resource: str = "", row_index: Optional[int] = None):
        super().__init__(message)
        self.resource = resource
        self.row_index = row_index


class ConfigDecodeError(UploadedLifeError):
    """Raised by decode_config when a config value yields no usable mapping."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class SchemaValidationError(UploadedLifeError):
    """
    Raised when a library does not conform to its data contract.

    The message lists every issue found so a dataset author can fix them in
    one pass.
    """
    pass
