"""
Base abstraction for content transports.

**Conceptual**: A ContentLoader is one strategy for turning a relative dataset
path into raw text. The resolver holds an ordered list of them and tries each
once; callers never know which one answered.

Implementations MUST:
  1. Report whether they can be used at all via is_available(), without I/O.
  2. Raise a TransportError subclass (never return None or empty-on-failure)
     from load_text() when they cannot produce the text.
  3. Enforce their own timeout, raising TransportTimeout when it elapses.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ContentLoader(Protocol):
    """
    Protocol for loading a dataset file's text by relative path.

    Attributes:
        name: Short strategy name used in logs and error messages
              (e.g. "http", "static").

    Example:
        >>> loader = StaticContentLoader(Path("public"))
        >>> if loader.is_available("Resources/library.json"):
        ...     text = await loader.load_text("Resources/library.json")
    """

    name: str

    def is_available(self, path: str) -> bool:
        """Return False when this strategy is disallowed for `path` in the current context."""
        ...

    async def load_text(self, path: str) -> str:
        """
        Load the full text at `path`.

        Raises:
            TransportError: On any failure (non-2xx, unreadable file, ...).
            TransportTimeout: When the strategy's own timeout elapses.
            TransportDisallowed: When the strategy cannot serve `path`.
        """
        ...
