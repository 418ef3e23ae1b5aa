"""
Transport resolution: try each content loader once, in order.

**Conceptual**: The resolver is the fallback chain between "I need the text of
Scenarios/jobs.csv" and whichever transport can actually deliver it. The first
strategy to return text wins; a strategy that is unavailable in the current
context is skipped; every failure is logged and remembered so the final
ResourceUnavailable says what was tried.

**Ordering**: build_resolver() always lists the HTTP loader first and the
static-root loader second, so a working server is preferred and a page opened
straight from disk still loads its datasets.
"""

import logging
from typing import List, Optional, Sequence

from uploaded_life.config.settings import LoaderSettings
from uploaded_life.errors import ResourceUnavailable, TransportDisallowed, TransportError
from uploaded_life.transports.base import ContentLoader
from uploaded_life.transports.http_loader import HttpContentLoader
from uploaded_life.transports.static_loader import StaticContentLoader

logger = logging.getLogger(__name__)


class TransportResolver:
    """
    Ordered list of ContentLoaders with first-success-wins semantics.

    Each loader is attempted at most once per load_text() call. No retries.

    Example:
        >>> resolver = TransportResolver([HttpContentLoader(url), StaticContentLoader(root)])
        >>> text = await resolver.load_text("Scenarios/jobs.csv", name="jobs")
    """

    def __init__(self, loaders: Sequence[ContentLoader]):
        if not loaders:
            raise ValueError("TransportResolver needs at least one content loader")
        self.loaders = tuple(loaders)

    async def load_text(self, path: str, name: Optional[str] = None) -> str:
        """
        Load `path` through the first loader that succeeds.

        Args:
            path: Relative dataset path.
            name: Resource name for error messages (defaults to the path).

        Returns:
            The text returned by the winning loader.

        Raises:
            ResourceUnavailable: If every loader was unavailable or failed. Its
                                 `attempts` hold one TransportError per loader.
        """
        resource = name or path
        attempts: List[TransportError] = []

        for loader in self.loaders:
            if not loader.is_available(path):
                logger.debug("Uploaded Life: %s transport unavailable for %s", loader.name, path)
                attempts.append(TransportDisallowed(
                    f"{loader.name}: unavailable in this context",
                    transport=loader.name,
                    path=path,
                ))
                continue
            try:
                text = await loader.load_text(path)
            except TransportError as e:
                logger.warning(
                    "Uploaded Life: %s transport failed for %s: %s", loader.name, path, e
                )
                attempts.append(e)
                continue
            logger.debug("Uploaded Life: loaded %s via %s", path, loader.name)
            return text

        raise ResourceUnavailable(resource, path, attempts)


def build_resolver(settings: LoaderSettings, session_factory=None) -> TransportResolver:
    """
    Build the standard two-strategy resolver from loader settings.

    Args:
        settings: Loader settings (base URL, static root, timeouts).
        session_factory: Optional requests.Session factory for the HTTP loader.
    """
    return TransportResolver([
        HttpContentLoader.from_settings(settings, session_factory=session_factory),
        StaticContentLoader.from_settings(settings),
    ])
