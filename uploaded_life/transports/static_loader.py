"""
Fallback transport: read dataset files from the static root on disk.

The static root plays the part of the page's own origin: it is always
reachable, even when the primary transport is disallowed, and every relative
dataset path resolves underneath it.
"""

import asyncio
import logging
from pathlib import Path

from uploaded_life.config.settings import LoaderSettings
from uploaded_life.errors import TransportDisallowed, TransportError, TransportTimeout

logger = logging.getLogger(__name__)


class StaticContentLoader:
    """
    Load dataset text from files under a static root directory.

    Paths that would resolve outside the root (`../secrets`, absolute paths)
    are refused with TransportDisallowed.
    """

    name = "static"

    def __init__(self, static_root: Path | str, timeout_seconds: float = 5.0):
        self.static_root = Path(static_root)
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, settings: LoaderSettings) -> "StaticContentLoader":
        return cls(settings.static_root, settings.static_timeout_seconds)

    def resolve(self, path: str) -> Path:
        """
        Map a relative dataset path onto a file under the static root.

        Raises:
            TransportDisallowed: If the path escapes the static root.
        """
        root = self.static_root.resolve()
        target = (root / path.lstrip("/")).resolve()
        if target != root and root not in target.parents:
            raise TransportDisallowed(
                f"static: {path!r} resolves outside the static root {root}",
                transport=self.name,
                path=path,
            )
        return target

    def is_available(self, path: str) -> bool:
        try:
            self.resolve(path)
        except TransportDisallowed:
            return False
        return True

    async def load_text(self, path: str) -> str:
        """
        Read `path` from the static root.

        Raises:
            TransportDisallowed: If the path escapes the static root.
            TransportTimeout: If the read does not finish in time.
            TransportError: If the file is missing or unreadable.
        """
        target = self.resolve(path)
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._read, target, path),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise TransportTimeout(
                f"static: timed out after {self.timeout_seconds}s reading {target}",
                transport=self.name,
                path=path,
            ) from e

    def _read(self, target: Path, path: str) -> str:
        logger.debug("Uploaded Life: reading %s", target)
        try:
            return target.read_text(encoding="utf-8-sig")
        except FileNotFoundError as e:
            raise TransportError(
                f"static: {target} not found", transport=self.name, path=path
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            raise TransportError(
                f"static: unable to read {target}: {e}", transport=self.name, path=path
            ) from e
