"""
Library assembly: load every dataset concurrently and merge in fallbacks.

**Conceptual**: The assembler turns a list of DatasetResources into one
LibrarySnapshot. Each resource independently ends up either "loaded" (text
came from a transport and produced records) or "embedded" (its compiled-in
fallback data was substituted). A failure in one resource never affects the
others, and nothing escapes build_library(): the worst outcome is a library
built entirely from embedded data.

**Functionally**:
  1. Start one fetch task per distinct path before awaiting any of them, so
     all loads are in flight together. Resources sharing a path (the six
     arrays of a consolidated library.json) share one fetch.
  2. For each resource, parse the text by shape and normalize its rows.
  3. Substitute embedded data when the fetch failed, the document could not
     be parsed, no valid record survived normalization, or anything else
     went wrong for that resource alone.
  4. Wait for every resource, then compose the snapshot with one
     ResourceOutcome per resource as diagnostics.

publish() additionally resolves the load cycle's future with the snapshot.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from uploaded_life.errors import ParseError, ResourceUnavailable
from uploaded_life.data.embedded import embedded_records, embedded_snapshot
from uploaded_life.data.io import parse_resource_text
from uploaded_life.data.normalize import normalize_rows
from uploaded_life.data.schemas import (
    JSON_RESOURCES,
    RESOURCE_NAMES,
    SOURCE_EMBEDDED,
    SOURCE_LOADED,
    CanonicalRecord,
    DatasetResource,
    LibrarySnapshot,
    ResourceOutcome,
)
from uploaded_life.library.readiness import LoadState
from uploaded_life.transports.resolver import TransportResolver

logger = logging.getLogger(__name__)

ResourceResult = Tuple[List[CanonicalRecord], ResourceOutcome]


class LibraryAssembler:
    """
    Build LibrarySnapshots through a TransportResolver.

    Args:
        resolver: Transport chain used to load each dataset path.
        state: LoadState whose future publish() resolves. Optional when only
               build_library() is used.

    Example:
        >>> assembler = LibraryAssembler(build_resolver(settings.loader), state)
        >>> snapshot = await assembler.publish(JSON_RESOURCES)
        >>> snapshot.used_fallback
        False
    """

    def __init__(self, resolver: TransportResolver, state: Optional[LoadState] = None):
        self.resolver = resolver
        self.state = state

    async def build_library(
        self, resources: Sequence[DatasetResource] = JSON_RESOURCES
    ) -> LibrarySnapshot:
        """
        Load, parse and normalize every resource into one snapshot. Never raises.

        Args:
            resources: Datasets to load. Resource names missing from this list
                       are filled from embedded data.

        Returns:
            A LibrarySnapshot with diagnostics describing each resource.
        """
        try:
            return await self._assemble(resources)
        except Exception:
            logger.exception("Uploaded Life: library assembly failed, using embedded library")
            return embedded_snapshot()

    async def publish(
        self, resources: Sequence[DatasetResource] = JSON_RESOURCES
    ) -> LibrarySnapshot:
        """
        Build the library and resolve the load cycle's future with it.

        The future is resolved at most once; a future that already settled is
        left alone. The loading modal is hidden before this returns.

        Raises:
            RuntimeError: If the assembler was created without a LoadState.
        """
        if self.state is None:
            raise RuntimeError("LibraryAssembler.publish() needs a LoadState")

        snapshot = await self.build_library(resources)

        self.state.settle(snapshot)
        logger.info(
            "Uploaded Life: library published (%s)%s",
            ", ".join(f"{name}={count}" for name, count in snapshot.counts().items()),
            f", embedded: {', '.join(snapshot.fallback_resources)}" if snapshot.used_fallback else "",
        )
        return snapshot

    async def _assemble(self, resources: Sequence[DatasetResource]) -> LibrarySnapshot:
        names_by_path: Dict[str, List[str]] = {}
        for resource in resources:
            names_by_path.setdefault(resource.path, []).append(resource.name)

        # All fetches start here, before anything is awaited.
        fetches = {
            path: asyncio.ensure_future(self.resolver.load_text(path, name=", ".join(names)))
            for path, names in names_by_path.items()
        }

        results = await asyncio.gather(*(
            self._resolve_resource(resource, fetches[resource.path]) for resource in resources
        ))

        records: Dict[str, List[CanonicalRecord]] = {}
        outcomes: Dict[str, ResourceOutcome] = {}
        for resource, (resource_records, outcome) in zip(resources, results):
            records[resource.name] = resource_records
            outcomes[resource.name] = outcome

        for name in RESOURCE_NAMES:
            if name not in records:
                logger.debug("Uploaded Life: %s not requested, using embedded data", name)
                records[name], outcomes[name] = self._embedded(name, "not requested")

        return LibrarySnapshot.from_records(
            records, tuple(outcomes[name] for name in RESOURCE_NAMES)
        )

    async def _resolve_resource(
        self, resource: DatasetResource, fetch: "asyncio.Future[str]"
    ) -> ResourceResult:
        try:
            return await self._load_resource(resource, fetch)
        except (ResourceUnavailable, ParseError) as e:
            logger.warning("Uploaded Life: using embedded %s data: %s", resource.name, e)
            return self._embedded(resource.name, str(e))
        except Exception as e:
            # Failures stay local to this resource.
            logger.exception(
                "Uploaded Life: unexpected error loading %s, using embedded data", resource.name
            )
            return self._embedded(resource.name, f"unexpected error: {e!r}")

    async def _load_resource(
        self, resource: DatasetResource, fetch: "asyncio.Future[str]"
    ) -> ResourceResult:
        text = await fetch
        parsed = parse_resource_text(resource, text)
        normalized = normalize_rows(resource, parsed.rows)
        rows_dropped = normalized.rows_dropped + parsed.bad_lines

        if not normalized.records:
            error = f"{resource.path} produced no valid {resource.name} records"
            logger.warning("Uploaded Life: using embedded %s data: %s", resource.name, error)
            return self._embedded(
                resource.name, error, rows_dropped, normalized.config_errors
            )

        outcome = ResourceOutcome(
            name=resource.name,
            source=SOURCE_LOADED,
            record_count=len(normalized.records),
            rows_dropped=rows_dropped,
            config_errors=normalized.config_errors,
        )
        return normalized.records, outcome

    @staticmethod
    def _embedded(
        name: str, error: str, rows_dropped: int = 0, config_errors: int = 0
    ) -> ResourceResult:
        fallback = embedded_records(name)
        outcome = ResourceOutcome(
            name=name,
            source=SOURCE_EMBEDDED,
            record_count=len(fallback.records),
            rows_dropped=rows_dropped,
            config_errors=config_errors,
            error=error,
        )
        return fallback.records, outcome
