"""
Dataset contracts: resources, canonical records, and the library snapshot.

**Conceptual**: This module defines the "data contracts" for the loader. A
DatasetResource says where a dataset lives and what every row must contain; a
canonical record is the fixed-shape, typed form of one row; a LibrarySnapshot
is the immutable bundle of all six record sequences produced by one load cycle.

**Contract rules**:
  - Every canonical record has `id`, `label` and a structured `config` mapping
    (never a raw string, never None).
  - Fields the contract does not know about are kept in `extra`, untouched.
  - Snapshots hold tuples of frozen dataclasses. A new load cycle produces a
    new snapshot; nothing mutates a published one.

**Two dataset layouts**: the same six logical resources can be generated as
one CSV file per dataset or as one consolidated JSON document with a top-level
array per dataset. CSV_RESOURCES and JSON_RESOURCES describe both.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

Range = Tuple[float, float]

# Resource names (camelCase, matching the consolidated JSON keys)
SCENARIOS = "scenarios"
JOBS = "jobs"
INCIDENT_EVENTS = "incidentEvents"
GOOD_EVENTS = "goodEvents"
BAD_EVENTS = "badEvents"
HOBBY_OFFERS = "hobbyOffers"

RESOURCE_NAMES = (SCENARIOS, JOBS, INCIDENT_EVENTS, GOOD_EVENTS, BAD_EVENTS, HOBBY_OFFERS)

# Resource name -> LibrarySnapshot attribute
SNAPSHOT_FIELDS = {
    SCENARIOS: "scenarios",
    JOBS: "jobs",
    INCIDENT_EVENTS: "incident_events",
    GOOD_EVENTS: "good_events",
    BAD_EVENTS: "bad_events",
    HOBBY_OFFERS: "hobby_offers",
}

REQUIRED_FIELDS = {
    SCENARIOS: ("id", "type"),
    JOBS: ("group", "label", "effect"),
    INCIDENT_EVENTS: ("story",),
    GOOD_EVENTS: ("id", "text"),
    BAD_EVENTS: ("id", "text"),
    HOBBY_OFFERS: ("id", "provider"),
}

# Scenario types the simulation knows how to build
SCENARIO_TYPES = frozenset({
    "jobSelection",
    "event",
    "static",
    "incidentChoice",
    "hobbyStarter",
    "goodEvent",
    "badEvent",
    "hobbyOffer",
    "promotionOffer",
    "relationshipInvite",
    "relationshipOutcome",
    "relationshipBreakup",
    "pendingRelationship",
    "hobbyVerification",
})

SHAPES = ("csv", "json")

CONSOLIDATED_LIBRARY_PATH = "Resources/library.json"

SOURCE_LOADED = "loaded"
SOURCE_EMBEDDED = "embedded"


@dataclass(frozen=True)
class DatasetResource:
    """
    A named, path-addressed dataset file.

    Attributes:
        name: Resource name (one of RESOURCE_NAMES).
        path: Path relative to the static root / base URL.
        shape: "csv" or "json".
        required_fields: Fields every row must carry to be kept.
        key: For JSON resources inside a consolidated document, the top-level
             array to read. None means the document itself is the array.
    """
    name: str
    path: str
    shape: str
    required_fields: Tuple[str, ...] = ()
    key: Optional[str] = None

    def __post_init__(self):
        if self.shape not in SHAPES:
            raise ValueError(
                f"Resource {self.name!r}: shape must be one of {SHAPES}, got {self.shape!r}"
            )
        if not self.path:
            raise ValueError(f"Resource {self.name!r}: path cannot be empty")


CSV_RESOURCES = (
    DatasetResource(SCENARIOS, "Scenarios/scenarios.csv", "csv", REQUIRED_FIELDS[SCENARIOS]),
    DatasetResource(JOBS, "Scenarios/jobs.csv", "csv", REQUIRED_FIELDS[JOBS]),
    DatasetResource(INCIDENT_EVENTS, "Scenarios/incident_events.csv", "csv", REQUIRED_FIELDS[INCIDENT_EVENTS]),
    DatasetResource(GOOD_EVENTS, "Scenarios/good_events.csv", "csv", REQUIRED_FIELDS[GOOD_EVENTS]),
    DatasetResource(BAD_EVENTS, "Scenarios/bad_events.csv", "csv", REQUIRED_FIELDS[BAD_EVENTS]),
    DatasetResource(HOBBY_OFFERS, "Scenarios/hobby_offers.csv", "csv", REQUIRED_FIELDS[HOBBY_OFFERS]),
)

JSON_RESOURCES = tuple(
    DatasetResource(name, CONSOLIDATED_LIBRARY_PATH, "json", REQUIRED_FIELDS[name], key=name)
    for name in RESOURCE_NAMES
)


def resources_for_mode(mode: str) -> Tuple[DatasetResource, ...]:
    """
    Return the standard resource set for a dataset mode.

    Args:
        mode: "json" for the consolidated library document, "csv" for one
              file per dataset.

    Raises:
        ValueError: If mode is not recognised.
    """
    if mode == "json":
        return JSON_RESOURCES
    if mode == "csv":
        return CSV_RESOURCES
    raise ValueError(f"Unknown dataset mode {mode!r}; expected 'json' or 'csv'")


# ============================================================================
# Canonical records
# ============================================================================

@dataclass(frozen=True)
class Scenario:
    """One scenario definition. `type` selects how the simulation builds it."""
    kind: ClassVar[str] = SCENARIOS

    id: str
    label: str
    type: str
    pool: str = ""
    text: str = ""
    details: str = ""
    config: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Job:
    """A job offer, grouped so a jobSelection scenario can draw from one group."""
    kind: ClassVar[str] = JOBS

    id: str
    label: str
    group: str
    effect: str
    config: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class IncidentEvent:
    kind: ClassVar[str] = INCIDENT_EVENTS

    id: str
    label: str
    story: str
    money: Range = (0.0, 0.0)
    happiness: Range = (0.0, 0.0)
    config: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class GoodEvent:
    kind: ClassVar[str] = GOOD_EVENTS

    id: str
    label: str
    text: str
    providers: Tuple[str, ...] = ()
    cost: Range = (0.0, 0.0)
    happiness: Range = (0.0, 0.0)
    config: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BadEvent:
    kind: ClassVar[str] = BAD_EVENTS

    id: str
    label: str
    text: str
    money: Range = (0.0, 0.0)
    happiness: Range = (0.0, 0.0)
    config: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class HobbyOffer:
    kind: ClassVar[str] = HOBBY_OFFERS

    id: str
    label: str
    text: str
    provider: str
    cost: Range = (0.0, 0.0)
    happiness: Range = (0.0, 0.0)
    requires_id: bool = False
    config: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)


CanonicalRecord = Union[Scenario, Job, IncidentEvent, GoodEvent, BadEvent, HobbyOffer]


# ============================================================================
# Library snapshot
# ============================================================================

@dataclass(frozen=True)
class ResourceOutcome:
    """
    What happened to one resource during a load cycle.

    Attributes:
        name: Resource name.
        source: SOURCE_LOADED when the records came from a transport,
                SOURCE_EMBEDDED when embedded fallback data was substituted.
        record_count: Number of canonical records published for the resource.
        rows_dropped: Rows skipped because of a row-level ParseError.
        config_errors: Config cells that could not be decoded.
        error: Why the loaded data was rejected (None when it was used).
    """
    name: str
    source: str
    record_count: int
    rows_dropped: int = 0
    config_errors: int = 0
    error: Optional[str] = None


@dataclass(frozen=True)
class LibrarySnapshot:
    """
    Immutable bundle of all canonical record sequences for one load cycle.

    Equality compares the record sequences only; `diagnostics` describes how
    the snapshot was produced and is excluded, so a library assembled entirely
    from embedded data equals `embedded_snapshot()`.
    """
    scenarios: Tuple[Scenario, ...] = ()
    jobs: Tuple[Job, ...] = ()
    incident_events: Tuple[IncidentEvent, ...] = ()
    good_events: Tuple[GoodEvent, ...] = ()
    bad_events: Tuple[BadEvent, ...] = ()
    hobby_offers: Tuple[HobbyOffer, ...] = ()
    diagnostics: Tuple[ResourceOutcome, ...] = field(default=(), compare=False)

    @classmethod
    def from_records(
        cls,
        records: Dict[str, List[CanonicalRecord]],
        diagnostics: Tuple[ResourceOutcome, ...] = (),
    ) -> "LibrarySnapshot":
        """Build a snapshot from resource name -> record list."""
        kwargs = {
            SNAPSHOT_FIELDS[name]: tuple(records.get(name, ()))
            for name in RESOURCE_NAMES
        }
        return cls(diagnostics=tuple(diagnostics), **kwargs)

    def records(self, name: str) -> Tuple[CanonicalRecord, ...]:
        """Return the record sequence for a resource name (e.g. "goodEvents")."""
        try:
            return getattr(self, SNAPSHOT_FIELDS[name])
        except KeyError:
            raise KeyError(f"Unknown resource {name!r}. Known: {list(RESOURCE_NAMES)}")

    def counts(self) -> Dict[str, int]:
        return {name: len(self.records(name)) for name in RESOURCE_NAMES}

    def is_empty(self) -> bool:
        return not any(self.counts().values())

    def find(self, name: str, record_id: str) -> Optional[CanonicalRecord]:
        """Return the first record with `record_id` in resource `name`, or None."""
        for record in self.records(name):
            if record.id == record_id:
                return record
        return None

    def jobs_by_group(self) -> Dict[str, Tuple[Job, ...]]:
        """Group jobs by their `group` field, keeping source order."""
        grouped: Dict[str, List[Job]] = {}
        for job in self.jobs:
            group = job.group.strip()
            if not group:
                continue
            grouped.setdefault(group, []).append(job)
        return {group: tuple(jobs) for group, jobs in grouped.items()}

    @property
    def fallback_resources(self) -> Tuple[str, ...]:
        """Names of resources whose records came from embedded fallback data."""
        return tuple(o.name for o in self.diagnostics if o.source == SOURCE_EMBEDDED)

    @property
    def used_fallback(self) -> bool:
        return bool(self.fallback_resources)

    @property
    def diagnostic_count(self) -> int:
        """Total dropped rows plus undecodable config cells across all resources."""
        return sum(o.rows_dropped + o.config_errors for o in self.diagnostics)
