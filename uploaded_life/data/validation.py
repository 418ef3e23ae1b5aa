"""
Library validation: data-contract checks beyond single-row parsing.

**Conceptual**: Row normalization guarantees each record is well-formed on its
own. This module checks the library as a whole, the way a dataset author
would want before shipping new CSVs:

  - Every navigation target in a scenario config points somewhere real: a
    scenario id, a RANDOM / RANDOM_BAD draw, or one of the standalone pages.
  - hobbyStarter scenarios either draw from the hobbyOffers dataset or define
    at least two options of their own.
  - Good/bad events carry id and text; hobby offers carry id and provider.
  - No dataset is empty.

validate_library() returns every issue found; require_valid_library() raises
SchemaValidationError listing them.
"""

import re
from typing import Any, Iterable, List, Set, Tuple

from uploaded_life.errors import SchemaValidationError
from uploaded_life.data.schemas import RESOURCE_NAMES, LibrarySnapshot, Scenario

RANDOM_TARGETS = frozenset({"RANDOM", "RANDOM_BAD"})

ALLOWED_PAGES = frozenset({
    "learnmore.html",
    "identitytheft1.html",
    "identitytheft2.html",
    "identitytheft3.html",
    "main.html",
    "mobile.html",
    "nohappiness.html",
})

MIN_HOBBY_STARTER_OPTIONS = 2

_PAGES_PREFIX = re.compile(r"^Pages/", re.IGNORECASE)


def _list_of_mappings(value: Any) -> List[dict]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def navigation_targets(scenario: Scenario) -> List[Tuple[str, Any]]:
    """
    List (context, target) pairs for every navigation target of a scenario.

    Example:
        >>> navigation_targets(static_scenario)
        [('a1r7.choices[0]', 'job-pick'), ('a1r7.choices[1]', 'learnmore.html')]
    """
    config = scenario.config
    targets: List[Tuple[str, Any]] = []

    if scenario.type in ("static", "pendingRelationship"):
        for idx, choice in enumerate(_list_of_mappings(config.get("choices"))):
            targets.append((f"{scenario.id}.choices[{idx}]", choice.get("next")))
    elif scenario.type == "hobbyStarter":
        for idx, option in enumerate(_list_of_mappings(config.get("options"))):
            targets.append((f"{scenario.id}.options[{idx}]", option.get("next")))
    elif scenario.type == "relationshipOutcome":
        for key in ("successChoices", "failureChoices"):
            for idx, choice in enumerate(_list_of_mappings(config.get(key))):
                targets.append((f"{scenario.id}.{key}[{idx}]", choice.get("next")))
    else:
        # Every other type navigates through config.next
        targets.append((f"{scenario.id}.config.next", config.get("next")))

    return targets


def is_valid_destination(target: Any, scenario_ids: Set[str]) -> bool:
    """
    True when a navigation target resolves.

    Empty targets are allowed (the scenario ends the chain). A "Pages/" prefix
    is ignored and a trailing ".html" is dropped before matching scenario ids.
    """
    if not target or target in RANDOM_TARGETS:
        return True
    normalized = _PAGES_PREFIX.sub("", str(target))
    if normalized.lower() in ALLOWED_PAGES:
        return True
    if normalized.endswith(".html"):
        normalized = normalized[: -len(".html")]
    return normalized in scenario_ids


def _missing_fields(records: Iterable[Any], name: str, fields: Tuple[str, ...]) -> List[str]:
    issues = []
    for index, record in enumerate(records):
        missing = [field_name for field_name in fields if not getattr(record, field_name)]
        if missing:
            issues.append(f"{name}[{index}] missing {'/'.join(missing)}.")
    return issues


def validate_library(snapshot: LibrarySnapshot) -> List[str]:
    """
    Check a library against its data contract.

    Args:
        snapshot: The library to check (loaded, embedded or mixed).

    Returns:
        Human-readable issue strings, empty when the library is valid.
    """
    issues: List[str] = []

    for name in RESOURCE_NAMES:
        if not snapshot.records(name):
            issues.append(f"{name} missing or empty.")

    scenario_ids = {scenario.id for scenario in snapshot.scenarios}

    for scenario in snapshot.scenarios:
        for context, target in navigation_targets(scenario):
            if not is_valid_destination(target, scenario_ids):
                issues.append(
                    f"Scenario destination missing: {context} targets {target!r}, "
                    f"which has no scenario definition."
                )

        if scenario.type == "hobbyStarter":
            data_source = str(scenario.config.get("dataSource") or "").lower()
            if data_source == "hobbyoffers":
                continue
            options = scenario.config.get("options")
            if not isinstance(options, list) or len(options) < MIN_HOBBY_STARTER_OPTIONS:
                issues.append(f"Hobby starter {scenario.id} missing option definitions.")

    issues.extend(_missing_fields(snapshot.good_events, "goodEvents", ("id", "text")))
    issues.extend(_missing_fields(snapshot.bad_events, "badEvents", ("id", "text")))
    issues.extend(_missing_fields(snapshot.hobby_offers, "hobbyOffers", ("id", "provider")))
    return issues


def require_valid_library(snapshot: LibrarySnapshot) -> LibrarySnapshot:
    """
    Return the snapshot unchanged, or raise if it violates the data contract.

    Raises:
        SchemaValidationError: Listing every issue validate_library() found.
    """
    issues = validate_library(snapshot)
    if issues:
        raise SchemaValidationError(
            f"Library failed validation with {len(issues)} issue(s):\n  - "
            + "\n  - ".join(issues)
        )
    return snapshot
