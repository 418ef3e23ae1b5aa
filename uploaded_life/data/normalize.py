"""
Config and row normalization: raw parser output -> canonical records.

**Conceptual**: Dataset rows arrive in several shapes. A CSV row is a flat
mapping of strings, where `config` may be a JSON document squeezed into one
cell, a legacy `key=value; key=value` string, or spread over `config.<key>`
columns. A JSON row already carries numbers and a nested `config` object. This
module turns all of them into the same canonical records.

**Functionally**:
  - normalize_config(value): always returns a dict, never raises.
  - decode_config(value): same decoding, but raises ConfigDecodeError so row
    normalization can count undecodable cells.
  - normalize_row(name, row, index): one raw row -> one canonical record, or
    ParseError when the row cannot identify itself.
  - normalize_rows(resource, rows): a whole dataset, dropping and counting bad
    rows instead of failing.

Everything here is pure: no I/O, no shared state.
"""

import json
import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from uploaded_life.errors import ConfigDecodeError, ParseError
from uploaded_life.data.schemas import (
    BAD_EVENTS,
    GOOD_EVENTS,
    HOBBY_OFFERS,
    INCIDENT_EVENTS,
    JOBS,
    REQUIRED_FIELDS,
    SCENARIOS,
    SCENARIO_TYPES,
    BadEvent,
    CanonicalRecord,
    DatasetResource,
    GoodEvent,
    HobbyOffer,
    IncidentEvent,
    Job,
    Range,
    Scenario,
)

logger = logging.getLogger(__name__)

# Key under which an undecodable config string is preserved
RAW_CONFIG_KEY = "_raw"

# Prefix for config values flattened into their own CSV columns
CONFIG_COLUMN_PREFIX = "config."

_PAIR_SEPARATORS = re.compile(r"[;|\n,]")
_KEY_VALUE = re.compile(r"\s*([^=:]+?)\s*[=:]\s*(.*)\s*$", re.DOTALL)
_WRAPPING = "{}\"' \t\r\n"
_QUOTES = "\"' "
_VALUE_WRAPPING = "\"' \t\r\n"

_COMMON_FIELDS = {"id", "label", "config"}

_KNOWN_FIELDS = {
    SCENARIOS: _COMMON_FIELDS | {"type", "pool", "text", "details", "title"},
    JOBS: _COMMON_FIELDS | {"group", "effect"},
    INCIDENT_EVENTS: _COMMON_FIELDS | {
        "story", "money", "happiness", "moneyMin", "moneyMax", "happinessMin", "happinessMax",
    },
    GOOD_EVENTS: _COMMON_FIELDS | {
        "text", "providers", "cost", "happiness", "costMin", "costMax", "happinessMin", "happinessMax",
    },
    BAD_EVENTS: _COMMON_FIELDS | {
        "text", "money", "happiness", "moneyMin", "moneyMax", "happinessMin", "happinessMax",
    },
    HOBBY_OFFERS: _COMMON_FIELDS | {
        "text", "provider", "cost", "happiness", "costMin", "costMax", "happinessMin",
        "happinessMax", "requiresId",
    },
}


# ============================================================================
# Config decoding
# ============================================================================

def _coerce_scalar(text: str) -> Any:
    """Turn "2" into 2, "true" into True, anything else into a stripped string."""
    candidate = text.strip()
    try:
        return json.loads(candidate)
    except ValueError:
        return candidate.strip(_QUOTES)


def _try_json_mapping(text: str) -> Optional[Dict[str, Any]]:
    try:
        decoded = json.loads(text)
    except ValueError:
        return None
    if isinstance(decoded, str):
        # Double-encoded: a JSON string whose content is the JSON object.
        try:
            decoded = json.loads(decoded)
        except ValueError:
            return None
    if decoded is None:
        return {}
    if isinstance(decoded, dict):
        return decoded
    return None


def _parse_key_value_pairs(text: str) -> Dict[str, Any]:
    pairs: Dict[str, Any] = {}
    for segment in _PAIR_SEPARATORS.split(text.strip(_WRAPPING)):
        match = _KEY_VALUE.match(segment)
        if not match:
            continue
        key = match.group(1).strip(_QUOTES)
        if not key:
            continue
        pairs[key] = _coerce_scalar(match.group(2).strip(_VALUE_WRAPPING))
    return pairs


def decode_config(value: Any) -> Dict[str, Any]:
    """
    Decode a config value into a structured mapping.

    **Decoding order for strings**:
      1. JSON object (also a JSON string that itself holds a JSON object).
      2. The same after removing one layer of CSV-style wrapping quotes, with
         doubled quotes unescaped (`"{""speed"":2}"`).
      3. Permissive `key=value` / `key: value` pairs separated by `;`, `|`,
         `,` or newlines. Scalar values are coerced (`"2"` -> 2).

    Args:
        value: None, a mapping, or a string.

    Returns:
        A new dict. Mappings are shallow-copied; None and blank strings give {}.

    Raises:
        ConfigDecodeError: If the value is not a mapping and no decoding step
                           yields any key.
    """
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, float) and math.isnan(value):
        return {}
    if not isinstance(value, str):
        raise ConfigDecodeError(
            f"Config must be a mapping or a string, got {type(value).__name__}",
            raw=str(value),
        )

    text = value.strip()
    if not text:
        return {}

    decoded = _try_json_mapping(text)
    if decoded is not None:
        return decoded

    if len(text) >= 2 and text[0] == text[-1] == '"':
        decoded = _try_json_mapping(text[1:-1].replace('""', '"'))
        if decoded is not None:
            return decoded

    pairs = _parse_key_value_pairs(text)
    if pairs:
        return pairs

    raise ConfigDecodeError(f"Unable to decode config {text!r}", raw=value)


def normalize_config(value: Any) -> Dict[str, Any]:
    """
    Materialize any config value as a structured mapping. Never raises.

    Mappings come back as a shallow copy with the same content, so
    `normalize_config(normalize_config(x)) == normalize_config(x)` for mapping
    inputs. Undecodable input degrades to `{"_raw": <original string>}` and
    is logged.

    Example:
        >>> normalize_config('{"speed": 2}')
        {'speed': 2}
        >>> normalize_config("speed=2; mode=fast")
        {'speed': 2, 'mode': 'fast'}
        >>> normalize_config(None)
        {}
    """
    try:
        return decode_config(value)
    except ConfigDecodeError as e:
        logger.warning("Uploaded Life: unable to parse config, keeping raw value: %s", e)
        return {RAW_CONFIG_KEY: e.raw}


# ============================================================================
# Field helpers
# ============================================================================

def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def to_number(value: Any, fallback: float = 0.0) -> float:
    """Parse a finite number, returning `fallback` for anything else."""
    if value is None:
        return fallback
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    return number if math.isfinite(number) else fallback


def parse_boolean(value: Any) -> bool:
    """Accept booleans, numbers and "true"/"1"/"yes" strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return False


def parse_providers(value: Any) -> Tuple[str, ...]:
    """Split a pipe-separated provider list; lists pass through cleaned."""
    if isinstance(value, (list, tuple)):
        items: Iterable[Any] = value
    else:
        raw = _text(value)
        if not raw:
            return ()
        items = raw.split("|")
    return tuple(text for text in (_text(item) for item in items) if text)


def to_range(row: Mapping, name: str) -> Range:
    """
    Read a (min, max) pair from `<name>Min`/`<name>Max` columns or a
    two-element `<name>` list.
    """
    combined = row.get(name)
    if isinstance(combined, (list, tuple)) and len(combined) >= 2:
        return (to_number(combined[0]), to_number(combined[1]))
    return (to_number(row.get(f"{name}Min")), to_number(row.get(f"{name}Max")))


def _clean_row(row: Any, name: str, index: int) -> Dict[str, Any]:
    if not isinstance(row, Mapping):
        raise ParseError(
            f"{name} row {index}: expected a mapping, got {type(row).__name__}",
            resource=name,
            row_index=index,
        )
    return {str(key).strip().lstrip("\ufeff"): value for key, value in row.items() if key is not None}


def _extra(row: Dict[str, Any], name: str) -> Dict[str, Any]:
    known = _KNOWN_FIELDS[name]
    return {
        key: value
        for key, value in row.items()
        if key not in known and not key.startswith(CONFIG_COLUMN_PREFIX)
    }


def _flattened_config(row: Dict[str, Any]) -> Dict[str, Any]:
    flattened: Dict[str, Any] = {}
    for key, value in row.items():
        if key.startswith(CONFIG_COLUMN_PREFIX) and _text(value):
            sub_key = key[len(CONFIG_COLUMN_PREFIX):]
            flattened[sub_key] = _coerce_scalar(value) if isinstance(value, str) else value
    return flattened


def _row_config(row: Dict[str, Any]) -> Dict[str, Any]:
    """Decode the config cell and merge any `config.<key>` columns over it."""
    config = decode_config(row.get("config"))
    config.update(_flattened_config(row))
    return config


# ============================================================================
# Row normalization
# ============================================================================

def _build_scenario(row: Dict[str, Any], index: int, config: Dict[str, Any]) -> Scenario:
    scenario_id = _text(row.get("id"))
    scenario_type = _text(row.get("type"))
    if scenario_type not in SCENARIO_TYPES:
        raise ParseError(
            f"scenarios row {index}: unknown scenario type {scenario_type!r} for {scenario_id}",
            resource=SCENARIOS,
            row_index=index,
        )
    return Scenario(
        id=scenario_id,
        label=_text(row.get("label")) or _text(row.get("title")) or scenario_id,
        type=scenario_type,
        pool=_text(row.get("pool")),
        text=_text(row.get("text")),
        details=_text(row.get("details")),
        config=config,
        extra=_extra(row, SCENARIOS),
    )


def _build_job(row: Dict[str, Any], index: int, config: Dict[str, Any]) -> Job:
    group = _text(row.get("group"))
    return Job(
        id=_text(row.get("id")) or f"{group}-{index + 1}",
        label=_text(row.get("label")),
        group=group,
        effect=_text(row.get("effect")),
        config=config,
        extra=_extra(row, JOBS),
    )


def _build_incident(row: Dict[str, Any], index: int, config: Dict[str, Any]) -> IncidentEvent:
    story = _text(row.get("story"))
    return IncidentEvent(
        id=_text(row.get("id")) or f"incident-{index + 1}",
        label=_text(row.get("label")) or story,
        story=story,
        money=to_range(row, "money"),
        happiness=to_range(row, "happiness"),
        config=config,
        extra=_extra(row, INCIDENT_EVENTS),
    )


def _build_good_event(row: Dict[str, Any], index: int, config: Dict[str, Any]) -> GoodEvent:
    text = _text(row.get("text"))
    return GoodEvent(
        id=_text(row.get("id")),
        label=_text(row.get("label")) or text,
        text=text,
        providers=parse_providers(row.get("providers")),
        cost=to_range(row, "cost"),
        happiness=to_range(row, "happiness"),
        config=config,
        extra=_extra(row, GOOD_EVENTS),
    )


def _build_bad_event(row: Dict[str, Any], index: int, config: Dict[str, Any]) -> BadEvent:
    text = _text(row.get("text"))
    return BadEvent(
        id=_text(row.get("id")),
        label=_text(row.get("label")) or text,
        text=text,
        money=to_range(row, "money"),
        happiness=to_range(row, "happiness"),
        config=config,
        extra=_extra(row, BAD_EVENTS),
    )


def _build_hobby_offer(row: Dict[str, Any], index: int, config: Dict[str, Any]) -> HobbyOffer:
    text = _text(row.get("text"))
    provider = _text(row.get("provider"))
    return HobbyOffer(
        id=_text(row.get("id")),
        label=_text(row.get("label")) or text or provider,
        text=text,
        provider=provider,
        cost=to_range(row, "cost"),
        happiness=to_range(row, "happiness"),
        requires_id=parse_boolean(row.get("requiresId")),
        config=config,
        extra=_extra(row, HOBBY_OFFERS),
    )


_BUILDERS = {
    SCENARIOS: _build_scenario,
    JOBS: _build_job,
    INCIDENT_EVENTS: _build_incident,
    GOOD_EVENTS: _build_good_event,
    BAD_EVENTS: _build_bad_event,
    HOBBY_OFFERS: _build_hobby_offer,
}


def _check_required(row: Dict[str, Any], name: str, index: int, required: Sequence[str]) -> None:
    missing = [field_name for field_name in required if not _text(row.get(field_name))]
    if missing:
        raise ParseError(
            f"{name} row {index}: missing required fields {missing}",
            resource=name,
            row_index=index,
        )


def normalize_row(
    name: str,
    row: Any,
    index: int = 0,
    required_fields: Optional[Sequence[str]] = None,
) -> CanonicalRecord:
    """
    Turn one raw row into a canonical record.

    Missing optional fields fall back to defaults (empty strings, zero ranges,
    empty config). An undecodable config cell is kept under `_raw` and logged.

    Args:
        name: Resource name (e.g. "scenarios"), selects the record type.
        row: Raw mapping from the CSV or JSON parser.
        index: Row position, used for error messages and synthesized ids.
        required_fields: Fields that must be non-empty. Defaults to the
                         resource's standard REQUIRED_FIELDS.

    Returns:
        The canonical record.

    Raises:
        ParseError: If the row is not a mapping, lacks a required field, or
                    names an unknown scenario type.
        KeyError: If `name` is not a known resource.
    """
    record, _ = _normalize_row(name, row, index, required_fields)
    return record


def _normalize_row(
    name: str,
    row: Any,
    index: int,
    required_fields: Optional[Sequence[str]],
) -> Tuple[CanonicalRecord, bool]:
    builder = _BUILDERS[name]
    cleaned = _clean_row(row, name, index)
    required = REQUIRED_FIELDS[name] if required_fields is None else required_fields
    _check_required(cleaned, name, index, required)

    config_ok = True
    try:
        config = _row_config(cleaned)
    except ConfigDecodeError as e:
        logger.warning("Uploaded Life: unable to parse %s config at row %d: %s", name, index, e)
        config = {RAW_CONFIG_KEY: e.raw}
        config.update(_flattened_config(cleaned))
        config_ok = False

    return builder(cleaned, index, config), config_ok


@dataclass
class NormalizedRows:
    """
    Result of normalizing one dataset.

    Attributes:
        records: Canonical records in source order.
        rows_dropped: Rows skipped because of a row-level ParseError.
        config_errors: Config cells that could not be decoded (row still kept).
        errors: The ParseErrors behind the dropped rows.
    """
    records: List[CanonicalRecord] = field(default_factory=list)
    rows_dropped: int = 0
    config_errors: int = 0
    errors: List[ParseError] = field(default_factory=list)


def normalize_rows(resource: DatasetResource, rows: Iterable[Any]) -> NormalizedRows:
    """
    Normalize every row of one dataset, dropping rows that cannot be parsed.

    Row-level ParseErrors never escape: each one is logged, counted in
    `rows_dropped`, and the remaining rows are still normalized.

    Args:
        resource: The dataset the rows belong to (name and required fields).
        rows: Raw row mappings in source order.

    Returns:
        NormalizedRows with records and diagnostic counts.
    """
    result = NormalizedRows()
    for index, row in enumerate(rows):
        try:
            record, config_ok = _normalize_row(
                resource.name, row, index, resource.required_fields or None
            )
        except ParseError as e:
            logger.warning("Uploaded Life: dropping row: %s", e)
            result.rows_dropped += 1
            result.errors.append(e)
            continue
        if not config_ok:
            result.config_errors += 1
        result.records.append(record)
    return result
