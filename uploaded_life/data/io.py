"""
Text parsers for dataset resources (CSV and JSON) and local library readers.

**Conceptual**: Transports hand back raw text; this module is the only place
that turns that text into raw row mappings. The rule mirrors the rest of the
loader: a broken document is a ParseError the caller must handle, a broken
line inside an otherwise good CSV is skipped and counted.

**Functionally**:
  - parse_csv_text: header row + UTF-8 text -> list of row dicts (pandas).
  - parse_json_text: a JSON array, or one top-level array of a consolidated
    library document -> list of row dicts.
  - parse_resource_text: dispatch on DatasetResource.shape.
  - read_library_directory / read_library_json: read a dataset tree straight
    from disk for offline validation.

Row dicts contain raw values only. Normalization into canonical records is
uploaded_life.data.normalize's job.
"""

import io
import json
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence

import pandas as pd

from uploaded_life.errors import ParseError
from uploaded_life.data.schemas import (
    CSV_RESOURCES,
    RESOURCE_NAMES,
    DatasetResource,
)


@dataclass
class ParsedRows:
    """
    Raw rows parsed from one resource's text.

    Attributes:
        rows: Raw row mappings in source order.
        bad_lines: CSV lines skipped because they could not be split into the
                   header's columns.
    """
    rows: List[Dict[str, Any]] = field(default_factory=list)
    bad_lines: int = 0


def parse_csv_text(text: str, context: str = "csv") -> ParsedRows:
    """
    Parse CSV text with a header row into raw row dicts.

    **Functionally**:
      - Every cell is read as a string (no type inference, empty cells stay "").
      - A leading UTF-8 BOM is removed.
      - Quoting is lenient: a cell like "{"speed":2}" whose inner quotes were
        never doubled is kept as text instead of breaking the line.
      - Lines with more fields than the header are skipped and counted,
        including the first data line.
      - Short lines are padded with empty cells.
      - Rows whose cells are all blank are dropped.
      - Columns with a blank header name (trailing commas) are dropped.

    Args:
        text: Full CSV document.
        context: Resource name or path used in error messages.

    Returns:
        ParsedRows with rows and the count of skipped lines.

    Raises:
        ParseError: If the document is empty or cannot be tokenized at all
                    (e.g. a quoted cell that never closes).
    """
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", pd.errors.ParserWarning)
        try:
            # The header is read as row 0 so the first data line is held to
            # the header's width like every other line.
            df = pd.read_csv(
                io.StringIO(text.lstrip("\ufeff")),
                header=None,
                index_col=False,
                dtype=str,
                keep_default_na=False,
                on_bad_lines="warn",
            )
        except pd.errors.EmptyDataError as e:
            raise ParseError(f"{context}: CSV document is empty ({e})", resource=context) from e
        except pd.errors.ParserError as e:
            raise ParseError(f"{context}: unable to parse CSV: {e}", resource=context) from e

    # pandas reports every skipped line as "Skipping line N: ..." in its warnings
    bad_lines = sum(
        str(warning.message).count("Skipping line")
        for warning in caught
        if issubclass(warning.category, pd.errors.ParserWarning)
    )

    df = df.fillna("")
    header = [str(value).strip() for value in df.iloc[0]]
    # Blank header cells come from trailing commas; repeated names keep the first column.
    keep = [i for i, name in enumerate(header) if name and name not in header[:i]]
    body = df.iloc[1:, keep]
    body.columns = [header[i] for i in keep]

    rows = [
        row for row in body.to_dict(orient="records")
        if any(str(value).strip() for value in row.values())
    ]
    return ParsedRows(rows=rows, bad_lines=bad_lines)


def parse_json_text(text: str, resource: DatasetResource) -> ParsedRows:
    """
    Parse a JSON document into raw row dicts for one resource.

    **Accepted shapes**:
      - resource.key set: a consolidated object whose `key` entry is an array.
      - resource.key None: the document itself is an array, or an object with
        an array under the resource's name.

    Raises:
        ParseError: If the text is not JSON or the expected array is missing.
    """
    try:
        document = json.loads(text.lstrip("\ufeff"))
    except ValueError as e:
        raise ParseError(
            f"Failed to parse {resource.path} as JSON: {e}", resource=resource.name
        ) from e

    key = resource.key
    if key is None and isinstance(document, list):
        rows = document
    elif isinstance(document, dict):
        lookup = key or resource.name
        if lookup not in document:
            raise ParseError(
                f"{resource.path}: missing top-level array {lookup!r}. "
                f"Found keys: {sorted(document.keys())}",
                resource=resource.name,
            )
        rows = document[lookup]
    else:
        raise ParseError(
            f"{resource.path}: expected a JSON array or object, got {type(document).__name__}",
            resource=resource.name,
        )

    if not isinstance(rows, list):
        raise ParseError(
            f"{resource.path}: {key or resource.name!r} must be an array, got {type(rows).__name__}",
            resource=resource.name,
        )
    return ParsedRows(rows=rows)


def parse_resource_text(resource: DatasetResource, text: str) -> ParsedRows:
    """Parse raw text according to the resource's declared shape."""
    if resource.shape == "csv":
        return parse_csv_text(text, context=resource.name)
    return parse_json_text(text, resource)


# ============================================================================
# Local readers (offline validation)
# ============================================================================

def read_library_json(path: Path | str) -> Dict[str, List[Dict[str, Any]]]:
    """
    Read a consolidated library.json from disk into resource name -> raw rows.

    Raises:
        FileNotFoundError: If the file does not exist.
        ParseError: If the document or one of its arrays is malformed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Library file not found: {path}")
    text = path.read_text(encoding="utf-8")
    return {
        name: parse_json_text(text, DatasetResource(name, str(path), "json", key=name)).rows
        for name in RESOURCE_NAMES
    }


def read_library_directory(
    root: Path | str,
    resources: Sequence[DatasetResource] = CSV_RESOURCES,
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Read per-dataset CSV files under `root` into resource name -> raw rows.

    Raises:
        FileNotFoundError: If a dataset file does not exist.
        ParseError: If a file cannot be parsed.
    """
    root = Path(root)
    library: Dict[str, List[Dict[str, Any]]] = {}
    for resource in resources:
        path = root / resource.path
        if not path.exists():
            raise FileNotFoundError(f"Dataset file not found: {path}")
        library[resource.name] = parse_resource_text(
            resource, path.read_text(encoding="utf-8")
        ).rows
    return library
