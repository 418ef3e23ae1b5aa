#!/usr/bin/env python3
"""
Validate dataset files on disk before shipping them.

**Conceptual**: The loader is lenient at runtime: bad rows are dropped, broken
configs are kept raw, missing datasets fall back to embedded data. That is the
right behaviour for players and the wrong one for dataset authors. This script
reads a dataset tree directly from disk, normalizes it with the same code the
loader uses, and reports everything the lenient path would have hidden:

  - rows dropped by normalization and undecodable config cells
  - scenario navigation targets that point nowhere
  - hobbyStarter scenarios without enough options
  - empty datasets

**Usage**:
    # Validate the consolidated library under the default static root
    python actions/validate_library_data.py

    # Validate a specific library.json
    python actions/validate_library_data.py --library public/Resources/library.json

    # Validate one-CSV-per-dataset files under a static root
    python actions/validate_library_data.py --mode csv --static-root ./public

**Exit codes**:
    - 0: No issues.
    - 1: Issues found (listed on stdout).
    - 2: Files missing or unreadable.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Tuple

# Add project root to Python path so we can import uploaded_life modules
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from uploaded_life.config.settings import get_settings
from uploaded_life.data.io import read_library_directory, read_library_json
from uploaded_life.data.normalize import normalize_rows
from uploaded_life.data.schemas import (
    CONSOLIDATED_LIBRARY_PATH,
    CSV_RESOURCES,
    JSON_RESOURCES,
    LibrarySnapshot,
)
from uploaded_life.data.validation import validate_library
from uploaded_life.errors import ParseError


def check_library(rows_by_name: dict, resources=JSON_RESOURCES) -> Tuple[LibrarySnapshot, List[str]]:
    """
    Normalize raw rows and collect every issue found.

    Args:
        rows_by_name: Resource name -> raw rows, as read from disk.
        resources: Resource definitions providing required fields.

    Returns:
        (snapshot, issues). The snapshot holds only what was on disk; nothing
        is filled in from embedded data.
    """
    issues: List[str] = []
    records = {}
    for resource in resources:
        normalized = normalize_rows(resource, rows_by_name.get(resource.name, []))
        records[resource.name] = normalized.records
        issues.extend(str(error) for error in normalized.errors)
        if normalized.config_errors:
            issues.append(
                f"{resource.name}: {normalized.config_errors} config value(s) could not be decoded."
            )

    snapshot = LibrarySnapshot.from_records(records)
    issues.extend(validate_library(snapshot))
    return snapshot, issues


def main():
    """
    Main entry point for the dataset validation script.

    **Workflow**:
      1. Read the consolidated JSON document or the per-dataset CSV files
      2. Normalize every dataset and validate the library as a whole
      3. Print counts and issues
    """
    parser = argparse.ArgumentParser(
        description="Validate Uploaded Life dataset files on disk",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--mode",
        choices=["json", "csv"],
        default=None,
        help="Dataset layout to validate. Default: UPLOADED_LIFE_DATASET_MODE.",
    )

    parser.add_argument(
        "--static-root",
        type=str,
        default=None,
        help="Static root holding the dataset files. Default: UPLOADED_LIFE_STATIC_ROOT.",
    )

    parser.add_argument(
        "--library",
        type=str,
        default=None,
        help=f"Path to a consolidated library.json. Default: <static-root>/{CONSOLIDATED_LIBRARY_PATH}.",
    )

    args = parser.parse_args()

    try:
        loader = get_settings().loader
    except ValueError as e:
        print(f"ERROR: Invalid configuration: {e}")
        sys.exit(2)

    mode = args.mode or loader.dataset_mode
    static_root = Path(args.static_root) if args.static_root else loader.static_root

    try:
        if mode == "json" and args.library is None:
            source = static_root / CONSOLIDATED_LIBRARY_PATH
        elif mode == "json":
            source = Path(args.library)
        else:
            source = static_root

        if mode == "json":
            rows_by_name = read_library_json(source)
            resources = JSON_RESOURCES
        else:
            rows_by_name = read_library_directory(source)
            resources = CSV_RESOURCES
    except (FileNotFoundError, ParseError) as e:
        print(f"ERROR: {e}")
        sys.exit(2)

    snapshot, issues = check_library(rows_by_name, resources)

    print("=" * 60)
    print(f"Validating {source} ({mode})")
    print("=" * 60)
    for name, count in snapshot.counts().items():
        print(f"  {name}: {count}")
    jobs_by_group = snapshot.jobs_by_group()
    print(f"  job groups: {', '.join(sorted(jobs_by_group)) or '(none)'}")
    print("=" * 60)

    if issues:
        print(f"✗ {len(issues)} issue(s) found:")
        for issue in issues:
            print(f"  - {issue}")
        sys.exit(1)

    print("✓ Library data is valid")


if __name__ == "__main__":
    main()
