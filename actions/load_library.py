#!/usr/bin/env python3
"""
Run one full library load cycle and report what each dataset resolved to.

**Conceptual**: This script boots the host against the console exactly the
way an embedding page would: host first (embedded library), then the loading
modal, then every dataset fetched concurrently through the HTTP transport and
the static-root fallback. When the cycle publishes, it prints one line per
dataset saying whether it was loaded or replaced by embedded data.

**Usage**:
    # Consolidated Resources/library.json under the default static root
    python actions/load_library.py

    # One CSV per dataset, served over HTTP with the static root as fallback
    python actions/load_library.py --mode csv --base-url http://localhost:8000/

    # Different static root, and start a run once the library arrives
    python actions/load_library.py --static-root ./public --start-run

**Configuration**:
    Defaults come from UPLOADED_LIFE_* environment variables (or .env):
    UPLOADED_LIFE_BASE_URL, UPLOADED_LIFE_STATIC_ROOT, UPLOADED_LIFE_DATASET_MODE,
    UPLOADED_LIFE_FETCH_TIMEOUT_SECONDS, UPLOADED_LIFE_STATIC_TIMEOUT_SECONDS,
    UPLOADED_LIFE_LOG_LEVEL. Command-line flags override them.

**Exit codes**:
    - 0: Every dataset was loaded from a transport.
    - 1: At least one dataset fell back to embedded data.
    - 2: Invalid configuration.
"""

import argparse
import asyncio
import dataclasses
import sys
from pathlib import Path

# Add project root to Python path so we can import uploaded_life modules
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from uploaded_life.config.settings import Settings, get_settings
from uploaded_life.data.schemas import SOURCE_LOADED, LibrarySnapshot
from uploaded_life.host.bootstrap import bootstrap
from uploaded_life.host.console import ConsoleModal, ConsoleMountPoint
from uploaded_life.utils.log import configure_logging


def format_outcomes(snapshot: LibrarySnapshot) -> list:
    """
    Describe each dataset's outcome as one printable line.

    Args:
        snapshot: A published library.

    Returns:
        Lines like "✓ scenarios: 42 records (loaded)" or
        "✗ jobs: 6 records (embedded) - Unable to load jobs from ...".
    """
    lines = []
    for outcome in snapshot.diagnostics:
        marker = "✓" if outcome.source == SOURCE_LOADED else "✗"
        line = f"{marker} {outcome.name}: {outcome.record_count} records ({outcome.source})"
        if outcome.rows_dropped or outcome.config_errors:
            line += f", {outcome.rows_dropped} rows dropped, {outcome.config_errors} config errors"
        if outcome.error:
            line += f" - {outcome.error}"
        lines.append(line)
    return lines


async def load_once(settings: Settings, start_run: bool = False) -> LibrarySnapshot:
    runtime = bootstrap(ConsoleMountPoint(), ConsoleModal(), settings=settings)
    if start_run:
        runtime.host.start_new_run()
    return await runtime.wait_until_ready()


def main():
    """
    Main entry point for the library load script.

    **Workflow**:
      1. Parse command-line arguments and merge them over environment settings
      2. Bootstrap the host and run one load cycle
      3. Print per-dataset outcomes and a summary
    """
    parser = argparse.ArgumentParser(
        description="Run one Uploaded Life library load cycle and report per-dataset outcomes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--mode",
        choices=["json", "csv"],
        default=None,
        help="Dataset layout: consolidated library.json or one CSV per dataset. Default: from environment.",
    )

    parser.add_argument(
        "--base-url",
        type=str,
        default=None,
        help="Base URL for the HTTP transport. Empty string disables it. Default: from environment.",
    )

    parser.add_argument(
        "--static-root",
        type=str,
        default=None,
        help="Static root directory for the fallback transport. Default: from environment.",
    )

    parser.add_argument(
        "--start-run",
        action="store_true",
        help="Request a run immediately; it starts as soon as the library arrives.",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ...). Default: from environment.",
    )

    args = parser.parse_args()

    try:
        loader = get_settings().loader
        overrides = {}
        if args.mode is not None:
            overrides["dataset_mode"] = args.mode
        if args.base_url is not None:
            overrides["base_url"] = args.base_url.strip()
        if args.static_root is not None:
            overrides["static_root"] = Path(args.static_root).expanduser().resolve()
        if args.log_level is not None:
            overrides["log_level"] = args.log_level.strip().upper()
        settings = Settings(loader=dataclasses.replace(loader, **overrides))
    except ValueError as e:
        print(f"ERROR: Invalid configuration: {e}")
        sys.exit(2)

    configure_logging(settings.loader.log_level)

    print("=" * 60)
    print("Uploaded Life Library Load")
    print("=" * 60)
    print(f"Mode: {settings.loader.dataset_mode}")
    print(f"HTTP transport: {settings.loader.base_url if settings.loader.http_enabled else 'disabled'}")
    print(f"Static root: {settings.loader.static_root}")
    print("=" * 60)

    snapshot = asyncio.run(load_once(settings, start_run=args.start_run))

    print()
    for line in format_outcomes(snapshot):
        print(line)

    print()
    print("=" * 60)
    print("SUMMARY")
    print("=" * 60)
    print(f"Datasets loaded: {len(snapshot.diagnostics) - len(snapshot.fallback_resources)}")
    print(f"Datasets on embedded data: {len(snapshot.fallback_resources)}")
    print(f"Rows dropped / config errors: {snapshot.diagnostic_count}")
    print("=" * 60)

    if snapshot.used_fallback:
        sys.exit(1)


if __name__ == "__main__":
    main()
