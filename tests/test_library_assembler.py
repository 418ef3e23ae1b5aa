"""
Tests for library assembly and publication.

This module tests:
  - All datasets missing -> the library equals the embedded library.
  - A valid consolidated library.json -> every array loaded, fetched once.
  - Per-resource fallback for missing, unparseable or empty datasets.
  - All loads are in flight before any completes.
  - publish() resolves the load cycle's future exactly once, never with an error.
"""

import asyncio
import json
import logging

import pytest

from conftest import FakeLoader, RecordingModal
from uploaded_life.data.embedded import embedded_records, embedded_snapshot
from uploaded_life.data.schemas import (
    CONSOLIDATED_LIBRARY_PATH,
    CSV_RESOURCES,
    JSON_RESOURCES,
    RESOURCE_NAMES,
    SOURCE_EMBEDDED,
    SOURCE_LOADED,
)
from uploaded_life.errors import TransportError
from uploaded_life.library.assembler import LibraryAssembler
from uploaded_life.library.readiness import LoadState, ModalController
from uploaded_life.transports.resolver import TransportResolver

CSV_PATHS = {resource.name: resource.path for resource in CSV_RESOURCES}


def offline_resolver():
    return TransportResolver([FakeLoader("http", available=False), FakeLoader("static")])


def resolver_with(files):
    return TransportResolver([FakeLoader("http", available=False), FakeLoader("static", files)])


class GatedLoader:
    """Loader whose requests all block until the test opens the gate."""

    name = "gated"

    def __init__(self, files):
        self.files = files
        self.started = []
        self.gate = asyncio.Event()

    def is_available(self, path):
        return True

    async def load_text(self, path):
        self.started.append(path)
        await self.gate.wait()
        if path not in self.files:
            raise TransportError(f"gated: {path} not found", transport=self.name, path=path)
        return self.files[path]


class ExplodingLoader:
    """Loader that serves `files` but raises RuntimeError for `broken_path`."""

    name = "exploding"

    def __init__(self, files=None, broken_path=None):
        self.files = dict(files or {})
        self.broken_path = broken_path

    def is_available(self, path):
        return True

    async def load_text(self, path):
        if self.broken_path is None or path == self.broken_path:
            raise RuntimeError("unexpected bug")
        if path not in self.files:
            raise TransportError(f"exploding: {path} not found", transport=self.name, path=path)
        return self.files[path]


# ============================================================================
# build_library
# ============================================================================

@pytest.mark.asyncio
@pytest.mark.parametrize("resources", [JSON_RESOURCES, CSV_RESOURCES])
async def test_all_datasets_missing_yields_embedded_library(resources):
    snapshot = await LibraryAssembler(offline_resolver()).build_library(resources)

    assert snapshot == embedded_snapshot()
    assert snapshot.fallback_resources == RESOURCE_NAMES
    for outcome in snapshot.diagnostics:
        assert outcome.source == SOURCE_EMBEDDED
        assert "Unable to load" in outcome.error


@pytest.mark.asyncio
async def test_consolidated_json_loads_every_array(sample_library, library_json_text):
    static = FakeLoader("static", {CONSOLIDATED_LIBRARY_PATH: library_json_text})
    resolver = TransportResolver([FakeLoader("http", available=False), static])

    snapshot = await LibraryAssembler(resolver).build_library(JSON_RESOURCES)

    assert not snapshot.used_fallback
    for name in RESOURCE_NAMES:
        assert len(snapshot.records(name)) == len(sample_library[name]) > 0
    assert static.calls == [CONSOLIDATED_LIBRARY_PATH]
    assert all(outcome.source == SOURCE_LOADED for outcome in snapshot.diagnostics)


@pytest.mark.asyncio
async def test_partial_failure_substitutes_only_missing_datasets():
    files = {
        CSV_PATHS["scenarios"]: 'id,type,config\nride,event,"{""speed"":2}"\n',
        CSV_PATHS["jobs"]: "group,label,effect\nfirst-month-a,Cashier,+$1\n",
    }

    snapshot = await LibraryAssembler(resolver_with(files)).build_library(CSV_RESOURCES)

    assert [s.id for s in snapshot.scenarios] == ["ride"]
    assert snapshot.scenarios[0].config == {"speed": 2}
    assert [j.label for j in snapshot.jobs] == ["Cashier"]
    assert snapshot.fallback_resources == ("incidentEvents", "goodEvents", "badEvents", "hobbyOffers")
    assert list(snapshot.good_events) == embedded_records("goodEvents").records


@pytest.mark.asyncio
async def test_dataset_without_valid_records_falls_back(caplog):
    files = {CSV_PATHS["jobs"]: "group,label,effect\n,missing group,+$1\n"}

    with caplog.at_level(logging.WARNING, logger="uploaded_life.library.assembler"):
        snapshot = await LibraryAssembler(resolver_with(files)).build_library(CSV_RESOURCES)

    jobs_outcome = snapshot.diagnostics[RESOURCE_NAMES.index("jobs")]
    assert jobs_outcome.source == SOURCE_EMBEDDED
    assert jobs_outcome.rows_dropped == 1
    assert "no valid jobs records" in jobs_outcome.error
    assert list(snapshot.jobs) == embedded_records("jobs").records
    assert "using embedded jobs data" in caplog.text


@pytest.mark.asyncio
async def test_unparseable_consolidated_json_falls_back_for_every_array():
    resolver = resolver_with({CONSOLIDATED_LIBRARY_PATH: "{broken"})

    snapshot = await LibraryAssembler(resolver).build_library(JSON_RESOURCES)

    assert snapshot == embedded_snapshot()
    assert all("Failed to parse" in outcome.error for outcome in snapshot.diagnostics)


@pytest.mark.asyncio
async def test_dropped_rows_are_counted_on_loaded_datasets(library_json_text):
    library = json.loads(library_json_text)
    library["scenarios"].append({"id": "odd", "type": "teleport"})
    library["scenarios"].append({"id": "raw", "type": "event", "config": "gibberish"})
    resolver = resolver_with({CONSOLIDATED_LIBRARY_PATH: json.dumps(library)})

    snapshot = await LibraryAssembler(resolver).build_library(JSON_RESOURCES)

    scenarios_outcome = snapshot.diagnostics[0]
    assert scenarios_outcome.source == SOURCE_LOADED
    assert scenarios_outcome.rows_dropped == 1
    assert scenarios_outcome.config_errors == 1
    assert snapshot.diagnostic_count == 2


@pytest.mark.asyncio
async def test_resources_not_requested_come_from_embedded(library_json_text):
    resolver = resolver_with({CONSOLIDATED_LIBRARY_PATH: library_json_text})

    snapshot = await LibraryAssembler(resolver).build_library(JSON_RESOURCES[:1])

    assert snapshot.fallback_resources == RESOURCE_NAMES[1:]
    assert snapshot.diagnostics[1].error == "not requested"


@pytest.mark.asyncio
async def test_all_loads_start_before_any_completes():
    loader = GatedLoader({})
    assembler = LibraryAssembler(TransportResolver([loader]))

    task = asyncio.create_task(assembler.build_library(CSV_RESOURCES))
    for _ in range(5):
        await asyncio.sleep(0)

    assert sorted(loader.started) == sorted(CSV_PATHS.values())
    assert not task.done()

    loader.gate.set()
    snapshot = await task
    assert snapshot == embedded_snapshot()


@pytest.mark.asyncio
async def test_unexpected_error_still_yields_embedded_library(caplog):
    assembler = LibraryAssembler(TransportResolver([ExplodingLoader()]))

    with caplog.at_level(logging.ERROR, logger="uploaded_life.library.assembler"):
        snapshot = await assembler.build_library(JSON_RESOURCES)

    assert snapshot == embedded_snapshot()
    assert all("unexpected error" in outcome.error for outcome in snapshot.diagnostics)
    assert "unexpected error loading scenarios" in caplog.text


@pytest.mark.asyncio
async def test_unexpected_error_in_one_dataset_keeps_the_others_loaded():
    files = {
        CSV_PATHS["scenarios"]: "id,type\nride,event\n",
        CSV_PATHS["jobs"]: "group,label,effect\nfirst-month-a,Cashier,+$1\n",
    }
    loader = ExplodingLoader(files, broken_path=CSV_PATHS["jobs"])

    snapshot = await LibraryAssembler(TransportResolver([loader])).build_library(CSV_RESOURCES)

    assert [s.id for s in snapshot.scenarios] == ["ride"]
    assert snapshot.diagnostics[0].source == SOURCE_LOADED
    jobs_outcome = snapshot.diagnostics[RESOURCE_NAMES.index("jobs")]
    assert jobs_outcome.source == SOURCE_EMBEDDED
    assert "RuntimeError" in jobs_outcome.error
    assert list(snapshot.jobs) == embedded_records("jobs").records


# ============================================================================
# publish
# ============================================================================

@pytest.mark.asyncio
async def test_publish_resolves_future_and_closes_modal():
    state = LoadState()
    modal = RecordingModal()
    future = ModalController(state, modal).begin_cycle()

    snapshot = await LibraryAssembler(offline_resolver(), state).publish(CSV_RESOURCES)

    # Checked before yielding to the event loop again.
    assert future.done()
    assert future.exception() is None
    assert future.result() is snapshot
    assert not state.modal_visible
    assert [event[0] for event in modal.events] == ["open", "close"]


@pytest.mark.asyncio
async def test_publish_leaves_settled_future_alone():
    state = LoadState()
    future = ModalController(state, RecordingModal()).begin_cycle()
    first = embedded_snapshot()
    future.set_result(first)

    await LibraryAssembler(offline_resolver(), state).publish(JSON_RESOURCES)

    assert future.result() is first


@pytest.mark.asyncio
async def test_publish_requires_state():
    with pytest.raises(RuntimeError):
        await LibraryAssembler(offline_resolver()).publish(JSON_RESOURCES)
