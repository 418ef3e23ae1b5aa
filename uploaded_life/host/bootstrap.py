"""
Host bootstrap: show the host immediately, upgrade its library when loaded.

**Conceptual**: Startup must never be gated on the network. bootstrap() runs
these steps in this order, all synchronously:

  1. Construct the UploadedLifeHost with the embedded library and render it.
  2. Begin a load cycle (modal visible, readiness future created).
  3. Schedule the assembler, which starts every dataset fetch.
  4. Register the continuation that swaps the published library into the host.

Because the ModalController registered its callback on the future in step 2,
the modal is already closed when the host's continuation runs.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from uploaded_life.config.settings import Settings, get_settings
from uploaded_life.data.schemas import DatasetResource, LibrarySnapshot, resources_for_mode
from uploaded_life.host.host import MountPoint, UploadedLifeHost
from uploaded_life.library.assembler import LibraryAssembler
from uploaded_life.library.readiness import (
    LoadState,
    ModalController,
    ModalSurface,
    ReadinessSignal,
)
from uploaded_life.transports.resolver import TransportResolver, build_resolver

logger = logging.getLogger(__name__)


@dataclass
class HostRuntime:
    """
    Everything bootstrap() wires together.

    Attributes:
        host: The running host.
        state: Load-cycle state shared by the controller and the assembler.
        signal: Readiness signal for the current cycle.
        task: The assembler task publishing the library.
    """
    host: UploadedLifeHost
    state: LoadState
    signal: ReadinessSignal
    task: "asyncio.Task[LibrarySnapshot]"

    async def wait_until_ready(self) -> LibrarySnapshot:
        """Wait for the library and for the publishing task to finish."""
        snapshot = await self.signal.when_library_ready()
        await self.task
        return snapshot


def bootstrap(
    mount: MountPoint,
    modal: ModalSurface,
    settings: Optional[Settings] = None,
    resources: Optional[Sequence[DatasetResource]] = None,
    resolver: Optional[TransportResolver] = None,
    notice: Optional[ModalSurface] = None,
) -> HostRuntime:
    """
    Start the host and its first library load cycle.

    Must be called from a running event loop. Returns as soon as everything is
    scheduled; nothing here waits for a dataset.

    Args:
        mount: Container the host renders into.
        modal: Loading modal driven by the ModalController.
        settings: Settings to use (default: get_settings()).
        resources: Datasets to load (default: the configured dataset mode).
        resolver: Transport chain (default: built from settings).
        notice: Optional surface the host uses for its "still loading" notice.

    Returns:
        HostRuntime with the host, load state, readiness signal and task.
    """
    settings = settings if settings is not None else get_settings()
    loader_settings = settings.loader

    host = UploadedLifeHost(mount, notice=notice)
    host.render()

    state = LoadState()
    controller = ModalController(state, modal)
    controller.begin_cycle()

    if resources is None:
        resources = resources_for_mode(loader_settings.dataset_mode)
    if resolver is None:
        resolver = build_resolver(loader_settings)
    assembler = LibraryAssembler(resolver, state)
    task = asyncio.get_running_loop().create_task(assembler.publish(resources))

    signal = ReadinessSignal(state)
    signal.when_library_ready().add_done_callback(
        lambda future: host.set_scenario_library(future.result())
    )

    logger.debug(
        "Uploaded Life: host bootstrapped (mode=%s, http=%s, static_root=%s)",
        loader_settings.dataset_mode,
        loader_settings.http_enabled,
        loader_settings.static_root,
    )
    return HostRuntime(host=host, state=state, signal=signal, task=task)
