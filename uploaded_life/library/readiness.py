"""
Readiness signal and loading-modal control for one library load cycle.

**Conceptual**: A load cycle has exactly one outcome, a LibrarySnapshot, and
many parties that care about it (the host, the loading modal, command-line
actions). They all share one asyncio.Future kept in LoadState:

  - ModalController.begin_cycle() marks the modal visible, opens the modal
    surface and creates the future, before any load request is issued.
  - The assembler settles the cycle exactly once through LoadState.settle().
    It never sets an exception, so every subscriber always wakes up with a
    library.
  - settle() hides the modal synchronously, right after setting the result
    and before any done-callback or awaiting coroutine runs. Code holding the
    future therefore never sees a resolved library with the modal still up.
    The controller's done-callback stays as a guard for futures resolved
    directly.

Only the controller (visibility) and the assembler (publication) write to
LoadState. Everything runs on one event loop thread, so no locking is needed.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol

from uploaded_life.data.schemas import LibrarySnapshot

logger = logging.getLogger(__name__)

DEFAULT_LOADING_MESSAGE = "Loading scenario library…"


class ModalSurface(Protocol):
    """A loading modal that can be opened with a message and closed."""

    def open(self, message: str) -> None:
        ...

    def close(self) -> None:
        ...


@dataclass
class LoadState:
    """
    Shared state of the current load cycle.

    Attributes:
        modal_visible: True from cycle start until the library future settles.
        library_future: Resolves with the cycle's LibrarySnapshot.
        cycle: Number of load cycles started so far.
        settle_hooks: Called synchronously by settle() once the result is set.
    """
    modal_visible: bool = False
    library_future: Optional["asyncio.Future[LibrarySnapshot]"] = None
    cycle: int = 0
    settle_hooks: List[Callable[["asyncio.Future[LibrarySnapshot]"], None]] = field(
        default_factory=list, repr=False
    )

    @property
    def is_loading(self) -> bool:
        return self.library_future is not None and not self.library_future.done()

    def settle(self, snapshot: LibrarySnapshot) -> bool:
        """
        Resolve the current cycle with `snapshot` and run the settle hooks.

        Returns:
            True if this call resolved the future, False if there was no
            cycle or it had already settled.
        """
        future = self.library_future
        if future is None or future.done():
            return False
        future.set_result(snapshot)
        for hook in list(self.settle_hooks):
            hook(future)
        return True


class ModalController:
    """
    Drives `modal_visible` and the modal surface for each load cycle.

    The modal is opened once when the cycle begins and closed once when the
    cycle's future settles. It is never reopened within a cycle.

    Example:
        >>> state = LoadState()
        >>> controller = ModalController(state, ConsoleModal())
        >>> future = controller.begin_cycle()
        >>> state.modal_visible
        True
    """

    def __init__(
        self,
        state: LoadState,
        surface: ModalSurface,
        message: str = DEFAULT_LOADING_MESSAGE,
    ):
        self.state = state
        self.surface = surface
        self.message = message

    def begin_cycle(self) -> "asyncio.Future[LibrarySnapshot]":
        """
        Start a load cycle: show the modal and create the readiness future.

        Must be called from a running event loop, before the cycle's first
        load request is issued.

        Returns:
            The new cycle's future (also stored on the LoadState).

        Raises:
            RuntimeError: If the previous cycle has not settled yet.
        """
        if self.state.is_loading:
            raise RuntimeError(
                f"Load cycle {self.state.cycle} is still in progress; "
                f"wait for it to settle before starting another"
            )

        loop = asyncio.get_running_loop()
        future: "asyncio.Future[LibrarySnapshot]" = loop.create_future()

        self.state.cycle += 1
        self.state.modal_visible = True
        self.state.library_future = future
        self.state.settle_hooks = [self._on_settled]
        self.surface.open(self.message)
        future.add_done_callback(self._on_settled)

        logger.info("Uploaded Life: load cycle %d started", self.state.cycle)
        return future

    def settle(self, snapshot: LibrarySnapshot) -> bool:
        """Resolve the current cycle and hide the modal before returning."""
        return self.state.settle(snapshot)

    def _on_settled(self, future: "asyncio.Future[LibrarySnapshot]") -> None:
        if future is not self.state.library_future or not self.state.modal_visible:
            return
        self.state.modal_visible = False
        self.surface.close()


class ReadinessSignal:
    """
    Read-only view of the current cycle's readiness future.

    Every caller of when_library_ready() gets the same future, so one
    resolution fans out to all subscribers.
    """

    def __init__(self, state: LoadState):
        self.state = state

    def when_library_ready(self) -> "asyncio.Future[LibrarySnapshot]":
        """
        Return the future that resolves with the current cycle's library.

        Raises:
            RuntimeError: If no load cycle has been started.
        """
        if self.state.library_future is None:
            raise RuntimeError("No library load cycle has been started")
        return self.state.library_future

    @property
    def is_ready(self) -> bool:
        future = self.state.library_future
        return future is not None and future.done()
