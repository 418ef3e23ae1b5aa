"""
The simulation host: holds the active library and renders into a mount point.

The host is constructed synchronously with the embedded library, so it always
has something to show. When a load cycle publishes, the bootstrap swaps the
loaded library in with set_scenario_library(). A run requested before that
happens is remembered and started as soon as the library arrives.
"""

import logging
from typing import Optional, Protocol

from uploaded_life.data.embedded import embedded_snapshot
from uploaded_life.data.schemas import SCENARIOS, LibrarySnapshot, Scenario
from uploaded_life.library.readiness import ModalSurface

logger = logging.getLogger(__name__)

INTRO_SCENARIO_ID = "a1r7"

LOADING_NOTICE = "Still loading scenarios. Your run will start as soon as they arrive."


class MountPoint(Protocol):
    """The single container the host renders into."""

    def render(self, text: str) -> None:
        ...


class UploadedLifeHost:
    """
    Simulation host bound to one mount point.

    Attributes:
        mount: Where render() output goes.
        active_library: The library currently in use. Never None.
        scenarios_ready: True once a load cycle has delivered a library.
        pending_start: True when start_new_run() was called before that.
        current_scenario: Scenario shown by the current run, if any.
        runs_started: Number of runs started.
    """

    def __init__(
        self,
        mount: MountPoint,
        library: Optional[LibrarySnapshot] = None,
        notice: Optional[ModalSurface] = None,
    ):
        self.mount = mount
        self.notice = notice
        self.active_library = library if library is not None else embedded_snapshot()
        self.scenarios_ready = False
        self.pending_start = False
        self.current_scenario: Optional[Scenario] = None
        self.runs_started = 0
        self._notice_open = False

    def set_scenario_library(self, library: LibrarySnapshot) -> None:
        """
        Swap in a newly published library and replay a pending start.

        Args:
            library: The snapshot resolved by the load cycle.
        """
        self.active_library = library
        self.scenarios_ready = True
        if library.used_fallback:
            logger.warning(
                "Uploaded Life: running with embedded data for %s",
                ", ".join(library.fallback_resources),
            )
        else:
            logger.info("Uploaded Life: scenario library ready")

        if self._notice_open and self.notice is not None:
            self.notice.close()
            self._notice_open = False

        if self.pending_start:
            self.pending_start = False
            self.start_new_run()
        else:
            self.render()

    def start_new_run(self) -> bool:
        """
        Start a run from the intro scenario.

        Returns:
            True if the run started, False if it was deferred because the
            library has not arrived yet.
        """
        if not self.scenarios_ready:
            self.pending_start = True
            if self.notice is not None and not self._notice_open:
                self.notice.open(LOADING_NOTICE)
                self._notice_open = True
            return False

        self.current_scenario = self._intro_scenario()
        self.runs_started += 1
        self.render()
        return True

    def render(self) -> None:
        """Render the current scenario, or a library summary when no run is active."""
        if self.current_scenario is not None:
            scenario = self.current_scenario
            body = scenario.text or scenario.details
            self.mount.render(f"{scenario.label}\n{body}" if body else scenario.label)
            return

        counts = self.active_library.counts()
        summary = ", ".join(f"{count} {name}" for name, count in counts.items())
        status = "ready" if self.scenarios_ready else "loading"
        self.mount.render(f"Uploaded Life ({status}): {summary}")

    def _intro_scenario(self) -> Optional[Scenario]:
        intro = self.active_library.find(SCENARIOS, INTRO_SCENARIO_ID)
        if intro is not None:
            return intro
        scenarios = self.active_library.scenarios
        return scenarios[0] if scenarios else None
