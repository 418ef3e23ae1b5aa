"""
uploaded_life – Main entry point.

Boots the host against the console, waits for the first library load cycle
and starts a run.
"""

import asyncio

from uploaded_life.config.settings import get_settings
from uploaded_life.host.bootstrap import bootstrap
from uploaded_life.host.console import ConsoleModal, ConsoleMountPoint
from uploaded_life.utils.log import configure_logging


async def run() -> None:
    runtime = bootstrap(ConsoleMountPoint(), ConsoleModal())
    runtime.host.start_new_run()
    await runtime.wait_until_ready()


def main() -> None:
    """Run one load cycle and print the intro scenario."""
    configure_logging(get_settings().loader.log_level)
    asyncio.run(run())


if __name__ == "__main__":
    main()
