"""CLI command for deleting all statistics."""

import asyncio

from microlearn.exceptions import PersistenceUnavailableError
from microlearn.orchestration import MicrolearnApp
from microlearn.presenters import ConsolePresenter

from .common import load_config


def reset_command(args) -> int:
    """Execute the reset subcommand.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 = success, 1 = failure or not confirmed)
    """
    presenter = ConsolePresenter()

    if not args.yes:
        presenter.show_warning("This deletes every daily, streak and category record.")
        presenter.show_info("Run again with --yes to confirm.")
        return 1

    app = MicrolearnApp(load_config(args), presenter=presenter)

    async def _reset() -> int:
        await app.startup()
        return await app.stats.reset()

    try:
        removed = asyncio.run(_reset())
    except PersistenceUnavailableError as e:
        presenter.show_error(f"Reset failed: {e}")
        return 1

    presenter.show_success(f"Statistics reset ({removed} records removed)")
    return 0
