"""CLI command for removing stale completion records."""

import asyncio

from microlearn.exceptions import PersistenceUnavailableError
from microlearn.orchestration import MicrolearnApp
from microlearn.presenters import ConsolePresenter

from .common import load_config


def cleanup_command(args) -> int:
    """Execute the cleanup subcommand.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 = success, 1 = failure)
    """
    presenter = ConsolePresenter()
    app = MicrolearnApp(load_config(args), presenter=presenter)

    try:
        removed = asyncio.run(app.startup())
    except PersistenceUnavailableError as e:
        presenter.show_error(str(e))
        return 1

    presenter.show_success(f"Removed {removed} old completion records")
    return 0
