"""CLI command for showing a heart pool."""

import asyncio
from datetime import datetime

from microlearn.models import ChallengeType
from microlearn.orchestration import MicrolearnApp
from microlearn.presenters import ConsolePresenter
from microlearn.presenters.console_presenter import format_wait
from microlearn.utils import seconds_until

from .common import load_config


def hearts_command(args) -> int:
    """Execute the hearts subcommand.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 = success, 1 = unknown challenge type)
    """
    presenter = ConsolePresenter()

    try:
        challenge_type = ChallengeType.parse(args.challenge_type)
    except ValueError:
        valid = ", ".join(t.value for t in ChallengeType)
        presenter.show_error(f"Unknown challenge type: {args.challenge_type} (expected one of: {valid})")
        return 1

    app = MicrolearnApp(load_config(args), presenter=presenter)
    pool = asyncio.run(app.heart_accountant.load_pool(args.user, challenge_type.value))

    presenter.show_info(f"{challenge_type.display_name}: {pool.remaining}/{pool.capacity} hearts")
    if pool.next_refill_at is not None:
        wait = seconds_until(pool.next_refill_at, datetime.now())
        presenter.show_info(f"  Next heart in {format_wait(wait)}")
    elif pool.is_full:
        presenter.show_success("Pool is full")
    return 0
