"""CLI command for showing practice statistics."""

import asyncio

from microlearn.models import ChallengeType
from microlearn.orchestration import MicrolearnApp
from microlearn.presenters import ConsolePresenter

from .common import load_config


def stats_command(args) -> int:
    """Execute the stats subcommand.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 = success)
    """
    presenter = ConsolePresenter()
    app = MicrolearnApp(load_config(args), presenter=presenter)
    return asyncio.run(_show_stats(app, presenter, args.language, args.level))


async def _show_stats(app: MicrolearnApp, presenter: ConsolePresenter, language, level) -> int:
    await app.startup()
    presenter.show_daily_stats(await app.stats.get_daily_stats())

    if language and level:
        categories = await app.stats.get_all_category_stats(language, level, list(ChallengeType))
        presenter.show_info(f"\nCategories ({language} {level}):")
        for challenge_type in ChallengeType:
            category = categories[challenge_type.value]
            if category.completed == 0:
                continue
            presenter.show_info(
                f"  {challenge_type.display_name:16s} {category.completed:4d} answered, "
                f"{category.accuracy:.0f}% correct"
            )

    completed_today = await app.completions.today_count()
    presenter.show_info(f"\nChallenges completed today: {completed_today}")
    return 0
