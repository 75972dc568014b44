"""Process-level wiring of the Microlearn services."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from microlearn.config import MicrolearnConfig
from microlearn.interfaces import PresenterProtocol
from microlearn.presenters import NullPresenter
from microlearn.services import (
    CompletionTracker,
    HeartPoolAccountant,
    HttpCompletionReporter,
    HttpContentProvider,
    HttpHeartAuthority,
    SQLiteKeyValueStore,
    StatsAggregator,
)
from microlearn.utils import Clock

from .session_engine import ChallengeSessionEngine

if TYPE_CHECKING:
    from microlearn.interfaces import (
        CompletionReporter,
        ContentProvider,
        HeartAuthority,
        KeyValueStore,
    )

logger = logging.getLogger(__name__)


class MicrolearnApp:
    """Build the store, services and session engine from one configuration.

    Collaborators default to the SQLite store and the HTTP backend clients;
    any of them can be passed in instead.
    """

    def __init__(
        self,
        config: MicrolearnConfig,
        presenter: PresenterProtocol | None = None,
        store: KeyValueStore | None = None,
        content_provider: ContentProvider | None = None,
        heart_authority: HeartAuthority | None = None,
        completion_reporter: CompletionReporter | None = None,
        clock: Clock = datetime.now,
    ):
        self.config = config
        self.presenter = presenter or NullPresenter()
        self.store = store if store is not None else SQLiteKeyValueStore(config.store_path)
        self.heart_accountant = HeartPoolAccountant(
            config,
            heart_authority if heart_authority is not None else HttpHeartAuthority(config, clock=clock),
            clock,
        )
        self.stats = StatsAggregator(self.store, config, clock)
        self.completions = CompletionTracker(self.store, clock)
        self.engine = ChallengeSessionEngine(
            config=config,
            content_provider=content_provider or HttpContentProvider(config),
            heart_accountant=self.heart_accountant,
            stats_aggregator=self.stats,
            completion_tracker=self.completions,
            completion_reporter=(
                completion_reporter
                if completion_reporter is not None
                else HttpCompletionReporter(config)
            ),
            presenter=self.presenter,
            clock=clock,
        )

    async def startup(self) -> int:
        """Prepare the store and drop completion records from previous days.

        Returns:
            Number of stale completion records removed

        Raises:
            PersistenceUnavailableError: If the SQLite store cannot be created
        """
        if isinstance(self.store, SQLiteKeyValueStore):
            self.store.initialize()
        removed = await self.completions.cleanup_old_records()
        logger.debug(f"Startup complete ({removed} stale completion records removed)")
        return removed

    async def shutdown(self) -> None:
        """Wait for outstanding session writes and retry queued statistics."""
        await self.engine.wait_for_background()
        remaining = await self.stats.flush_pending()
        if remaining:
            logger.warning(f"{remaining} statistics writes could not be saved")
