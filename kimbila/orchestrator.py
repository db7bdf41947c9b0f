"""
Main Orchestrator for Kimbila

This module ties the components together:
1. Ledger (state + storage + audit) for every change to the books
2. Queries for the dashboard
3. Advice flow for the optional business tips

DESIGN DECISION: The advisor is optional. If Gemini is not configured
the shop still records sales; the tips page just says it is unavailable.
"""

import asyncio
from pathlib import Path
from typing import Optional

import structlog

from kimbila.agents import BusinessAdvisorAgent
from kimbila.audit import AuditLogger
from kimbila.config import get_settings
from kimbila.ledger import LedgerService, LedgerState
from kimbila.queries import LedgerQueries
from kimbila.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    LedgerStorageInterface,
)


logger = structlog.get_logger(__name__)


class AdviceFlow:
    """
    Runs advice requests as background tasks.

    At most one request is in flight. Asking again while one is running
    returns the running task instead of starting another; nothing is
    queued. Each finished result is stored once on `latest_advice`.
    """

    def __init__(
        self,
        agent: BusinessAdvisorAgent,
        queries: LedgerQueries,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._agent = agent
        self._queries = queries
        self._audit_logger = audit_logger
        self._task: Optional[asyncio.Task] = None
        self.latest_advice: Optional[str] = None

    @property
    def in_flight(self) -> bool:
        """
        True while a request is running.

        A task whose event loop was closed before it finished (a
        Streamlit rerun closes the loop mid-request) can never finish,
        so it is dropped here.
        """
        if self._task is None or self._task.done():
            return False
        if self._task.get_loop().is_closed():
            self._task = None
            return False
        return True

    def request_advice(self, business_name: Optional[str] = None) -> asyncio.Task:
        """
        Start an advice request, or return the one already running.

        Must be called from inside a running event loop. The snapshot
        is taken now, so sales recorded while waiting are not included.
        """
        loop = asyncio.get_running_loop()
        if self.in_flight and self._task.get_loop() is loop:
            return self._task

        snapshot = self._queries.advice_snapshot(business_name)
        if self._audit_logger:
            self._audit_logger.log_advice_requested(
                snapshot.business_name, len(snapshot.products)
            )

        self._task = loop.create_task(self._run(snapshot))
        return self._task

    async def _run(self, snapshot) -> str:
        advice = await self._agent.generate_advice(snapshot)
        self.latest_advice = advice
        return advice

    async def get_advice(self, business_name: Optional[str] = None) -> str:
        """Request advice and wait for it."""
        return await self.request_advice(business_name)


def create_storage(data_dir: Optional[Path] = None) -> LedgerStorageInterface:
    """
    JSON files in the configured data directory, or memory if that
    directory cannot be created.
    """
    storage = JsonFileStorage(data_dir=data_dir)
    try:
        storage.data_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(
            "data_dir_unusable",
            data_dir=str(storage.data_dir),
            error=str(e),
        )
        return InMemoryStorage()
    return storage


def create_app_components(
    use_storage: bool = True,
    data_dir: Optional[Path] = None,
) -> tuple[LedgerService, LedgerQueries, Optional[AdviceFlow]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to persist to disk. Set to False for a
                    throwaway in-memory ledger.
        data_dir: Override the configured data directory.

    Returns:
        (ledger, queries, advice_flow); advice_flow is None when
        Gemini is not configured.
    """
    settings = get_settings()
    audit_logger = AuditLogger()

    storage = create_storage(data_dir) if use_storage else InMemoryStorage()

    state = LedgerState()
    ledger = LedgerService(
        state=state,
        storage=storage,
        audit_logger=audit_logger,
        settings=settings.app,
        storage_settings=settings.storage,
    )
    ledger.load()

    queries = LedgerQueries(state, settings.app)

    advice_flow = None
    try:
        agent = BusinessAdvisorAgent(
            settings=settings.gemini,
            app_settings=settings.app,
            audit_logger=audit_logger,
        )
        advice_flow = AdviceFlow(agent, queries, audit_logger)
    except Exception as e:
        # Advisor not configured - continue without it
        logger.warning("advisor_unavailable", error=str(e))

    return ledger, queries, advice_flow
