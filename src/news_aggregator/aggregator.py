"""Synchronization orchestrator — periodic incremental sync of all sources.

Every minute a cycle asks each configured source, in parallel, for the
articles published since that source's frontier, stores them, and then
evicts articles older than the retention window. The frontier is derived
from the latest stored article of the source, so no position is kept
outside the store.

At most one cycle runs at a time: a tick that fires while a cycle is still
running is dropped, never queued.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Iterable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from news_aggregator.ingestion.adapter import FrontierInFutureError, SourceAdapter
from news_aggregator.storage.articles import ArticleNotFound, ArticleStore
from news_aggregator.storage.runs import prune_runs, record_run

logger = logging.getLogger(__name__)

CYCLE_INTERVAL = timedelta(minutes=1)
LOOKBACK = timedelta(days=1)
# Source timestamps have minute granularity.
FRONTIER_STRIDE = timedelta(minutes=1)
RETENTION = timedelta(days=7)

_JOB_ID = "sync"


class OrchestratorState(str, Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


@dataclass
class SourceResult:
    """Outcome of one source's share of a cycle."""

    source_name: str
    frontier: datetime | None = None
    fetched: int = 0
    stored: int = 0
    error: str | None = None

    def as_dict(self) -> dict:
        return {
            "source_name": self.source_name,
            "frontier": self.frontier.isoformat() if self.frontier else None,
            "fetched": self.fetched,
            "stored": self.stored,
            "error": self.error,
        }


@dataclass
class CycleResult:
    """Outcome of one synchronization cycle."""

    now: datetime
    cutoff: datetime
    sources: list[SourceResult] = field(default_factory=list)
    evicted: int = 0
    runs_pruned: int = 0
    eviction_error: str | None = None

    @property
    def failed_sources(self) -> list[str]:
        return [s.source_name for s in self.sources if s.error]

    def error_summary(self) -> str | None:
        """Describe what failed in the cycle, or None if everything succeeded."""
        problems = []
        if self.failed_sources:
            problems.append(f"source(s) failed: {', '.join(self.failed_sources)}")
        if self.eviction_error:
            problems.append("eviction failed")
        return "; ".join(problems) or None

    def as_dict(self) -> dict:
        return {
            "now": self.now.isoformat(),
            "cutoff": self.cutoff.isoformat(),
            "sources": [s.as_dict() for s in self.sources],
            "articles_stored": sum(s.stored for s in self.sources),
            "evicted": self.evicted,
            "runs_pruned": self.runs_pruned,
            "eviction_error": self.eviction_error,
        }


class Aggregator:
    """Owns the synchronization schedule and the lifetime of each cycle."""

    def __init__(
        self,
        sources: Iterable[SourceAdapter],
        store: ArticleStore,
        scheduler: BackgroundScheduler | None = None,
    ) -> None:
        self._sources = list(sources)
        self._store = store
        self._scheduler = scheduler or BackgroundScheduler(timezone=timezone.utc)

        self._cycle_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._state = OrchestratorState.IDLE
        self._started = False
        self._stopping = threading.Event()

    @property
    def state(self) -> OrchestratorState:
        with self._state_lock:
            return self._state

    @property
    def sources(self) -> list[SourceAdapter]:
        return list(self._sources)

    @property
    def store(self) -> ArticleStore:
        return self._store

    def start(self) -> None:
        """Schedule a cycle every minute, the first one immediately."""
        with self._state_lock:
            if self._state is not OrchestratorState.IDLE:
                raise RuntimeError(f"Cannot start aggregator in state '{self._state.value}'")
            # Overlapping ticks must reach run_cycle so that they are dropped there.
            self._scheduler.add_job(
                self.run_cycle,
                trigger=IntervalTrigger(seconds=CYCLE_INTERVAL.total_seconds()),
                id=_JOB_ID,
                name="Synchronization cycle",
                next_run_time=datetime.now(timezone.utc),
                max_instances=2,
                coalesce=True,
            )
            self._scheduler.start()
            self._started = True
            self._state = OrchestratorState.SCHEDULED
        logger.info(
            "Aggregator started with %d source(s), cycle every %s",
            len(self._sources), CYCLE_INTERVAL,
        )

    def stop(self) -> None:
        """Stop scheduling cycles and wait for the in-flight cycle to finish.

        In-flight fetches are not interrupted; this blocks until they end.
        """
        with self._state_lock:
            if self._state is OrchestratorState.STOPPED:
                return
            self._state = OrchestratorState.STOPPING
            self._stopping.set()

        logger.info("Aggregator stopping; waiting for in-flight cycle")
        if self._started:
            self._scheduler.shutdown(wait=True)
        # Also covers cycles run outside the scheduler.
        with self._cycle_lock:
            pass

        with self._state_lock:
            self._state = OrchestratorState.STOPPED
        logger.info("Aggregator stopped")

    def run_cycle(self, now: datetime | None = None) -> CycleResult | None:
        """Run one synchronization cycle.

        Returns None without doing anything if another cycle is still
        running or a stop was requested.
        """
        if not self._cycle_lock.acquire(blocking=False):
            logger.warning("Synchronization cycle already running; dropping tick")
            return None
        try:
            if self._stopping.is_set():
                logger.warning("Aggregator is stopping; not starting a new cycle")
                return None
            self._set_state(OrchestratorState.RUNNING)
            try:
                return self._run_cycle(now or datetime.now(timezone.utc))
            finally:
                self._set_state(
                    OrchestratorState.SCHEDULED if self._started else OrchestratorState.IDLE
                )
        finally:
            self._cycle_lock.release()

    def frontier(self, source_name: str, now: datetime) -> datetime:
        """Earliest publish time to request from a source.

        One stride past the latest stored article, or the lookback window
        when nothing is stored for the source yet. Errors other than
        ArticleNotFound propagate.
        """
        try:
            latest = self._store.latest(source_name)
        except ArticleNotFound:
            return now - LOOKBACK
        return latest.published_at + FRONTIER_STRIDE

    def _set_state(self, state: OrchestratorState) -> None:
        with self._state_lock:
            if self._state in (OrchestratorState.STOPPING, OrchestratorState.STOPPED):
                return
            self._state = state

    def _run_cycle(self, now: datetime) -> CycleResult:
        result = CycleResult(now=now, cutoff=now - RETENTION)
        logger.info(
            "Synchronization cycle started at %s for %d source(s)",
            now.isoformat(), len(self._sources),
        )

        if self._sources:
            with ThreadPoolExecutor(
                max_workers=len(self._sources), thread_name_prefix="sync-source"
            ) as pool:
                futures = [pool.submit(self._sync_source, s, now) for s in self._sources]
                result.sources = [f.result() for f in futures]

        try:
            result.evicted = self._store.evict(result.cutoff)
        except Exception as exc:
            logger.exception("Failed to remove articles older than %s", result.cutoff.isoformat())
            result.eviction_error = str(exc)

        # The run ledger follows the same retention window as the articles.
        try:
            result.runs_pruned = prune_runs(self._store.database_path, result.cutoff)
        except Exception:
            logger.exception("Failed to prune sync runs older than %s", result.cutoff.isoformat())

        logger.info(
            "Synchronization cycle complete: %d stored, %d evicted, %d source error(s)",
            sum(s.stored for s in result.sources), result.evicted, len(result.failed_sources),
        )
        self._record(result)
        return result

    def _sync_source(self, source: SourceAdapter, now: datetime) -> SourceResult:
        """Fetch and store one source's new articles. Never raises."""
        result = SourceResult(source_name=source.name)

        try:
            result.frontier = self.frontier(source.name, now)
        except Exception as exc:
            logger.exception("Failed to get latest article for source %s", source.name)
            result.error = f"{type(exc).__name__}: {exc}"
            return result

        try:
            articles = source.fetch(result.frontier)
        except FrontierInFutureError as exc:
            logger.warning("Skipping source %s: %s", source.name, exc)
            result.error = f"{type(exc).__name__}: {exc}"
            return result
        except Exception as exc:
            logger.exception(
                "Failed to get new articles from source %s (from %s)",
                source.name, result.frontier.isoformat(),
            )
            result.error = f"{type(exc).__name__}: {exc}"
            return result

        try:
            result.fetched = len(articles)
            fresh = [a for a in articles if a.published_at >= result.frontier]
        except (TypeError, AttributeError) as exc:
            logger.error("Source %s returned an invalid result: %s", source.name, exc)
            result.error = f"{type(exc).__name__}: {exc}"
            return result

        if len(fresh) < len(articles):
            logger.info(
                "Source %s returned %d article(s) before %s; dropping them",
                source.name, len(articles) - len(fresh), result.frontier.isoformat(),
            )
        if not fresh:
            logger.debug("No new articles from source %s", source.name)
            return result

        try:
            result.stored = self._store.store(fresh)
        except Exception as exc:
            logger.exception("Failed to add new articles from source %s to store", source.name)
            result.error = f"{type(exc).__name__}: {exc}"
            return result

        logger.info(
            "Source %s: %d fetched, %d stored (from %s)",
            source.name, result.fetched, result.stored, result.frontier.isoformat(),
        )
        return result

    def _record(self, result: CycleResult) -> None:
        """Write the cycle to the sync run ledger. Never raises."""
        try:
            record_run(
                self._store.database_path,
                result.now.astimezone(timezone.utc).isoformat(),
                result.as_dict(),
                error=result.error_summary(),
            )
        except Exception:
            logger.exception("Failed to record sync run")
