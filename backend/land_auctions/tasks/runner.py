"""Async background runner for discovery runs.

Includes:
- dispatch_discovery_run(): Run discovery for some sources as a background asyncio task
- get_run_status(): In-memory status of a dispatched run
- start_scheduler(): Periodic scheduler that re-runs every enabled source
"""
import asyncio
import uuid
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog

from land_auctions.config import settings

if TYPE_CHECKING:
    from land_auctions.pipeline.discovery import DiscoveryPipeline

logger = structlog.get_logger()

# Track running tasks and their run records
_running_tasks: dict[str, asyncio.Task] = {}
_runs: dict[str, dict[str, Any]] = {}
_scheduler_task: asyncio.Task | None = None

FINISHED_STATUSES = ("completed", "failed", "cancelled")


@asynccontextmanager
async def open_pipeline() -> AsyncIterator["DiscoveryPipeline"]:
    """Build a DiscoveryPipeline on the configured database and provider."""
    from land_auctions.clients.firecrawl import FirecrawlClient
    from land_auctions.database import async_session
    from land_auctions.pipeline.discovery import DiscoveryPipeline
    from land_auctions.services.auction_store import SqlAuctionStore
    from land_auctions.services.detail_enricher import AuctionDetailEnricher

    client = FirecrawlClient()
    store = SqlAuctionStore(async_session)
    try:
        yield DiscoveryPipeline(
            client,
            store,
            detail_enricher=AuctionDetailEnricher(client, store),
        )
    finally:
        await client.close()


def _prune_runs(limit: int | None = None) -> int:
    """Forget the oldest finished runs beyond the retention limit."""
    limit = settings.run_history_limit if limit is None else limit
    finished = [run_id for run_id, run in _runs.items() if run["status"] in FINISHED_STATUSES]
    stale = finished[: max(len(finished) - limit, 0)]
    for run_id in stale:
        del _runs[run_id]
    return len(stale)


def _new_run(source_ids: list[str], urls: list[str], force: bool) -> dict[str, Any]:
    return {
        "id": uuid.uuid4().hex,
        "status": "pending",
        "source_ids": source_ids,
        "urls": urls,
        "force": force,
        "results": [],
        "error_message": None,
        "created_at": datetime.now(timezone.utc).isoformat(),
        "started_at": None,
        "completed_at": None,
    }


async def run_discovery_async(run_id: str):
    """Run a dispatched discovery run to completion and record its results."""
    from land_auctions.seed.auction_sources import enabled_sources, get_source

    run = _runs.get(run_id)
    if run is None:
        logger.error("Run not found", run_id=run_id)
        return

    run["status"] = "running"
    run["started_at"] = datetime.now(timezone.utc).isoformat()

    try:
        if run["source_ids"]:
            sources = [s for s in (get_source(sid) for sid in run["source_ids"]) if s is not None]
        elif run["urls"]:
            sources = []
        else:
            sources = enabled_sources()

        async with open_pipeline() as pipeline:
            results = []
            if sources:
                results.extend(await pipeline.run_sources(sources, force=run["force"]))
            for url in run["urls"]:
                results.append(await pipeline.ingest_url(url, force=run["force"]))

        run["results"] = [r.as_dict() for r in results]
        run["status"] = "completed"
        logger.info(
            "Discovery run completed",
            run_id=run_id,
            sources=len(sources),
            urls=len(run["urls"]),
            completed=sum(r.completed for r in results),
            failed=sum(r.failed for r in results),
            errored=sum(r.errored for r in results),
        )

    except asyncio.CancelledError:
        run["status"] = "cancelled"
        logger.warning("Discovery run cancelled", run_id=run_id)
        raise

    except Exception as e:
        run["status"] = "failed"
        run["error_message"] = str(e)[:500]
        logger.error("Discovery run failed", run_id=run_id, error=str(e))

    finally:
        run["completed_at"] = datetime.now(timezone.utc).isoformat()
        _prune_runs()


def dispatch_discovery_run(
    source_ids: list[str] | None = None,
    urls: list[str] | None = None,
    force: bool = False,
) -> str:
    """Dispatch a discovery run as a background asyncio task and return its id."""
    run = _new_run(list(source_ids or []), list(urls or []), force)
    run_id = run["id"]
    _runs[run_id] = run

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop and loop.is_running():
        task = loop.create_task(run_discovery_async(run_id))
        _running_tasks[run_id] = task
        task.add_done_callback(lambda t: _running_tasks.pop(run_id, None))
        logger.info("Dispatched discovery run (async)", run_id=run_id)
    else:
        asyncio.run(run_discovery_async(run_id))
        logger.info("Ran discovery run (sync)", run_id=run_id)
    return run_id


def get_task_status(run_id: str) -> str | None:
    """Check if a task is still running."""
    task = _running_tasks.get(run_id)
    if task is None:
        return None
    if task.done():
        return "done"
    return "running"


def get_run_status(run_id: str) -> dict[str, Any] | None:
    run = _runs.get(run_id)
    if run is None:
        return None
    return {**run, "task_running": get_task_status(run_id) == "running"}


def has_active_run() -> bool:
    return any(r["status"] in ("pending", "running") for r in _runs.values())


async def cancel_run(run_id: str) -> bool:
    """Cancel a running discovery task; in-flight URLs drain before it stops."""
    task = _running_tasks.get(run_id)
    if task is None or task.done():
        return False
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    return True


# ---------------------------------------------------------------------------
# Scheduled discovery
# ---------------------------------------------------------------------------

async def _scheduler_loop(interval_hours: float = 24.0):
    """Periodically dispatch a discovery run over all enabled sources."""
    interval_seconds = interval_hours * 3600
    logger.info("Scheduler started", interval_hours=interval_hours)

    while True:
        try:
            await asyncio.sleep(interval_seconds)
            logger.info("Scheduler tick")

            if has_active_run():
                logger.debug("Skipping, a discovery run is already active")
                continue

            run_id = dispatch_discovery_run()
            logger.info("Scheduler dispatched discovery run", run_id=run_id)

        except asyncio.CancelledError:
            logger.info("Scheduler cancelled")
            break
        except Exception as e:
            logger.error("Scheduler error", error=str(e))
            await asyncio.sleep(60)


def start_scheduler(interval_hours: float | None = None):
    """Start the periodic discovery scheduler as a background task."""
    global _scheduler_task
    interval_hours = interval_hours or settings.scheduler_interval_hours
    if _scheduler_task and not _scheduler_task.done():
        logger.warning("Scheduler already running")
        return

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.warning("No running event loop, scheduler not started")
        return

    _scheduler_task = loop.create_task(_scheduler_loop(interval_hours))
    logger.info("Scheduler task created", interval_hours=interval_hours)


def stop_scheduler():
    """Stop the periodic discovery scheduler."""
    global _scheduler_task
    if _scheduler_task and not _scheduler_task.done():
        _scheduler_task.cancel()
        logger.info("Scheduler stop requested")
    _scheduler_task = None
