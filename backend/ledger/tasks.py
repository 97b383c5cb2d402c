from typing import Any

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.jobs import Job

from ledger.core.config import settings

# Redis connection settings
redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)


async def get_redis_pool() -> ArqRedis:
    """Get or create Redis pool for arq"""
    return await create_pool(redis_settings)


async def enqueue_task(task_name: str, *args: Any, **kwargs: Any) -> Job:
    """Enqueue a task to the arq worker and close the pool afterwards."""
    pool = await get_redis_pool()
    try:
        job = await pool.enqueue_job(task_name, *args, **kwargs)
        return job  # type: ignore[return-value]
    finally:
        await pool.close()


async def enqueue_invoice_recalculation(invoice_id: str) -> Job:
    """Ask the worker to recalculate one invoice, e.g. after a failed inline recalculation."""
    return await enqueue_task("recalculate_invoice_task", invoice_id)


async def enqueue_reconciliation() -> Job:
    """Run the stale-invoice reconciliation now instead of waiting for the cron."""
    return await enqueue_task("reconcile_invoice_totals_task")
