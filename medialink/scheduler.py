import os

from apscheduler.schedulers.asyncio import AsyncIOScheduler

scheduler = AsyncIOScheduler(timezone=os.getenv("TZ", "UTC"))

DEFAULT_CRON = "30 3 * * *"


def _cron_parts(expr: str):
    parts = (expr or "").split()
    if len(parts) != 5:
        parts = DEFAULT_CRON.split()
    return parts


def apply_schedule(job_func, cron_expr: str):
    if not (cron_expr or "").strip():
        if scheduler.get_job("full-rescan"):
            scheduler.remove_job("full-rescan")
        return
    minute, hour, day, month, dow = _cron_parts(cron_expr)
    scheduler.add_job(
        job_func,
        "cron",
        minute=minute,
        hour=hour,
        day=day,
        month=month,
        day_of_week=dow,
        id="full-rescan",
        replace_existing=True,
    )


def start_scheduler(job_func, cron_expr: str):
    apply_schedule(job_func, cron_expr)
    if not scheduler.running:
        scheduler.start()


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
