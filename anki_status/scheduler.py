from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable
import logging

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.blocking import BlockingScheduler

logger = logging.getLogger(__name__)


def run_polling(
    cycle: Callable[[], timedelta],
    scheduler=None,
    clock: Callable[[], datetime] = datetime.now,
) -> None:
    """Run ``cycle`` now, then again each time after the delay it returns.

    Blocks until interrupted.  Each run is a one-off date job, so the wait is
    measured from the end of the previous cycle.  An exception escaping
    ``cycle`` stops the scheduler and is re-raised here.
    """
    if scheduler is None:
        scheduler = BlockingScheduler(
            executors={"default": ThreadPoolExecutor(max_workers=1)}
        )
    failures: list[BaseException] = []

    def job() -> None:
        try:
            delay = cycle()
        except Exception as e:
            failures.append(e)
            scheduler.shutdown(wait=False)
            return
        scheduler.add_job(
            job, "date", run_date=clock() + delay, misfire_grace_time=None
        )

    scheduler.add_job(job, "date", run_date=clock(), misfire_grace_time=None)
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Stopping")
        scheduler.shutdown(wait=False)

    if failures:
        raise failures[0]
