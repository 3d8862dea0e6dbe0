from typing import Optional

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler

from statusprobe.jobs.probe_loop import ProbeLoop
from statusprobe.utils.log import app_logger

PROBE_LOOP_JOB_ID = "probe_loop"

# created on start: a BackgroundScheduler's executors cannot be reused after shutdown
_scheduler: Optional[BackgroundScheduler] = None


def _new_scheduler() -> BackgroundScheduler:
    # the loop is one long-lived job; one worker thread is enough
    return BackgroundScheduler(
        executors={'default': ThreadPoolExecutor(max_workers=1)},
        job_defaults={'max_instances': 1, 'coalesce': True, 'misfire_grace_time': None},
    )


def get_scheduler() -> Optional[BackgroundScheduler]:
    return _scheduler


def start_scheduler():
    global _scheduler
    if _scheduler is None or not _scheduler.running:
        _scheduler = _new_scheduler()
        _scheduler.start()
        app_logger.info("scheduler: started")


def shutdown_scheduler(wait: bool = True):
    if _scheduler is not None and _scheduler.running:
        _scheduler.shutdown(wait=wait)
        app_logger.info("scheduler: shutdown")


def add_probe_loop_job(loop: ProbeLoop):
    """Run `loop` in the background, starting now.

    The job never returns on its own; it is ended by `stop_probe_loop`. If a
    loop job is already registered this is a no-op.
    """
    if _scheduler is None or not _scheduler.running:
        raise RuntimeError("scheduler is not running")

    if _scheduler.get_job(PROBE_LOOP_JOB_ID):
        app_logger.info(f"scheduler: probe loop already scheduled {PROBE_LOOP_JOB_ID}")
        return

    _scheduler.add_job(loop.run_forever, 'date', id=PROBE_LOOP_JOB_ID, replace_existing=False)
    app_logger.info(f"scheduler: added probe loop job {PROBE_LOOP_JOB_ID}")


def stop_probe_loop(loop: ProbeLoop, wait: bool = True):
    """Ask the loop to exit at its next sleep, then shut the scheduler down."""
    loop.stop()
    shutdown_scheduler(wait=wait)
