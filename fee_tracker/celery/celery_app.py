# celery_app.py  ─────────────────────────────────────────────────────────
from datetime import timedelta
from celery import Celery
from celery.schedules import schedule
import logging
import logging.config
from fee_tracker.config.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    POLL_INTERVAL_SECONDS,
)
from fee_tracker.utils.constants import BLOCK_SYNC_QUEUE, TRANSACTION_PROCESSING_QUEUE

# ── 1.  Broker / backend  ────────────────────────────────────
celery_app = Celery(
    "fee_tracker",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# ── 2.  Core config, Beat & routing ─────────────────────────
celery_app.conf.update(
    task_serializer       ='json',
    result_serializer     ='json',
    accept_content        =['json'],
    timezone              ='UTC',
    enable_utc            =True,

    # --- use RedBeat for persistent schedules
    beat_scheduler        ="redbeat.RedBeatScheduler",
    redbeat_redis_url     =CELERY_BROKER_URL,

    # --- one stage per queue, each consumed by its own single worker:
    #     celery -A fee_tracker.celery.celery_app worker -Q block_sync -c 1
    #     celery -A fee_tracker.celery.celery_app worker -Q transaction_processing -c 1
    task_routes = {
        "poll_blocks":          {"queue": BLOCK_SYNC_QUEUE},
        "process_transactions": {"queue": TRANSACTION_PROCESSING_QUEUE},
    },
    worker_prefetch_multiplier = 1,
    task_ignore_result    = True,

    # --- recycle workers to avoid long-lived memory creep
    worker_max_tasks_per_child = 200,
)

# ── 3.  Beat schedule: one range-resolution pass every POLL_INTERVAL_SECONDS ──
celery_app.conf.beat_schedule = {
    "poll-blocks": {
        "task": "poll_blocks",
        "schedule": schedule(run_every=timedelta(seconds=POLL_INTERVAL_SECONDS)),
        "options": {"queue": BLOCK_SYNC_QUEUE},
    }
}

# ── 4.  Logging ────────────────────────────────────────────
LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "custom": {
            "format": "[%(asctime)s] [%(levelname)s] %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        }
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "custom"},
    },
    "root": {"level": "INFO", "handlers": ["console"]},
}
celery_app.conf.worker_hijack_root_logger = False
logging.config.dictConfig(LOGGING_CONFIG)

# ── 5.  Keep the task modules imported so Celery registers them ─────────
import fee_tracker.scheduler.dispatcher  # noqa: E402,F401
import fee_tracker.sync.tasks  # noqa: E402,F401
