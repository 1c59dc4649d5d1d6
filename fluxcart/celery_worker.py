# fluxcart/celery_worker.py
from celery import Celery

from fluxcart.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    CELERY_TASK_ALWAYS_EAGER,
    SETTLE_INTERVAL_SECONDS,
)

celery_app = Celery(
    "fluxcart",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# WAZNE: explicite importuj taski, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "fluxcart.tasks.settle",
    "fluxcart.services.notification_service",
)

# Konfiguracja beat schedule
celery_app.conf.beat_schedule = {
    "settle-group-buys": {
        "task": "fluxcart.tasks.settle.settle_group_buys_task",
        "schedule": SETTLE_INTERVAL_SECONDS,
    },
}

celery_app.conf.timezone = "UTC"
celery_app.conf.task_always_eager = CELERY_TASK_ALWAYS_EAGER
