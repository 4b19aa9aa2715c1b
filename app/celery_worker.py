# app/celery_worker.py
from celery import Celery

from app.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND, CELERY_TASK_ALWAYS_EAGER

celery_app = Celery(
    "checkout",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# taski musza byc zaimportowane zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "app.tasks.expire",
    "app.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "expire-carts-every-minute": {
        "task": "app.tasks.expire.expire_carts_task",
        "schedule": 60.0,
    },
}

celery_app.conf.timezone = "UTC"
#testy/dev bez brokera
celery_app.conf.task_always_eager = CELERY_TASK_ALWAYS_EAGER
