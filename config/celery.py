import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("roomgate")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Release unpaid holds - every minute
    "expire-pending-bookings": {
        "task": "bookings.expire_pending_bookings",
        "schedule": 60.0,
        "options": {"expires": 50},
    },
    # Drop expired lookup/verification tokens - every hour
    "purge-expired-tokens": {
        "task": "bookings.purge_expired_tokens",
        "schedule": crontab(minute=30),
    },
}

app.conf.timezone = os.environ.get("DJANGO_TIME_ZONE", "Asia/Manila")
