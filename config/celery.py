import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("glamping_booking")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Expire unpaid pending bookings - every minute
    "expire-overdue-payments": {
        "task": "bookings.expire_overdue_payments",
        "schedule": 60.0,
        "options": {"expires": 50},
    },
}
