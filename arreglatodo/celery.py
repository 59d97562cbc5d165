"""
Celery application.

Provider calls that fail with a retryable error are re-driven from here with
exponential backoff; the orchestrators themselves never retry in-process.
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "arreglatodo.settings")

app = Celery("arreglatodo")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
