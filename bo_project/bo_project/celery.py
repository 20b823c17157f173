""" When you run Celery workers, "celery -A bo_project worker -l info"
    The -A bo_project means:
    Import bo_project/__init__.py →
    which exposes celery_app →  now Celery knows what to run. """
from __future__ import annotations
import os
from celery import Celery

# ensure Django settings are set for Celery
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "bo_project.settings")

celery_app = Celery("bo_project")

# read config from Django settings, using CELERY_ prefix
celery_app.config_from_object("django.conf:settings", namespace="CELERY")

# pick up ledger_core.tasks (reconciliation checks, totals rebuilds)
celery_app.autodiscover_tasks()
