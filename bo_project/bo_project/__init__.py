# Celery instance is defined in bo_project/celery.py
# It creates celery_app object and points it to Django settings
# celery_app becomes the singleton task queue app for the back office
from .celery import celery_app

# 'from bo_project import *', only exports celery_app
__all__ = ("celery_app",)
