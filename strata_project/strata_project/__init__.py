# Celery instance is defined in strata_project/celery.py
# celery_app is the single task queue app for the whole project
from .celery import celery_app

__all__ = ("celery_app",)

""" Workers are started with "celery -A strata_project worker -l info",
    which imports strata_project/__init__.py and finds celery_app. """
