# Celery instance is defined in smartone/celery.py
# Importing it here makes sure the app is loaded whenever Django starts,
# so @shared_task functions bind to it
from .celery import celery_app

__all__ = ("celery_app",)

""" Run workers with "celery -A smartone worker -l info"
    and the balance schedule with "celery -A smartone beat -l info" """
