from mansatask.workers.celery_app import celery, init_celery

__all__ = ["celery", "init_celery"]
