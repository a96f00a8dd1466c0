import os

from celery import Celery, Task
from flask import has_app_context

_flask_app = None


class ContextTask(Task):
    """Runs every task inside the Flask application context."""

    abstract = True

    def __call__(self, *args, **kwargs):
        if has_app_context() or _flask_app is None:
            return super().__call__(*args, **kwargs)
        with _flask_app.app_context():
            return super().__call__(*args, **kwargs)


celery = Celery(
    "mansatask",
    broker=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
    backend=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
    task_cls=ContextTask,
    include=["mansatask.tasks.email_tasks"],
)

celery.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
)


def init_celery(app):
    global _flask_app
    _flask_app = app

    celery.conf.update(
        broker_url=app.config["CELERY_BROKER_URL"],
        result_backend=app.config["CELERY_RESULT_BACKEND"],
        task_always_eager=app.config.get("CELERY_TASK_ALWAYS_EAGER", False),
        task_eager_propagates=False,
    )
    celery.set_default()
    app.extensions["celery"] = celery
    return celery
