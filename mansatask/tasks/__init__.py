import logging

from kombu.exceptions import OperationalError

logger = logging.getLogger(__name__)


def dispatch(task, *args, **kwargs) -> bool:
    """
    Queue ``task``; returns False when it could not be queued or, when tasks
    run eagerly, when it failed. Callers never fail a request on this.
    """
    try:
        result = task.delay(*args, **kwargs)
    except OperationalError as e:
        logger.error(f"Could not queue task {task.name}: {e}")
        return False

    if task.app.conf.task_always_eager and result.failed():
        logger.error(f"Task {task.name} failed: {result.result}")
        return False
    return True
