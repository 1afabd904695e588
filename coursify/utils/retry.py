import logging
import time

log = logging.getLogger(__name__)


def retry_call(func, *args, attempts: int = 3, delay: float = 0.05, exceptions=(Exception,), **kwargs):
    """
    Call ``func(*args, **kwargs)``, retrying on ``exceptions``.

    Makes at most ``attempts`` calls with a fixed ``delay`` (seconds) between
    them. The last error is re-raised unchanged once attempts run out.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    for attempt in range(1, attempts + 1):
        try:
            return func(*args, **kwargs)
        except exceptions as e:
            if attempt == attempts:
                log.warning("%s failed after %d attempts: %s", getattr(func, "__name__", func), attempts, e)
                raise
            log.debug("%s attempt %d/%d failed: %s", getattr(func, "__name__", func), attempt, attempts, e)
            time.sleep(delay)
