import functools
import logging
import time
import warnings

logger = logging.getLogger("tapin.performance")


def time_it(func):
    """Decorator to log the execution time of async route handlers"""

    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            result = await func(*args, **kwargs)
            return result
        finally:
            end_time = time.perf_counter()
            execution_time = end_time - start_time
            logger.debug(f"{func.__name__} completed in {execution_time:.2f} seconds")

    return async_wrapper


def setup_logs(level: str | int = logging.DEBUG):
    # logging.captureWarnings(True)
    warnings.simplefilter("default")
    logging.getLogger("tapin").setLevel(level)
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
