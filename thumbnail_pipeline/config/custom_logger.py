import inspect
import logging
import time
from functools import wraps

from thumbnail_pipeline.config.env_config import get_settings

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def time_logger(func):
    if inspect.iscoroutinefunction(func):

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                elapsed_time = time.perf_counter() - start_time
                logging.info(f"⏱️ {func.__name__}: {elapsed_time:.6f}sec")

        return async_wrapper

    else:

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                elapsed_time = time.perf_counter() - start_time
                logging.info(f"⏱️ {func.__name__}: {elapsed_time:.6f}sec")

        return sync_wrapper
