import logging
from functools import wraps
from time import perf_counter
from typing import Callable


def timeit(func: Callable) -> Callable:
    """
    Decorator for timing function execution time.

    Args:
        func: The function to time.
    Returns:
        The wrapped function.
    """

    @wraps(func)
    def timeit_wrapper(*args, **kwargs):
        start_time = perf_counter()
        result = func(*args, **kwargs)
        total_time = perf_counter() - start_time
        logging.info(f"Function {func.__name__} took {total_time:.2f} seconds")
        return result

    return timeit_wrapper


def checkpoint(time_ref: float | None = None) -> Callable[..., None]:
    """
    Closure that stores a time checkpoint that is updated at every call.
    Each call logs the time elapsed since the last checkpoint with a custom message.

    Args:
        time_ref: The time reference to start from. By default, the time of the call will be taken.
    Returns:
        The closure.
    """
    if time_ref is None:
        time_ref = perf_counter()

    def _closure(message: str = "") -> float:
        """
        Logs the time elapsed since the previous call.

        Args:
            message: Custom message to log. The overall result will be: 'message: time_elapsed'.

        Returns:
            The time elapsed.
        """
        nonlocal time_ref
        current_time = perf_counter()
        elapsed = current_time - time_ref
        if message != "":
            logging.info(f"{message}: {elapsed:.2f} seconds")
        time_ref = current_time
        return elapsed

    return _closure
