"""
Cancellable Rounds
==================

Runs one blocking backend call in a worker thread so the caller can
enforce a timeout and react to a cancellation signal. When either fires,
the call is abandoned and its eventual result is discarded.
"""

import threading
import time
from typing import Callable, Any, Optional
import logging

from core.errors import ReassemblyCancelled, RoundTimeoutError

logger = logging.getLogger(__name__)


def run_cancellable(
    func: Callable,
    *args,
    cancel_event: Optional[threading.Event] = None,
    timeout: Optional[float] = None,
    poll_interval: float = 0.1,
    **kwargs
) -> Any:
    """
    Execute func(*args, **kwargs) under a timeout and a cancellation signal.

    With neither a timeout nor a cancel_event the call runs inline.

    Example:
        >>> stop = threading.Event()
        >>> run_cancellable(backend.send, request, cancel_event=stop, timeout=30.0)

    Args:
        func: Blocking function to call
        cancel_event: Event that aborts the wait when set
        timeout: Maximum seconds to wait (None = no limit)
        poll_interval: Seconds between cancellation checks

    Returns:
        Function result

    Raises:
        ReassemblyCancelled: If cancel_event is set before the call returns
        RoundTimeoutError: If the call exceeds timeout
        Exception: Original exception from func
    """
    if cancel_event is not None and cancel_event.is_set():
        raise ReassemblyCancelled("Operation cancelled before the round started")

    if cancel_event is None and timeout is None:
        return func(*args, **kwargs)

    result = [None]
    exception = [None]
    done = threading.Event()

    def target():
        """Target function for thread."""
        try:
            result[0] = func(*args, **kwargs)
        except Exception as e:
            exception[0] = e
        finally:
            done.set()

    thread = threading.Thread(target=target, daemon=True)
    thread.start()

    deadline = None if timeout is None else time.monotonic() + timeout
    while not done.is_set():
        wait_for = poll_interval
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.error(
                    f"Function '{getattr(func, '__name__', func)}' exceeded timeout of {timeout}s"
                )
                raise RoundTimeoutError(f"Round exceeded {timeout}s timeout")
            wait_for = min(wait_for, remaining)

        done.wait(wait_for)
        if cancel_event is not None and cancel_event.is_set():
            # The worker may have finished in the same instant; cancellation still wins.
            logger.info("Round cancelled, discarding in-flight result")
            raise ReassemblyCancelled("Operation cancelled during round")

    if exception[0]:
        raise exception[0]

    return result[0]
