"""
Backend Circuit Breaker
=======================

Tracks consecutive transport failures of one backend. Once the threshold is
reached the circuit opens and rounds fail fast until the cool-down expires;
the next round is then let through as a trial.

Concurrent reassembly operations share one breaker, so a dead backend is
noticed once instead of once per file.
"""

import time
import threading
from enum import Enum
from typing import Callable, Any, Optional
import logging

from core.errors import TransportError

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"      # Rounds go through
    OPEN = "open"          # Rounds fail fast
    HALF_OPEN = "half_open"  # One trial round allowed


class CircuitBreakerOpenError(TransportError):
    """Raised instead of contacting a backend whose circuit is open."""

    def __init__(self, message: str, retry_after: float = 0.0):
        super().__init__(message)
        self.retry_after = retry_after


class CircuitBreaker:
    """
    Circuit breaker over backend transport failures.

    Only TransportError counts as a failure; cancellations and programming
    errors pass through without touching the counter.

    Example:
        >>> cb = CircuitBreaker(threshold=3, timeout=60.0, name="openrouter")
        >>> result = cb.call(backend.send, request)
    """

    def __init__(self, threshold: int = 5, timeout: float = 60.0, name: str = "default"):
        """
        Args:
            threshold: Consecutive transport failures that open the circuit
            timeout: Cool-down in seconds before a trial round is allowed
            name: Identifier used in log messages
        """
        self.threshold = threshold
        self.timeout = timeout
        self.name = name

        self.failures = 0
        self.last_failure_time: Optional[float] = None
        self.last_error: Optional[TransportError] = None
        self.state = CircuitState.CLOSED
        self._lock = threading.RLock()

    def retry_after(self) -> float:
        """Seconds left in the cool-down (0 when not open)."""
        with self._lock:
            if self.state != CircuitState.OPEN or self.last_failure_time is None:
                return 0.0
            return max(0.0, self.timeout - (time.time() - self.last_failure_time))

    def before_call(self):
        """
        Admit or reject one round.

        Raises:
            CircuitBreakerOpenError: While the cool-down is running
        """
        with self._lock:
            if self.state != CircuitState.OPEN:
                return
            remaining = self.retry_after()
            if remaining > 0:
                raise CircuitBreakerOpenError(
                    f"Circuit breaker '{self.name}' is OPEN after {self.failures} transport failures "
                    f"(last: {self.last_error}). Retry after {remaining:.1f}s",
                    retry_after=remaining
                )
            logger.info(f"[CircuitBreaker:{self.name}] Cool-down over, allowing trial round")
            self.state = CircuitState.HALF_OPEN

    def record_success(self):
        with self._lock:
            if self.state == CircuitState.HALF_OPEN:
                logger.info(f"[CircuitBreaker:{self.name}] Trial round succeeded, closing circuit")
            self.state = CircuitState.CLOSED
            self.failures = 0
            self.last_error = None

    def record_failure(self, error: TransportError):
        with self._lock:
            self.failures += 1
            self.last_failure_time = time.time()
            self.last_error = error

            trial_failed = self.state == CircuitState.HALF_OPEN
            if trial_failed or self.failures >= self.threshold:
                if self.state != CircuitState.OPEN:
                    logger.warning(
                        f"[CircuitBreaker:{self.name}] Opening circuit after {self.failures} "
                        f"transport failure(s): {error}"
                    )
                self.state = CircuitState.OPEN

    def call(self, func: Callable, *args, **kwargs) -> Any:
        """
        Run one backend call through the breaker.

        Raises:
            CircuitBreakerOpenError: If circuit is open
            Exception: Original exception from func
        """
        self.before_call()
        try:
            result = func(*args, **kwargs)
        except TransportError as e:
            self.record_failure(e)
            raise
        self.record_success()
        return result

    def reset(self):
        """Manually close the circuit."""
        with self._lock:
            self.failures = 0
            self.last_failure_time = None
            self.last_error = None
            self.state = CircuitState.CLOSED
            logger.info(f"[CircuitBreaker:{self.name}] Manually reset to CLOSED")

    def get_state(self) -> CircuitState:
        with self._lock:
            return self.state

    def get_failures(self) -> int:
        with self._lock:
            return self.failures
