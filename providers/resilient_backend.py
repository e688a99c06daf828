"""
Resilient Backend
=================

Wraps a backend client with a circuit breaker for fault tolerance.
"""

from core.circuit_breaker import CircuitBreaker, CircuitBreakerOpenError
from core.schemas import BackendResult, GenerationRequest
from providers.base import BackendClient
import logging

logger = logging.getLogger(__name__)


class ResilientBackend(BackendClient):
    """
    Backend client with circuit breaker protection.

    Share one instance across concurrent reassembly operations so a failing
    backend is detected once instead of per file. Never retries.

    Example:
        >>> cb = CircuitBreaker(threshold=3, timeout=60.0, name="openrouter")
        >>> backend = ResilientBackend(OpenRouterBackend(), cb)
        >>> result = backend.send(request)
    """

    def __init__(self, backend: BackendClient, circuit_breaker: CircuitBreaker = None):
        """
        Initialize resilient backend.

        Args:
            backend: Underlying backend client
            circuit_breaker: Circuit breaker instance (default: threshold 5, 60s)
        """
        self.backend = backend
        self.circuit_breaker = circuit_breaker or CircuitBreaker(name=type(backend).__name__)

    def send(self, request: GenerationRequest) -> BackendResult:
        """
        Send through the circuit breaker.

        Raises:
            CircuitBreakerOpenError: If circuit is open (a TransportError)
            TransportError: Original failure from the backend
        """
        try:
            return self.circuit_breaker.call(self.backend.send, request)
        except CircuitBreakerOpenError as e:
            logger.error(f"Circuit breaker open for backend: {e}")
            raise
