"""
Reassembly Errors
=================

Exception hierarchy shared by the backend clients and the completion driver.
"""


class ReassemblyError(Exception):
    """Base class for failures that abort a reassembly operation."""
    pass


class TransportError(ReassemblyError):
    """
    Backend Client failure (network, auth, non-success status, malformed reply).

    Fatal for the operation: the driver propagates it without returning
    the partially accumulated text.
    """

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class RoundTimeoutError(TransportError):
    """Raised when a single round exceeds its caller-supplied timeout."""
    pass


class ReassemblyCancelled(ReassemblyError):
    """Raised when the operation's cancellation signal is set."""
    pass


class ConfigurationError(ValueError):
    """Raised for invalid or incomplete configuration."""
    pass
