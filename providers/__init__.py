"""
Backend clients
"""
from .base import BackendClient
from .openrouter import OpenRouterBackend
from .resilient_backend import ResilientBackend

__all__ = ['BackendClient', 'OpenRouterBackend', 'ResilientBackend']
