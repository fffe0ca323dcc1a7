"""Client for the hosted relational backend (PostgREST-style REST API)."""

from .api import BackendClient

__all__ = ["BackendClient"]
