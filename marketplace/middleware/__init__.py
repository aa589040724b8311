"""
Middleware for request tracking and validation.
"""

from .request import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
