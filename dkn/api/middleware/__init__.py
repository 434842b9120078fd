"""
API middleware.
"""

from dkn.api.middleware.request_id import RequestIdMiddleware

__all__ = ["RequestIdMiddleware"]
