"""
Digital Knowledge Network (DKN) core.

Role-based access control and content governance for knowledge items.
"""

__version__ = "1.0.0"
