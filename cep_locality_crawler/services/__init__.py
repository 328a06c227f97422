"""
HTTP request boundary.
"""

from .api import create_app, status_for_error

__all__ = ['create_app', 'status_for_error']
