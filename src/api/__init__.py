"""
API package for the APS model viewer backend.
"""

from .app import create_app

__all__ = [
    "create_app"
]
