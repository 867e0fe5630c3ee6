"""
Models package for the APS model viewer.
"""

from .interfaces import (
    AccessToken,
    Manifest,
    ModelReference,
    collect_messages,
    urnify
)

__all__ = [
    "AccessToken",
    "Manifest",
    "ModelReference",
    "collect_messages",
    "urnify"
]
