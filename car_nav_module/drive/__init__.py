"""
Drive module containing the steering control law.
"""

from .steering import steer, heading_error, search_spin, hold

__all__ = [
    "steer",
    "heading_error",
    "search_spin",
    "hold",
]
