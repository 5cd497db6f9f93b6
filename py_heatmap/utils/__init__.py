"""
Utility helpers.
"""

from .random import make_rng, new_seed

__all__ = ["make_rng", "new_seed"]
