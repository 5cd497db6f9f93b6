"""
Random number generation utilities.

Seeds are strings, so that a heightfield can be reproduced from a short
human-readable token. Each generation gets its own NumPy Generator; there is
no module-level random state.
"""

import hashlib
import uuid
from typing import Optional

import numpy as np


def new_seed() -> str:
    """Short random seed token."""
    return str(uuid.uuid4())[:8]


def make_rng(seed: Optional[str] = None) -> np.random.Generator:
    """
    Create a random stream for seed.

    Args:
        seed: Seed string; a fresh random seed is used when None

    Returns:
        NumPy Generator that yields the same sequence for the same seed
    """
    if seed is None:
        seed = new_seed()
    digest = hashlib.sha256(str(seed).encode("utf-8")).digest()
    return np.random.default_rng(int.from_bytes(digest[:8], "little"))
