"""
Seedable RNG utilities for the ant grid simulation.

Uses SHA256 hashing to derive stable seeds from hierarchical components
(world seed, run name, grid size, ...). All randomness flows through an
explicitly passed numpy.random.Generator(PCG64) so runs can be replayed.
"""

import hashlib
import numpy as np
from typing import Any, Optional


def make_seed(*components: Any) -> int:
    """
    Generate deterministic 64-bit seed from hierarchical components.

    Args:
        *components: Seed components (world_seed, run name, width, height, etc.)

    Returns:
        64-bit integer seed for numpy RNG

    Example:
        grid_seed = make_seed(world_seed, "grid", 50, 50)
    """
    # Join all components with colon separator
    hash_input = ":".join(str(c) for c in components)

    # SHA256 hash and extract 64-bit integer
    hash_bytes = hashlib.sha256(hash_input.encode('utf-8')).digest()
    seed = int.from_bytes(hash_bytes[:8], byteorder='big')

    return seed


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """
    Build the random source for a grid.

    Args:
        seed: Integer seed, or None for fresh OS entropy

    Returns:
        numpy Generator backed by PCG64
    """
    return np.random.Generator(np.random.PCG64(seed))
