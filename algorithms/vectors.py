"""
Vector Algebra for the Banker's Algorithm Resource Allocator.

Elementwise comparison and arithmetic over fixed-length resource vectors.
Callers are responsible for checking that both operands have the same length.
"""

import numpy as np


def leq(a: np.ndarray, b: np.ndarray) -> bool:
    """
    Check a[k] <= b[k] for every resource type k.
    
    Args:
        a: Left-hand resource vector
        b: Right-hand resource vector
        
    Returns:
        True if every component of a is at most the matching component of b
    """
    return bool(np.all(np.asarray(a) <= np.asarray(b)))


def add(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Return a new vector a + b."""
    return np.asarray(a, dtype=int) + np.asarray(b, dtype=int)


def sub(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Return a new vector a - b."""
    return np.asarray(a, dtype=int) - np.asarray(b, dtype=int)
