"""Vector similarity primitive for embedding comparisons."""

from typing import Iterable, Optional, Sequence

import numpy as np

# Added to the denominator so zero vectors yield 0 instead of NaN
COSINE_EPSILON = 1e-8


def cosine(a: Optional[Sequence[float]], b: Optional[Sequence[float]]) -> float:
    """
    Cosine similarity between two embeddings.

    Degenerate inputs are not errors: returns 0.0 when either vector is
    None or empty, or when their lengths differ.

    Args:
        a: First vector
        b: Second vector

    Returns:
        dot(a, b) / (|a| * |b| + 1e-8), approximately in [-1, 1]
    """
    if a is None or b is None:
        return 0.0
    if len(a) == 0 or len(b) == 0 or len(a) != len(b):
        return 0.0

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denominator = np.linalg.norm(va) * np.linalg.norm(vb) + COSINE_EPSILON
    return float(np.dot(va, vb) / denominator)


def max_similarity(
    vector: Sequence[float], others: Iterable[Optional[Sequence[float]]]
) -> float:
    """Highest cosine similarity of vector against others, skipping empty ones.

    Returns 0.0 when no comparable vector exists.
    """
    similarities = [
        cosine(vector, other) for other in others if other is not None and len(other) > 0
    ]
    return max(similarities) if similarities else 0.0


def clamp01(value: float) -> float:
    """Clamp a score to [0, 1]."""
    return max(0.0, min(1.0, value))
