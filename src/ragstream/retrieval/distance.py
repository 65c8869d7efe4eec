"""Pure-Python distance functions matching pgvector's operators.

``cosine`` is ``<=>``, ``l2`` is ``<->`` and ``inner_product`` is ``<#>``
(the *negative* inner product, so that smaller still means closer).
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence

from ragstream.retrieval.models import DistanceMetric


def cosine_distance(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if norm == 0:
        return 1.0
    return 1.0 - dot / norm


def l2_distance(a: Sequence[float], b: Sequence[float]) -> float:
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(a, b)))


def negative_inner_product(a: Sequence[float], b: Sequence[float]) -> float:
    return -sum(x * y for x, y in zip(a, b))


DISTANCE_FUNCTIONS: dict[DistanceMetric, Callable[[Sequence[float], Sequence[float]], float]] = {
    DistanceMetric.COSINE: cosine_distance,
    DistanceMetric.L2: l2_distance,
    DistanceMetric.INNER_PRODUCT: negative_inner_product,
}
