"""
Greedy nearest-neighbour sequencing for route optimization.

The first and last coordinates are fixed anchors (start and destination);
every interior stop is free to move. Starting at the start anchor, the
closest unvisited stop is appended repeatedly until none remain, then the
destination is appended.

The heuristic is fast (O(n^2) in the number of interior stops) but gives
no guarantee of minimum total distance. Selections are hand-picked and
small, so that is acceptable.
"""

from __future__ import annotations

from typing import Callable, List, Sequence, TypeVar

from ..spatial.distance import distance_between

T = TypeVar("T")

DistanceFn = Callable[[T, T], float]


def nearest_neighbor_order(
    waypoints: Sequence[T],
    distance_fn: DistanceFn = distance_between,
) -> List[T]:
    """
    Order interior waypoints by greedy nearest neighbour.

    Args:
        waypoints: Coordinates in selection order; first is the start
            anchor, last is the destination anchor
        distance_fn: Distance between two waypoints (default: haversine metres)

    Returns:
        A new list that is a permutation of ``waypoints`` with both anchors
        in place. Inputs with fewer than 3 elements come back unchanged.

    Ties are broken by the lowest input index, so the result is
    deterministic.
    """
    points = list(waypoints)
    if len(points) < 3:
        return points

    interior = points[1:-1]
    visited = [False] * len(interior)
    ordered = [points[0]]
    current = points[0]

    for _ in range(len(interior)):
        best_idx = -1
        best_dist = 0.0
        for idx, candidate in enumerate(interior):
            if visited[idx]:
                continue
            dist = distance_fn(current, candidate)
            # Strict comparison keeps the first-encountered index on ties
            if best_idx < 0 or dist < best_dist:
                best_idx = idx
                best_dist = dist
        visited[best_idx] = True
        current = interior[best_idx]
        ordered.append(current)

    ordered.append(points[-1])
    return ordered


def nearest_neighbor_indices(
    waypoints: Sequence[T],
    distance_fn: DistanceFn = distance_between,
) -> List[int]:
    """
    Same ordering as ``nearest_neighbor_order`` but as input indices.

    Useful when data aligned with the input (names, ids) has to follow
    each coordinate through the reordering.
    """
    indexed = list(enumerate(waypoints))
    ordered = nearest_neighbor_order(
        indexed,
        distance_fn=lambda a, b: distance_fn(a[1], b[1]),
    )
    return [idx for idx, _ in ordered]


def path_length_m(
    waypoints: Sequence[T],
    distance_fn: DistanceFn = distance_between,
) -> float:
    """Straight-line length of a sequence visited in the given order."""
    return sum(
        distance_fn(waypoints[i], waypoints[i + 1])
        for i in range(len(waypoints) - 1)
    )
