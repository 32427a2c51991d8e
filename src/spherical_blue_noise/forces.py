# ===--------------------------------------------------------------------------------------===#
#
# Part of the Spherical Blue Noise Project, under the Apache License v2.0.
# See the LICENSE file for license information.
# SPDX-License-Identifier: Apache-2.0
#
# ===--------------------------------------------------------------------------------------===#
#
# This file implements the repulsive force kernel and a single relaxation step.
#
# ===--------------------------------------------------------------------------------------===#

from typing import List, Optional

import concurrent.futures
import logging
import math

import numpy as np
import psutil

# keeps the force finite when two points (almost) coincide
EPSILON: float = 1e-8
# below this many points the automatic worker count falls back to a serial step
MIN_PARALLEL_POINTS: int = 256

logger: logging.Logger = logging.getLogger(__name__)


def angle_between(point: np.ndarray, others: np.ndarray) -> np.ndarray:
    """Great-circle angular distance between ``point`` and each row of ``others``.

    The dot products are clamped to [-1, 1] so that rounding overshoot never
    leaves the domain of arccos.

    Args:
        point: Unit vector of shape ``(3,)``.
        others: Unit vectors of shape ``(M, 3)``.

    Returns:
        Array of ``M`` angles in radians, within [0, pi].
    """
    dots: np.ndarray = others @ point
    return np.arccos(np.clip(dots, -1.0, 1.0))


def angular_acceleration(point: np.ndarray, particles: np.ndarray) -> np.ndarray:
    """Accumulates the repulsive angular acceleration acting on ``point``.

    Every particle that differs from ``point`` by value contributes
    ``-normalize(cross(p, q)) / (angle(p, q)^2 + EPSILON)``. The result is an
    axis around which ``point`` should be rotated to move away from the others.
    Pairs whose cross product vanishes (exactly antipodal points) have no
    defined direction and contribute nothing.

    Args:
        point: Unit vector of shape ``(3,)``.
        particles: Snapshot of the whole point set, shape ``(N, 3)``. It may
            contain ``point`` itself, which is skipped.

    Returns:
        The accumulated acceleration vector, possibly exactly zero.
    """
    others: np.ndarray = particles[np.any(particles != point, axis=1)]
    if not len(others):
        return np.zeros(3, dtype=np.float64)

    crosses: np.ndarray = np.cross(point, others)
    cross_norms: np.ndarray = np.linalg.norm(crosses, axis=1)
    defined: np.ndarray = cross_norms > 0
    if not np.any(defined):
        return np.zeros(3, dtype=np.float64)

    directions: np.ndarray = crosses[defined] / cross_norms[defined, None]
    angles: np.ndarray = angle_between(point, others[defined])
    return -np.sum(directions / (angles**2 + EPSILON)[:, None], axis=0)


def rotate_about_axis(point: np.ndarray, axis: np.ndarray, angle: float) -> np.ndarray:
    """Rotates ``point`` by ``angle`` radians around the unit vector ``axis``.

    Uses Rodrigues' rotation formula and re-normalizes the result to absorb
    floating-point drift.
    """
    cos_a: float = np.cos(angle)
    sin_a: float = np.sin(angle)
    rotated: np.ndarray = (
        point * cos_a
        + np.cross(axis, point) * sin_a
        + axis * (np.dot(axis, point) * (1.0 - cos_a))
    )
    return rotated / np.linalg.norm(rotated)


def displace_point(point: np.ndarray, particles: np.ndarray, threshold: float) -> np.ndarray:
    """Moves ``point`` by ``threshold`` radians in the direction it is pushed.

    When the accumulated acceleration is exactly zero (a lone point, or a
    perfectly cancelling configuration) the rotation axis is undefined and the
    point is returned unmoved.

    Args:
        point: Unit vector of shape ``(3,)``.
        particles: Read-only snapshot of the point set.
        threshold: Rotation angle in radians.

    Returns:
        The new position as a fresh array.
    """
    acceleration: np.ndarray = angular_acceleration(point, particles)
    magnitude: float = np.linalg.norm(acceleration)
    if magnitude == 0:
        return point.copy()
    return rotate_about_axis(point, acceleration / magnitude, threshold)


def resolve_num_workers(max_workers: Optional[int], num_points: int) -> int:
    """Determines how many threads a relaxation step should use.

    Args:
        max_workers: Requested number of workers. If None, the number of logical
            CPUs is used for point sets of at least ``MIN_PARALLEL_POINTS``
            points and a single worker otherwise.
        num_points: Size of the point set.

    Returns:
        A worker count between 1 and ``max(num_points, 1)``.

    Raises:
        ValueError: If ``max_workers`` is smaller than 1.
    """
    if max_workers is None:
        if num_points < MIN_PARALLEL_POINTS:
            return 1
        logical_cpus: int = psutil.cpu_count(logical=True) or 1
        return min(logical_cpus, num_points)
    if max_workers < 1:
        raise ValueError(f"max_workers must be at least 1, got {max_workers}.")
    return max(1, min(max_workers, num_points))


def _relax_range(
    snapshot: np.ndarray, out: np.ndarray, start: int, stop: int, threshold: float
) -> None:
    for i in range(start, stop):
        out[i] = displace_point(snapshot[i], snapshot, threshold)


def relax(particles: np.ndarray, threshold: float, max_workers: Optional[int] = None) -> np.ndarray:
    """Applies one relaxation step to a point set.

    Each point is rotated by ``threshold`` radians away from the others. All
    points read the same read-only snapshot and write into disjoint rows of a
    newly allocated buffer, so the step is split into contiguous index ranges
    handled by a thread pool. A point's new position depends only on the
    snapshot, which makes the result identical for any number of workers.

    Args:
        particles: Current point set, shape ``(N, 3)``. It is never modified.
        threshold: Angular displacement in radians, must be non-negative.
        max_workers: Optional number of threads, see :func:`resolve_num_workers`.

    Returns:
        A new ``(N, 3)`` array with the displaced points.

    Raises:
        ValueError: If ``threshold`` is negative or not finite.
    """
    if not math.isfinite(threshold) or threshold < 0:
        raise ValueError(f"threshold must be finite and non-negative, got {threshold}.")

    snapshot: np.ndarray = np.array(particles, dtype=np.float64)
    snapshot.flags.writeable = False

    num_points: int = len(snapshot)
    out: np.ndarray = np.empty_like(snapshot)
    worker_count: int = resolve_num_workers(max_workers, num_points)

    if worker_count <= 1:
        _relax_range(snapshot, out, 0, num_points, threshold)
        return out

    bounds: List[int] = np.linspace(0, num_points, worker_count + 1).astype(int).tolist()
    logger.debug(
        "Relaxing %d points with threshold %.6g using %d workers.",
        num_points,
        threshold,
        worker_count,
    )
    with concurrent.futures.ThreadPoolExecutor(max_workers=worker_count) as executor:
        futures = [
            executor.submit(_relax_range, snapshot, out, start, stop, threshold)
            for start, stop in zip(bounds[:-1], bounds[1:])
        ]
        for future in futures:
            future.result()

    return out
