# ===--------------------------------------------------------------------------------------===#
#
# Part of the Spherical Blue Noise Project, under the Apache License v2.0.
# See the LICENSE file for license information.
# SPDX-License-Identifier: Apache-2.0
#
# ===--------------------------------------------------------------------------------------===#
#
# This file implements statistics describing how evenly points are spread on the sphere.
#
# ===--------------------------------------------------------------------------------------===#

from typing import Dict

import numpy as np


def pairwise_angles(points: np.ndarray) -> np.ndarray:
    """Computes the matrix of great-circle distances between all points.

    Args:
        points: Unit vectors of shape ``(N, 3)``.

    Returns:
        A symmetric ``(N, N)`` array of angles in radians with a zero diagonal.
    """
    points = np.asarray(points, dtype=np.float64)
    dots: np.ndarray = np.clip(points @ points.T, -1.0, 1.0)
    angles: np.ndarray = np.arccos(dots)
    np.fill_diagonal(angles, 0.0)
    return angles


def nearest_neighbor_angles(points: np.ndarray) -> np.ndarray:
    """Angle from every point to its closest neighbour.

    Returns an empty array for fewer than two points.
    """
    if len(points) < 2:
        return np.empty(0, dtype=np.float64)
    angles: np.ndarray = pairwise_angles(points)
    np.fill_diagonal(angles, np.inf)
    return angles.min(axis=1)


def summarize(points: np.ndarray) -> Dict[str, float]:
    """Summarizes the spread of a point set.

    Blue noise shows a large minimum nearest-neighbour angle and a small
    coefficient of variation of the nearest-neighbour angles, white noise
    the opposite.

    Args:
        points: Unit vectors of shape ``(N, 3)``.

    Returns:
        Dictionary with ``num_points``, ``min_nn_angle``, ``mean_nn_angle``,
        ``std_nn_angle``, ``nn_cv`` (std / mean) and ``max_norm_error``.
        Angle statistics are NaN for fewer than two points.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    nn: np.ndarray = nearest_neighbor_angles(points)

    stats: Dict[str, float] = {
        "num_points": float(len(points)),
        "min_nn_angle": float("nan"),
        "mean_nn_angle": float("nan"),
        "std_nn_angle": float("nan"),
        "nn_cv": float("nan"),
        "max_norm_error": 0.0,
    }
    if len(points):
        stats["max_norm_error"] = float(np.max(np.abs(np.linalg.norm(points, axis=1) - 1.0)))
    if len(nn):
        mean: float = float(nn.mean())
        std: float = float(nn.std())
        stats["min_nn_angle"] = float(nn.min())
        stats["mean_nn_angle"] = mean
        stats["std_nn_angle"] = std
        stats["nn_cv"] = std / mean if mean > 0 else float("inf")
    return stats
