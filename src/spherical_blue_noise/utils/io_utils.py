# ===--------------------------------------------------------------------------------------===#
#
# Part of the Spherical Blue Noise Project, under the Apache License v2.0.
# See the LICENSE file for license information.
# SPDX-License-Identifier: Apache-2.0
#
# ===--------------------------------------------------------------------------------------===#
#
# This file implements saving and loading of point sets.
#
# ===--------------------------------------------------------------------------------------===#

from typing import List, Optional

import json
import logging
import pathlib

import numpy as np

SUPPORTED_FORMATS: List[str] = [".npy", ".csv", ".json"]


def _as_path(path: str | pathlib.Path) -> pathlib.Path:
    if isinstance(path, str):
        path = pathlib.Path(path)
    if path.suffix not in SUPPORTED_FORMATS:
        raise ValueError(
            f"Unsupported point file format '{path.suffix}', expected one of {SUPPORTED_FORMATS}."
        )
    return path


def save_points(
    points: np.ndarray,
    path: str | pathlib.Path,
    logger: Optional[logging.Logger] = None,
) -> pathlib.Path:
    """Saves a point set to disk.

    The format is chosen from the file suffix: ``.npy`` stores the raw float64
    array, ``.csv`` writes one ``x,y,z`` row per point with a header, and
    ``.json`` writes a list of ``[x, y, z]`` triples.

    Args:
        points: Array of shape ``(N, 3)``.
        path: Destination file. Parent directories are created if needed.
        logger: Logger instance for logging the save.

    Returns:
        The path the points were written to.

    Raises:
        ValueError: If the suffix is not supported.
    """
    path = _as_path(path)
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.suffix == ".npy":
        np.save(path, points)
    elif path.suffix == ".csv":
        np.savetxt(path, points, delimiter=",", header="x,y,z", comments="", fmt="%.17g")
    else:
        with open(path, "w") as f:
            json.dump(points.tolist(), f, indent=1)

    if logger is not None:
        logger.info(f"Saved {len(points)} points at '{path}'.")
    return path


def load_points(path: str | pathlib.Path) -> np.ndarray:
    """Loads a point set written by :func:`save_points`.

    Args:
        path: Source file with a supported suffix.

    Returns:
        A float64 array of shape ``(N, 3)``.

    Raises:
        ValueError: If the suffix is not supported or the data is not a list of
            3D points.
    """
    path = _as_path(path)

    if path.suffix == ".npy":
        points: np.ndarray = np.load(path)
    elif path.suffix == ".csv":
        points = np.loadtxt(path, delimiter=",", skiprows=1, ndmin=2)
    else:
        with open(path, "r") as f:
            points = np.array(json.load(f), dtype=np.float64)

    points = np.asarray(points, dtype=np.float64)
    if points.size == 0:
        return np.empty((0, 3), dtype=np.float64)
    if points.ndim != 2 or points.shape[1] != 3:
        raise ValueError(f"Expected points of shape (N, 3) in '{path}', got {points.shape}.")
    return points
