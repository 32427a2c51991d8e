# ===--------------------------------------------------------------------------------------===#
#
# Part of the Spherical Blue Noise Project, under the Apache License v2.0.
# See the LICENSE file for license information.
# SPDX-License-Identifier: Apache-2.0
#
# ===--------------------------------------------------------------------------------------===#
#
# This file implements uniform (white noise) sampling of points on the unit sphere.
#
# ===--------------------------------------------------------------------------------------===#

from typing import Optional, Protocol, Tuple, Union, runtime_checkable

import math
import random

import numpy as np


@runtime_checkable
class SphereSampler(Protocol):
    """Source of randomness producing isotropic unit vectors.

    Any object with a ``sample`` method returning three floats whose vector has
    unit norm can drive the construction of a point set. Tests use this to
    inject fixed, non-random configurations.
    """

    def sample(self) -> Tuple[float, float, float]: ...


class GaussianSphereSampler:
    """Samples the unit sphere by normalizing a 3D standard normal draw.

    The standard normal distribution is rotationally invariant, so its
    direction is uniformly distributed on the sphere (Muller, 1959).
    """

    def __init__(self, random_state: np.random.Generator):
        self.random_state: np.random.Generator = random_state

    def __repr__(self):
        return f"{self.__class__.__name__}(random_state={self.random_state})"

    def sample(self) -> Tuple[float, float, float]:
        while True:
            x, y, z = self.random_state.standard_normal(3)
            norm: float = math.sqrt(x * x + y * y + z * z)
            if norm > 0:
                return (float(x / norm), float(y / norm), float(z / norm))


class MarsagliaSphereSampler:
    """Samples the unit sphere with Marsaglia's (1972) rejection method.

    Draws ``(u, v)`` uniformly from the square [-1, 1]^2 until ``u^2 + v^2 < 1``
    and maps the accepted pair onto the sphere without any trigonometry.
    """

    def __init__(self, random_state: random.Random):
        self.random_state: random.Random = random_state

    def __repr__(self):
        return f"{self.__class__.__name__}(random_state={self.random_state})"

    def sample(self) -> Tuple[float, float, float]:
        while True:
            u: float = self.random_state.uniform(-1.0, 1.0)
            v: float = self.random_state.uniform(-1.0, 1.0)
            s: float = u * u + v * v
            if s < 1.0:
                break
        factor: float = 2.0 * math.sqrt(1.0 - s)
        return (u * factor, v * factor, 1.0 - 2.0 * s)


RandomSource = Union[SphereSampler, np.random.Generator, random.Random, int, None]


def as_sampler(source: RandomSource) -> SphereSampler:
    """Wraps a randomness source into a SphereSampler.

    Args:
        source: An object already implementing ``sample``, a NumPy ``Generator``,
            a stdlib ``random.Random``, an integer seed, or None for fresh
            OS entropy.

    Returns:
        A sampler producing unit vectors from the given source.

    Raises:
        TypeError: If the source type is not supported.
    """
    # random.Random has its own unrelated sample() method, so it is matched first
    if isinstance(source, random.Random):
        return MarsagliaSphereSampler(source)
    if isinstance(source, np.random.Generator):
        return GaussianSphereSampler(source)
    if source is None or isinstance(source, (int, np.integer)):
        return GaussianSphereSampler(np.random.default_rng(source))
    if isinstance(source, SphereSampler):
        return source
    raise TypeError(f"Unsupported randomness source of type {type(source).__name__}.")


def sample_points(num_points: int, source: Optional[RandomSource] = None) -> np.ndarray:
    """Draws ``num_points`` independent points uniformly on the unit sphere.

    Args:
        num_points: Number of points to sample. Zero yields an empty set.
        source: Randomness source, see :func:`as_sampler`.

    Returns:
        A float64 array of shape ``(num_points, 3)`` whose rows have unit norm.

    Raises:
        ValueError: If ``num_points`` is negative.
    """
    if num_points < 0:
        raise ValueError(f"num_points must be non-negative, got {num_points}.")

    sampler: SphereSampler = as_sampler(source)
    points: np.ndarray = np.empty((num_points, 3), dtype=np.float64)
    for i in range(num_points):
        points[i] = sampler.sample()

    if num_points:
        # stub samplers are not trusted to return exact unit vectors
        points /= np.linalg.norm(points, axis=1, keepdims=True)
    return points
