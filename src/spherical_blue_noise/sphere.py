# ===--------------------------------------------------------------------------------------===#
#
# Part of the Spherical Blue Noise Project, under the Apache License v2.0.
# See the LICENSE file for license information.
# SPDX-License-Identifier: Apache-2.0
#
# ===--------------------------------------------------------------------------------------===#
#
# This file implements the blue noise point set and its relaxation driver.
#
# The points start as white noise on the sphere. Each point is then treated as a
# charged particle repelled by all the others, and is repeatedly rotated a small,
# decaying angle along the direction it is pushed. Over time the particles settle
# into an equilibrium resembling blue noise. Every step costs O(N^2).
#
# Based on: Wong, Kin-Ming and Wong, Tien-Tsin. "Spherical Blue Noise",
# Pacific Graphics Short Papers, 2018.
#
# ===--------------------------------------------------------------------------------------===#

from typing import Iterator, List, Optional, Tuple

import logging
import math
import numbers

import numpy as np

from spherical_blue_noise.config import RelaxationConfig
from spherical_blue_noise.forces import relax
from spherical_blue_noise.sampler import RandomSource, sample_points

Point = Tuple[float, float, float]

logger: logging.Logger = logging.getLogger(__name__)


def threshold_schedule(
    num_iterations: int, max_angular_displacement: float, angular_displacement_decay: float
) -> Iterator[float]:
    """Yields the angular displacement of every relaxation step.

    The sequence is ``theta, theta * d, theta * d^2, ..., theta * d^(K - 1)``.

    Raises:
        ValueError: If any parameter is out of range.
    """
    if isinstance(num_iterations, bool) or not isinstance(num_iterations, numbers.Integral):
        raise ValueError(f"num_iterations must be an integer, got {num_iterations!r}.")
    if num_iterations < 0:
        raise ValueError(f"num_iterations must be non-negative, got {num_iterations}.")
    if not math.isfinite(max_angular_displacement) or max_angular_displacement < 0:
        raise ValueError(
            "max_angular_displacement must be finite and non-negative,"
            f" got {max_angular_displacement}."
        )
    if not 0 < angular_displacement_decay <= 1:
        raise ValueError(
            f"angular_displacement_decay must lie in (0, 1], got {angular_displacement_decay}."
        )

    threshold: float = max_angular_displacement
    for _ in range(num_iterations):
        yield threshold
        threshold *= angular_displacement_decay


class BlueNoiseSphereIterator:
    """One-shot iterator over the points of a BlueNoiseSphere.

    Points are popped from the end of an internal buffer, so they come out in
    reverse of the sphere's internal order. Once exhausted it stays exhausted;
    iterate the sphere again to get a fresh iterator.
    """

    def __init__(self, points: List[Point]):
        self.points: List[Point] = points

    def __iter__(self) -> "BlueNoiseSphereIterator":
        return self

    def __next__(self) -> Point:
        if not self.points:
            raise StopIteration
        return self.points.pop()

    def __len__(self) -> int:
        return len(self.points)


class BlueNoiseSphere:
    """Points on the unit sphere that form blue noise.

    Instances are immutable: the point array is read-only and every relaxation
    step returns a new instance. Points are obtained by iterating, which yields
    ``(x, y, z)`` float tuples::

        points = list(BlueNoiseSphere.create(16, np.random.default_rng()))
    """

    def __init__(self, particles: np.ndarray):
        """Stores a read-only copy of an array of unit vectors, without validating it.

        Use :meth:`from_points` for untrusted input.
        """
        self._particles: np.ndarray = np.array(particles, dtype=np.float64)
        self._particles.flags.writeable = False

    def __repr__(self):
        return f"{self.__class__.__name__}(num_points={len(self)})"

    def __len__(self) -> int:
        return len(self._particles)

    def __iter__(self) -> BlueNoiseSphereIterator:
        return BlueNoiseSphereIterator([tuple(float(c) for c in p) for p in self._particles])

    @property
    def particles(self) -> np.ndarray:
        """Read-only ``(N, 3)`` view of the points."""
        return self._particles

    def to_array(self) -> np.ndarray:
        """Returns a writable copy of the points."""
        return self._particles.copy()

    @classmethod
    def create(cls, num_points: int, rng: RandomSource = None) -> "BlueNoiseSphere":
        """Creates blue noise with the default parameters.

        Runs 16 iterations starting from an angle of ``0.99938357^N / 4 + 0.01``
        radians, decayed by 0.8 after every iteration.
        """
        return cls.create_from_config(RelaxationConfig.default(num_points), rng)

    @classmethod
    def create_with_params(
        cls,
        rng: RandomSource,
        num_points: int,
        num_iterations: int,
        max_angular_displacement: float,
        angular_displacement_decay: float,
        max_workers: Optional[int] = None,
    ) -> "BlueNoiseSphere":
        """Creates blue noise with explicit parameters.

        Args:
            rng: Randomness source for the initial white noise.
            num_points: Number of points on the sphere.
            num_iterations: Number of relaxation steps. More is slower and better.
            max_angular_displacement: The "starting speed" (radians) of the points.
            angular_displacement_decay: Ratio by which the speed decays after each
                step. A bigger ratio needs fewer iterations but leaves more
                randomness in the pattern, as points may vibrate rather than
                settle.
            max_workers: Optional number of threads per relaxation step.
        """
        return cls.create_raw(num_points, rng).advance_multiple(
            num_iterations,
            max_angular_displacement,
            angular_displacement_decay,
            max_workers=max_workers,
        )

    @classmethod
    def create_from_config(
        cls,
        config: RelaxationConfig,
        rng: RandomSource = None,
        max_workers: Optional[int] = None,
    ) -> "BlueNoiseSphere":
        return cls.create_with_params(
            rng,
            config.num_points,
            config.num_iterations,
            config.max_angular_displacement,
            config.angular_displacement_decay,
            max_workers=max_workers,
        )

    @classmethod
    def create_raw(cls, num_points: int, rng: RandomSource = None) -> "BlueNoiseSphere":
        """Creates uniformly random (white noise) points without any relaxation.

        Call :meth:`advance` or :meth:`advance_multiple` to turn them into blue noise.
        """
        return cls(sample_points(num_points, rng))

    @classmethod
    def from_points(cls, points: np.ndarray) -> "BlueNoiseSphere":
        """Creates a point set from existing vectors, e.g. to resume a relaxation.

        The vectors are copied and normalized.

        Raises:
            ValueError: If ``points`` is not of shape ``(N, 3)`` or contains
                zero-length or non-finite vectors.
        """
        particles: np.ndarray = np.array(points, dtype=np.float64)
        if particles.size == 0:
            return cls(np.empty((0, 3), dtype=np.float64))
        if particles.ndim != 2 or particles.shape[1] != 3:
            raise ValueError(f"Expected points of shape (N, 3), got {particles.shape}.")
        norms: np.ndarray = np.linalg.norm(particles, axis=1)
        if not np.all(np.isfinite(norms)) or np.any(norms == 0):
            raise ValueError("Points must be finite, non-zero vectors.")
        return cls(particles / norms[:, None])

    def advance(
        self, max_angular_displacement: float, max_workers: Optional[int] = None
    ) -> "BlueNoiseSphere":
        """Runs one relaxation step.

        Every point is rotated by ``max_angular_displacement`` radians toward
        the direction in which the other points push it. A point with no
        defined push direction stays where it is.

        Returns:
            A new BlueNoiseSphere, this one is left untouched.
        """
        return BlueNoiseSphere(relax(self._particles, max_angular_displacement, max_workers))

    def advance_multiple(
        self,
        num_iterations: int,
        max_angular_displacement: float,
        angular_displacement_decay: float,
        max_workers: Optional[int] = None,
    ) -> "BlueNoiseSphere":
        """Runs ``num_iterations`` relaxation steps with a geometrically decaying angle.

        Zero iterations return this point set unchanged.
        """
        sphere: BlueNoiseSphere = self
        for _, _, sphere in self.iter_relaxation(
            num_iterations,
            max_angular_displacement,
            angular_displacement_decay,
            max_workers=max_workers,
        ):
            pass
        return sphere

    def iter_relaxation(
        self,
        num_iterations: int,
        max_angular_displacement: float,
        angular_displacement_decay: float,
        max_workers: Optional[int] = None,
    ) -> Iterator[Tuple[int, float, "BlueNoiseSphere"]]:
        """Yields ``(iteration, threshold, sphere)`` after each relaxation step.

        Useful to record intermediate states, e.g. to animate the convergence.
        ``iteration`` counts from 1 and ``threshold`` is the angle that was
        applied in that step.
        """
        sphere: BlueNoiseSphere = self
        for iteration, threshold in enumerate(
            threshold_schedule(
                num_iterations, max_angular_displacement, angular_displacement_decay
            ),
            start=1,
        ):
            logger.debug(
                "Iteration %d/%d with angular displacement %.6g.",
                iteration,
                num_iterations,
                threshold,
            )
            sphere = sphere.advance(threshold, max_workers=max_workers)
            yield iteration, threshold, sphere


def blue_noise_points(num_points: int, seed: Optional[int] = None) -> List[Point]:
    """Returns ``num_points`` blue noise points as ``(x, y, z)`` tuples, default parameters."""
    return list(BlueNoiseSphere.create(num_points, np.random.default_rng(seed)))
