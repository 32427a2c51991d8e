# ===--------------------------------------------------------------------------------------===#
#
# Part of the Spherical Blue Noise Project, under the Apache License v2.0.
# See the LICENSE file for license information.
# SPDX-License-Identifier: Apache-2.0
#
# ===--------------------------------------------------------------------------------------===#

"""Unit tests for the blue noise point set and its relaxation driver."""

import math
import random
from typing import List, Tuple

import numpy as np
import pytest

from spherical_blue_noise.sphere import BlueNoiseSphere, blue_noise_points, threshold_schedule
from spherical_blue_noise.utils.stats_utils import pairwise_angles, summarize


class _FixedSampler:
    """Stub randomness source returning a fixed list of points in order."""

    def __init__(self, points: List[Tuple[float, float, float]]):
        self.points = list(points)
        self.idx = 0

    def sample(self) -> Tuple[float, float, float]:
        point = self.points[self.idx]
        self.idx += 1
        return point


def _equator(*degrees: float) -> _FixedSampler:
    return _FixedSampler(
        [(math.cos(math.radians(d)), math.sin(math.radians(d)), 0.0) for d in degrees]
    )


def _norms(sphere: BlueNoiseSphere) -> np.ndarray:
    return np.linalg.norm(sphere.particles, axis=1)


def test_points_stay_on_unit_sphere_at_every_stage():
    raw = BlueNoiseSphere.create_raw(50, np.random.default_rng(0))
    assert np.allclose(_norms(raw), 1.0, atol=1e-5)

    for _, _, sphere in raw.iter_relaxation(5, 0.2, 0.8):
        assert np.allclose(_norms(sphere), 1.0, atol=1e-5)

    for x, y, z in BlueNoiseSphere.create(50, np.random.default_rng(0)):
        assert math.sqrt(x * x + y * y + z * z) == pytest.approx(1.0, abs=1e-5)


@pytest.mark.parametrize("num_points", [0, 1, 2, 7])
def test_point_count_is_preserved(num_points):
    raw = BlueNoiseSphere.create_raw(num_points, np.random.default_rng(3))
    relaxed = raw.advance_multiple(3, 0.1, 0.8)

    assert len(raw) == num_points
    assert len(relaxed) == num_points
    assert len(list(relaxed)) == num_points


def test_zero_iterations_is_identity():
    sphere = BlueNoiseSphere.create_raw(25, np.random.default_rng(4))

    same = sphere.advance_multiple(0, 0.3, 0.8)

    assert np.array_equal(same.particles, sphere.particles)


def test_threshold_schedule_decays_geometrically():
    thresholds = list(threshold_schedule(4, 0.1, 0.5))

    assert thresholds == pytest.approx([0.1, 0.05, 0.025, 0.0125])
    assert all(a > b for a, b in zip(thresholds, thresholds[1:]))
    assert list(threshold_schedule(0, 0.1, 0.5)) == []


@pytest.mark.parametrize(
    "args",
    [
        (-1, 0.1, 0.8),
        (3, -0.1, 0.8),
        (3, 0.1, 0.0),
        (3, 0.1, 1.5),
        (2.5, 0.1, 0.8),
        (True, 0.1, 0.8),
        (3, math.inf, 0.8),
        (3, math.nan, 0.8),
    ],
)
def test_threshold_schedule_rejects_invalid_parameters(args):
    with pytest.raises(ValueError):
        list(threshold_schedule(*args))


def test_iter_relaxation_applies_schedule():
    sphere = BlueNoiseSphere.create_raw(10, np.random.default_rng(5))

    steps = list(sphere.iter_relaxation(3, 0.2, 0.5))

    assert [iteration for iteration, _, _ in steps] == [1, 2, 3]
    assert [threshold for _, threshold, _ in steps] == pytest.approx([0.2, 0.1, 0.05])
    assert np.array_equal(
        steps[-1][2].particles, sphere.advance_multiple(3, 0.2, 0.5).particles
    )


def test_same_randomness_gives_same_points():
    a = BlueNoiseSphere.create_with_params(np.random.default_rng(7), 30, 5, 0.1, 0.8)
    b = BlueNoiseSphere.create_with_params(np.random.default_rng(7), 30, 5, 0.1, 0.8)
    c = BlueNoiseSphere.create_with_params(random.Random(7), 30, 5, 0.1, 0.8)
    d = BlueNoiseSphere.create_with_params(random.Random(7), 30, 5, 0.1, 0.8)

    assert np.array_equal(a.particles, b.particles)
    assert np.array_equal(c.particles, d.particles)


def test_create_uses_default_parameters():
    default = BlueNoiseSphere.create(20, np.random.default_rng(1))
    explicit = BlueNoiseSphere.create_with_params(
        np.random.default_rng(1), 20, 16, 0.99938357**20 / 4 + 0.01, 0.8
    )

    assert np.array_equal(default.particles, explicit.particles)


def test_empty_point_set():
    assert list(BlueNoiseSphere.create(0, np.random.default_rng(0))) == []


def test_single_point_never_moves():
    sphere = BlueNoiseSphere.create_raw(1, np.random.default_rng(9))

    relaxed = sphere.advance_multiple(10, 0.5, 0.9)

    assert np.array_equal(relaxed.particles, sphere.particles)


def test_antipodal_pair_is_unmoved():
    sphere = BlueNoiseSphere.create_raw(2, _FixedSampler([(0.0, 0.0, 1.0), (0.0, 0.0, -1.0)]))

    stepped = sphere.advance(0.1)

    assert np.array_equal(stepped.particles, sphere.particles)


def test_triangle_converges_to_equal_spacing():
    sphere = BlueNoiseSphere.create_raw(3, _equator(0.0, 100.0, 220.0))

    relaxed = sphere.advance_multiple(50, 0.1, 0.9)

    angles = pairwise_angles(relaxed.particles)[np.triu_indices(3, k=1)]
    assert angles.tolist() == pytest.approx([2 * math.pi / 3] * 3, abs=1e-2)


def test_relaxation_spreads_points_more_evenly():
    raw = BlueNoiseSphere.create_raw(100, np.random.default_rng(11))
    relaxed = raw.advance_multiple(16, 0.99938357**100 / 4 + 0.01, 0.8)

    raw_stats = summarize(raw.particles)
    relaxed_stats = summarize(relaxed.particles)

    assert relaxed_stats["min_nn_angle"] > raw_stats["min_nn_angle"]
    assert relaxed_stats["nn_cv"] < raw_stats["nn_cv"]


def test_iteration_is_reversed_and_one_shot():
    sphere = BlueNoiseSphere.from_points(np.eye(3))

    it = iter(sphere)

    assert list(it) == [(0.0, 0.0, 1.0), (0.0, 1.0, 0.0), (1.0, 0.0, 0.0)]
    assert list(it) == []
    assert len(list(sphere)) == 3


def test_points_are_immutable():
    sphere = BlueNoiseSphere.create_raw(5, np.random.default_rng(2))
    before = sphere.to_array()

    with pytest.raises(ValueError):
        sphere.particles[0, 0] = 2.0
    sphere.advance(0.3)

    assert np.array_equal(sphere.particles, before)


def test_constructor_does_not_share_caller_array():
    points = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])

    sphere = BlueNoiseSphere(points)
    points[0] = [0.0, 0.0, 1.0]

    assert points.flags.writeable
    assert np.array_equal(sphere.particles[0], [1.0, 0.0, 0.0])
    assert not sphere.particles.flags.writeable


def test_from_points_normalizes_and_validates():
    sphere = BlueNoiseSphere.from_points([[2.0, 0.0, 0.0], [0.0, 0.0, -5.0]])
    assert np.array_equal(sphere.particles, np.array([[1.0, 0.0, 0.0], [0.0, 0.0, -1.0]]))
    assert len(BlueNoiseSphere.from_points([])) == 0

    with pytest.raises(ValueError):
        BlueNoiseSphere.from_points([[1.0, 0.0]])
    with pytest.raises(ValueError):
        BlueNoiseSphere.from_points([[0.0, 0.0, 0.0]])


def test_blue_noise_points_returns_float_triples():
    points = blue_noise_points(10, seed=1)

    assert len(points) == 10
    assert all(isinstance(c, float) for point in points for c in point)
