# ===--------------------------------------------------------------------------------------===#
#
# Part of the Spherical Blue Noise Project, under the Apache License v2.0.
# See the LICENSE file for license information.
# SPDX-License-Identifier: Apache-2.0
#
# ===--------------------------------------------------------------------------------------===#
#
# This file implements the relaxation parameters and their YAML configuration.
#
# ===--------------------------------------------------------------------------------------===#

from typing import Any, Dict, Optional

from dataclasses import dataclass
import math
import numbers
import pathlib

import yaml

DEFAULT_NUM_ITERATIONS: int = 16
DEFAULT_DECAY: float = 0.8
DENSITY_BASE: float = 0.99938357


def default_max_angular_displacement(num_points: int) -> float:
    """Empirical starting step size: denser point sets start with smaller steps."""
    return DENSITY_BASE**num_points / 4.0 + 0.01


@dataclass(frozen=True)
class RelaxationConfig:
    """Parameters of the blue noise relaxation.

    Attributes:
        num_points: Number of points on the sphere.
        num_iterations: Number of relaxation steps.
        max_angular_displacement: Rotation angle (radians) of the first step.
        angular_displacement_decay: Ratio applied to the angle after every step.
            Larger ratios converge in fewer iterations but leave the points
            "vibrating" instead of settling.
    """

    num_points: int
    num_iterations: int = DEFAULT_NUM_ITERATIONS
    max_angular_displacement: Optional[float] = None
    angular_displacement_decay: float = DEFAULT_DECAY

    def __post_init__(self):
        for name in ["num_points", "num_iterations"]:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise ValueError(f"{name} must be an integer, got {value!r}.")
        for name in ["max_angular_displacement", "angular_displacement_decay"]:
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise ValueError(f"{name} must be a number, got {value!r}.")
        if self.max_angular_displacement is None:
            object.__setattr__(
                self,
                "max_angular_displacement",
                default_max_angular_displacement(self.num_points),
            )
        if self.num_points < 0:
            raise ValueError(f"num_points must be non-negative, got {self.num_points}.")
        if self.num_iterations < 0:
            raise ValueError(f"num_iterations must be non-negative, got {self.num_iterations}.")
        if not math.isfinite(self.max_angular_displacement) or self.max_angular_displacement < 0:
            raise ValueError(
                "max_angular_displacement must be finite and non-negative,"
                f" got {self.max_angular_displacement}."
            )
        if not 0 < self.angular_displacement_decay <= 1:
            raise ValueError(
                "angular_displacement_decay must lie in (0, 1],"
                f" got {self.angular_displacement_decay}."
            )

    @classmethod
    def default(cls, num_points: int) -> "RelaxationConfig":
        """16 iterations, density-scaled starting angle and a decay of 0.8."""
        return cls(num_points=num_points)


def config_from_dict(
    config: Dict[str, Any], num_points: Optional[int] = None
) -> RelaxationConfig:
    """Builds a RelaxationConfig from the ``BLUE_NOISE`` section of a parsed config.

    Keys missing from the section keep their dataclass defaults. A threshold
    left unset is derived from the final point count.

    Args:
        config: Parsed configuration dictionary.
        num_points: Optional override for ``num_points`` (e.g. from the CLI).

    Returns:
        The validated relaxation configuration.

    Raises:
        ValueError: If no point count is given or a value is out of range.
    """
    section: Dict[str, Any] = config.get("BLUE_NOISE", None) or {}
    if not isinstance(section, dict):
        raise ValueError("The BLUE_NOISE section must be a mapping.")
    unknown = set(section) - set(RelaxationConfig.__dataclass_fields__)
    if unknown:
        raise ValueError(f"Unknown BLUE_NOISE options: {sorted(unknown)}.")

    if num_points is None:
        num_points = section.get("num_points", None)
    if num_points is None:
        raise ValueError("num_points must be given in the config or as an argument.")

    return RelaxationConfig(
        **{
            field: section.get(field, RelaxationConfig.__dataclass_fields__[field].default)
            for field in RelaxationConfig.__dataclass_fields__
            if field != "num_points"
        },
        num_points=num_points,
    )


def load_config(path: str | pathlib.Path) -> Dict[str, Any]:
    """Reads a YAML configuration file, an empty file yields an empty dict."""
    with open(path, "r") as f:
        config: Optional[Dict[str, Any]] = yaml.safe_load(f)
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(
            f"Expected a mapping at the top of '{path}', got {type(config).__name__}."
        )
    return config
