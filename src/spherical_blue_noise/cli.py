# ===--------------------------------------------------------------------------------------===#
#
# Part of the Spherical Blue Noise Project, under the Apache License v2.0.
# See the LICENSE file for license information.
# SPDX-License-Identifier: Apache-2.0
#
# ===--------------------------------------------------------------------------------------===#
#
# This file implements the command-line interface of the spherical blue noise generator.
#
# ===--------------------------------------------------------------------------------------===#

from typing import Any, Dict, List, Optional

import argparse
import logging
import os
from pathlib import Path
import sys
import time

import numpy as np
import yaml

from spherical_blue_noise.config import RelaxationConfig, config_from_dict, load_config
from spherical_blue_noise.sphere import BlueNoiseSphere
from spherical_blue_noise.utils.io_utils import SUPPORTED_FORMATS, load_points, save_points
from spherical_blue_noise.utils.logging_utils import get_logger
from spherical_blue_noise.utils.stats_utils import summarize


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses command-line arguments.

    Args:
        argv: Arguments to parse, defaults to ``sys.argv[1:]``.

    Returns:
        Parsed arguments with point count, configuration path, output path,
        randomness, resume and logging options.
    """
    parser = argparse.ArgumentParser(
        description="Generate points with a blue noise distribution on the unit sphere."
    )
    parser.add_argument("--num_points", type=int, help="number of points on the sphere.")
    parser.add_argument("--cfg_path", type=str, help="path to .yaml config file.")
    parser.add_argument(
        "--out_path",
        type=str,
        required=True,
        help="file receiving the points, format chosen by suffix (.npy, .csv, .json).",
    )
    parser.add_argument("--seed", type=int, default=None, help="seed of the random generator.")
    parser.add_argument(
        "--num_workers",
        type=int,
        default=None,
        help="threads per relaxation step, defaults to the number of logical CPUs.",
    )
    parser.add_argument(
        "--load_points",
        type=str,
        default=None,
        help="resume the relaxation from a saved point set instead of sampling new points.",
    )
    parser.add_argument(
        "--history_dir",
        type=str,
        default=None,
        help="if set, saves the points after every iteration into this directory.",
    )
    parser.add_argument("--log_file", type=str, default=None, help="optional log file.")
    parser.add_argument("--verbose", action="store_true", help="log every iteration.")

    return parser.parse_args(argv)


def run(
    config: RelaxationConfig,
    out_path: Path,
    seed: Optional[int] = None,
    num_workers: Optional[int] = None,
    init_points: Optional[np.ndarray] = None,
    history_dir: Optional[Path] = None,
    logger: Optional[logging.Logger] = None,
) -> BlueNoiseSphere:
    """Generates a blue noise point set and writes it to ``out_path``.

    Args:
        config: Relaxation parameters.
        out_path: Destination of the final points.
        seed: Seed for the initial white noise, ignored when ``init_points`` is given.
        num_workers: Threads per relaxation step.
        init_points: Optional starting configuration replacing random sampling.
        history_dir: If given, every intermediate point set is saved there as
            ``iter_<k>.npy`` (``iter_0.npy`` being the starting configuration).
        logger: Logger instance for progress messages.

    Returns:
        The relaxed point set.
    """
    logger = logger if logger is not None else logging.getLogger(__name__)

    if init_points is not None:
        sphere: BlueNoiseSphere = BlueNoiseSphere.from_points(init_points)
        logger.info(f"Resuming from {len(sphere)} loaded points.")
    else:
        sphere = BlueNoiseSphere.create_raw(config.num_points, np.random.default_rng(seed))
        logger.info(f"Sampled {len(sphere)} random points (seed={seed}).")

    if history_dir is not None:
        save_points(sphere.particles, history_dir.joinpath("iter_0.npy"))

    start: float = time.perf_counter()
    for iteration, threshold, sphere in sphere.iter_relaxation(
        config.num_iterations,
        config.max_angular_displacement,
        config.angular_displacement_decay,
        max_workers=num_workers,
    ):
        logger.info(
            f"Iteration {iteration}/{config.num_iterations} done"
            f" (angular displacement = {threshold:.6g} rad)."
        )
        if history_dir is not None:
            save_points(sphere.particles, history_dir.joinpath(f"iter_{iteration}.npy"))
    logger.info(f"Relaxation finished in {time.perf_counter() - start:.3f}s.")

    stats: Dict[str, float] = summarize(sphere.particles)
    logger.info(f"Point set statistics: {stats}")

    save_points(sphere.particles, out_path, logger=logger)
    return sphere


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point of the command-line interface.

    Point count and relaxation parameters come from the ``BLUE_NOISE`` section
    of the YAML config, ``--num_points`` overrides it. The optional ``RUNTIME``
    section may provide ``seed`` and ``num_workers`` defaults.

    Returns:
        Process exit code, 0 on success and 1 on invalid input.
    """
    args: Dict[str, Any] = vars(parse_args(argv))
    logger: logging.Logger = get_logger(
        log_path=args["log_file"], level=logging.DEBUG if args["verbose"] else logging.INFO
    )

    if Path(args["out_path"]).suffix not in SUPPORTED_FORMATS:
        print(f"Unsupported output format, expected one of {SUPPORTED_FORMATS}.")
        return 1

    for key in ["cfg_path", "load_points"]:
        if args[key] is not None and not os.path.exists(args[key]):
            print(f"Path {args[key]} not found.")
            return 1

    try:
        config_dict: Dict[str, Any] = load_config(args["cfg_path"]) if args["cfg_path"] else {}
        init_points: Optional[np.ndarray] = (
            load_points(args["load_points"]) if args["load_points"] else None
        )
        num_points: Optional[int] = args["num_points"]
        if num_points is None and init_points is not None:
            num_points = len(init_points)
        config: RelaxationConfig = config_from_dict(config_dict, num_points=num_points)
    except (ValueError, OSError, yaml.YAMLError) as err:
        print(str(err))
        return 1

    if init_points is not None and len(init_points) != config.num_points:
        print(
            f"Loaded {len(init_points)} points but the configuration asks for"
            f" {config.num_points}."
        )
        return 1

    runtime: Dict[str, Any] = config_dict.get("RUNTIME", None) or {}
    seed: Optional[int] = args["seed"] if args["seed"] is not None else runtime.get("seed", None)
    num_workers: Optional[int] = (
        args["num_workers"] if args["num_workers"] is not None else runtime.get("num_workers", None)
    )
    history_dir: Optional[Path] = Path(args["history_dir"]) if args["history_dir"] else None

    logger.info(f"Starting relaxation with config = {config}")
    try:
        run(
            config,
            Path(args["out_path"]),
            seed=seed,
            num_workers=num_workers,
            init_points=init_points,
            history_dir=history_dir,
            logger=logger,
        )
    except ValueError as err:
        logger.error(str(err))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
