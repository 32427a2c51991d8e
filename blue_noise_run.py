# ===--------------------------------------------------------------------------------------===#
#
# Part of the Spherical Blue Noise Project, under the Apache License v2.0.
# See the LICENSE file for license information.
# SPDX-License-Identifier: Apache-2.0
#
# ===--------------------------------------------------------------------------------------===#
#
# This file implements the entry point script of the spherical blue noise generator.
#
# ===--------------------------------------------------------------------------------------===#

import sys
from spherical_blue_noise.cli import main

if __name__ == "__main__":
    sys.exit(main())
