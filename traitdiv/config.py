from __future__ import annotations

import os

import numpy as np

np.seterr(invalid="ignore")


def check_quiet() -> bool:
    """Check whether to enable quiet mode."""
    if "TRAITDIV_QUIET_MODE" in os.environ:
        if os.environ["TRAITDIV_QUIET_MODE"].lower() in ["true", "1"]:
            return True
    return False


QUIET_MODE: bool = check_quiet()


# tolerance for symmetry, zero diagonals, weights summing to unity, and vanishing dispersion
ZERO_TOL: float = 1e-8
# for all_close equality checks
ATOL: float = 0.001
RTOL: float = 0.0001
# fastmath flags
FASTMATH: set[str] = {"ninf", "nsz", "arcp", "contract", "afn", "reassoc"}
