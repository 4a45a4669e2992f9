# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

from typing import Optional

import numpy as np

EPS: float = 1e-12

# Inverse entries are rounded to this many places before being stored.
DECIMALS: int = 10


def is_zero(value, tol: float = EPS) -> bool:
    """True if `value` is zero up to an absolute tolerance."""
    return abs(value) <= tol


def close(a, b, decimals: int = DECIMALS) -> bool:
    """Equality after rounding the difference to `decimals` places."""
    return round(a - b, decimals) == 0


def random_dense(
    rows: int,
    columns: int,
    low: int = 0,
    high: int = 10,
    density: float = 1.0,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    Build an integer matrix with entries drawn from [low, high).

    Cells are kept with probability `density`, the rest are zeroed, which
    makes it easy to produce genuinely sparse fixtures.

    Returns
    -------
    Matrix with int64 dtype
    """
    if rng is None:
        rng = np.random.default_rng(seed)
    A = rng.integers(low, high, size=(rows, columns))
    if density < 1.0:
        mask = rng.uniform(size=(rows, columns)) < density
        A = np.where(mask, A, 0)
    return np.asarray(A)
