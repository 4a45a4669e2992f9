# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging
import numbers
from typing import List, Optional, Tuple

from .store import Axis, SparseStore
from .utils import EPS, is_zero

logger = logging.getLogger(__name__)


def scale_tol(S: SparseStore) -> float:
    """Return EPS times the largest absolute row sum of S."""
    return EPS * S.norm_inf()


def is_exact(S: SparseStore) -> bool:
    """True when every stored value is an integer or a rational such as Fraction."""
    return all(isinstance(v, numbers.Rational) for _r, _c, v in S.each_non_zero())


def _bareiss_step(a, b, previous):
    # The division is exact, keep integers as integers.
    if isinstance(a, int) and isinstance(b, int) and isinstance(previous, int):
        return (a - b) // previous
    return (a - b) / previous


def forward_eliminate(
    S: SparseStore, tol: Optional[float] = None
) -> Tuple[SparseStore, List[int], List[int]]:
    """
    Fraction-free (Bareiss) row-echelon reduction with partial pivoting.

    Parameters
    ----------
    S : SparseStore              (m, n)
        Input matrix; it is cloned and never modified.
    tol : float | None
        Entries at or below ``tol * |previous pivot|`` are not used as pivots.
        Bareiss entries after k steps are k+1 minors, so the threshold follows
        the previous pivot rather than staying fixed. Defaults to 0 for exact
        input (ints, Fractions) and to `scale_tol(S)` otherwise.

    Returns
    -------
    U      : SparseStore         (m, n)
        Row-echelon form of S (upper-trapezoidal, not reduced).
    pivots : list[int]
        Column indices where pivots were placed; len = rank(S).
    perm   : list[int]
        Final row order: row i of U comes from original row perm[i].
    """
    U = S.clone()
    m, n = U.shape
    if tol is None:
        tol = 0 if is_exact(U) else scale_tol(U)

    perm = list(range(m))
    pivots: List[int] = []

    previous = 1
    row = 0
    for col in range(n):
        if row == m:
            break
        pivot_tol = tol * abs(previous)
        # First row at or below `row` with a usable entry in this column.
        pivot_row = next(
            (i for i in range(row, m) if not is_zero(U.get(i, col), pivot_tol)),
            None,
        )
        if pivot_row is None:
            continue  # no pivot here, same pivot row, next column

        if pivot_row != row:
            U.row_switch(row, pivot_row, Axis.ROW)
            perm[row], perm[pivot_row] = perm[pivot_row], perm[row]

        pivot = U.get(row, col)
        for i in range(row + 1, m):
            factor = U.get(i, col)
            for j in range(col + 1, n):
                U.put(
                    i, j, _bareiss_step(pivot * U.get(i, j), factor * U.get(row, j), previous)
                )
            U.put(i, col, 0)

        logger.debug("pivot %r at (%d, %d)", pivot, row, col)
        pivots.append(col)
        previous = pivot
        row += 1

    return U, pivots, perm


def rank_elimination(S: SparseStore, tol: Optional[float] = None) -> int:
    """Matrix rank is the number of pivot columns"""
    pivots = forward_eliminate(S, tol)[1]
    return len(pivots)
