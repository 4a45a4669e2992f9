# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Determinant, adjugate and inverse by cofactor expansion.

All three are O(n!) and meant for small, genuinely sparse matrices. Zero
entries of the expansion row are skipped, which is where sparsity pays off.
"""

import logging

from .errors import NotInvertible, NotSquare
from .store import SparseStore
from .utils import DECIMALS

logger = logging.getLogger(__name__)

# Above this size cofactor expansion is slow enough to be worth a warning.
FACTORIAL_WARN_SIZE = 8


def det(S: SparseStore):
    """
    Determinant of a square store by Laplace expansion along row 0.
    """
    m, n = S.shape
    if m != n:
        raise NotSquare("The determinant is undefined for non-square matrices.")
    if n > FACTORIAL_WARN_SIZE:
        logger.warning("det(): cofactor expansion on a %dx%d matrix is O(n!)", n, n)
    return _expand(S)


def _expand(S: SparseStore):
    n = S.rows
    if n == 0:
        return 1
    if n == 1:
        return S.get(0, 0)
    if n == 2:
        return S.get(0, 0) * S.get(1, 1) - S.get(0, 1) * S.get(1, 0)

    total = 0
    for i, a in S.non_zero_in_row(0):
        minor = S.clone()
        minor.sub_matrix([0], [i])
        total += (-1) ** i * a * _expand(minor)
    return total


def cofactor(S: SparseStore, i: int, j: int):
    """Signed minor (-1)^(i+j) * det(S without row i and column j)."""
    minor = S.clone()
    minor.sub_matrix([i], [j])
    return (-1) ** (i + j) * det(minor)


def adj(S: SparseStore) -> SparseStore:
    """
    Adjugate (classical adjoint) of a square store: the transpose of its
    cofactor matrix.
    """
    m, n = S.shape
    if m != n:
        raise NotSquare("S must be a square matrix")

    C = SparseStore(n, n)
    for i in range(n):
        for j in range(n):
            C.put(i, j, cofactor(S, i, j))
    C.transpose()
    return C


def inverse(S: SparseStore) -> SparseStore:
    """
    Inverse by the adjugate method, adj(S) / det(S).

    Entries are rounded to `DECIMALS` places before being stored, so
    accumulated floating noise collapses to exact zero and is pruned.
    """
    m, n = S.shape
    if m != n:
        raise NotInvertible(f"a {m}x{n} matrix has no inverse")
    d = det(S)
    if d == 0:
        raise NotInvertible("matrix is singular (determinant is zero)")

    logger.debug("inverse(): %d cofactors of size %d", n * n, max(n - 1, 0))
    scaled = adj(S).scale(1 / d)
    result = SparseStore(n, n)
    for r, c, val in scaled.each_non_zero():
        result.put(r, c, round(val, DECIMALS))
    return result
