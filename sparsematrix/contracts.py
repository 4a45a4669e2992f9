# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Runtime contract checking for `SparseMatrix`.

Every check works on `SparseStore` values directly so that verifying an
operation never re-enters a checked facade method. The invariant battery
rebuilds the dense equivalent and a random perturbation matrix on every
call, so it is O(rows * columns) at best. Enable it only while debugging.
"""

import logging
from typing import Optional

import numpy as np

from .errors import ContractViolation
from .store import Axis, SparseStore
from .utils import DECIMALS, close, random_dense

logger = logging.getLogger(__name__)

DEFAULT_SEED = 0

# Scalar used for the add-then-subtract invariant.
PERTURBATION_SCALAR = 5


def stores_close(a: SparseStore, b: SparseStore, decimals: int = DECIMALS) -> bool:
    """Same shape and every cell equal after rounding the difference."""
    if a.shape != b.shape:
        return False
    cells = {(r, c) for r, c, _v in a.each_non_zero()}
    cells.update((r, c) for r, c, _v in b.each_non_zero())
    return all(close(a.get(r, c), b.get(r, c), decimals) for r, c in cells)


class ContractChecker:
    """
    Pre-condition, post-condition and invariant assertions.

    Parameters
    ----------
    rng : np.random.Generator | None
        Source for the perturbation matrix used by the invariants. A
        generator seeded with `DEFAULT_SEED` is used when omitted, so runs
        are reproducible.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None) -> None:
        self.rng = rng if rng is not None else np.random.default_rng(DEFAULT_SEED)

    # ------------------------------------------------------------------
    # Assertions
    # ------------------------------------------------------------------
    def require(self, condition, name: str, expected=True, actual=False, detail: str = ""):
        if not condition:
            logger.debug("%s failed: %s", name, detail)
            raise ContractViolation(name, expected, actual, detail)

    def require_equal(self, expected, actual, name: str, detail: str = ""):
        self.require(expected == actual, name, expected, actual, detail)

    def require_dense_close(
        self, expected, actual, name: str, detail: str = "", decimals: int = DECIMALS
    ):
        """Compare two dense grids cell by cell within `decimals` places."""
        expected = np.asarray(expected)
        actual = np.asarray(actual)
        self.require_equal(expected.shape, actual.shape, name, detail + ": shape")
        for want_row, got_row in zip(expected.tolist(), actual.tolist()):
            for want, got in zip(want_row, got_row):
                if not close(want, got, decimals):
                    raise ContractViolation(name, expected, actual, detail)

    def require_dense_within(self, expected, actual, atol: float, name: str, detail: str = ""):
        """Compare two dense grids cell by cell with an absolute tolerance."""
        expected = np.asarray(expected)
        actual = np.asarray(actual)
        self.require_equal(expected.shape, actual.shape, name, detail + ": shape")
        worst = float(np.max(np.abs(expected - actual), initial=0.0))
        self.require(worst <= atol, name, expected, actual, f"{detail}, off by {worst:g}")

    def require_in_bounds(self, store: SparseStore, row: int, col: int):
        self.require(
            store.within_bounds(row, col),
            "pre-condition",
            f"index in [0, {store.rows}) x [0, {store.columns})",
            (row, col),
            "index in bounds",
        )

    # ------------------------------------------------------------------
    # Structural invariants
    # ------------------------------------------------------------------
    def check_invariants(self, store: SparseStore) -> None:
        logger.debug("checking invariants of %r", store)
        rows, columns = store.shape
        dense = store.to_dense().tolist()

        # The store holds exactly the non-zero cells of the dense matrix.
        nonzeros = sum(1 for values in dense for v in values if v != 0)
        self.require_equal(nonzeros, store.entry_count, "invariant", "entry count")

        for r, c, val in store.each_non_zero():
            self.require(val != 0, "invariant", "non-zero", val, f"stored zero at ({r}, {c})")
            self.require(
                store.within_bounds(r, c),
                "invariant",
                store.shape,
                (r, c),
                "stored index in bounds",
            )

        # Indexing starts at (0, 0), not (1, 1).
        if rows and columns:
            self.require_equal(dense[0][0], store.get(0, 0), "invariant", "origin")

        twice = store.clone()
        twice.transpose()
        twice.transpose()
        self.require_equal(store, twice, "invariant", "transpose of transpose")

        k = PERTURBATION_SCALAR
        shifted = store.add_scalar(k).sub_scalar(k)
        self.require(stores_close(store, shifted), "invariant", store, shifted, "S + k - k")

        noise = SparseStore.from_dense(random_dense(rows, columns, rng=self.rng))
        there_and_back = store.add_matrix(noise).subtract_matrix(noise)
        self.require(
            stores_close(store, there_and_back), "invariant", store, there_and_back, "S + T - T"
        )
        back_and_there = store.subtract_matrix(noise).add_matrix(noise)
        self.require(
            stores_close(store, back_and_there), "invariant", store, back_and_there, "S - T + T"
        )

        if rows >= 2:
            switched = store.clone()
            switched.row_switch(0, rows - 1, Axis.ROW)
            switched.row_switch(0, rows - 1, Axis.ROW)
            self.require_equal(store, switched, "invariant", "row switch twice")

        for flip in ("flip_horizontal", "flip_vertical"):
            mirrored = store.clone()
            getattr(mirrored, flip)()
            getattr(mirrored, flip)()
            self.require_equal(store, mirrored, "invariant", f"{flip} twice")

        if store.is_square:
            for turns in ((0, 0, 0, 0), (1, 1), (2, 0)):
                rotated = store.clone()
                for t in turns:
                    rotated.rotate(t)
                self.require_equal(store, rotated, "invariant", f"rotations {turns}")
