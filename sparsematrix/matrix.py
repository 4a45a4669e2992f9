# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
User-facing sparse matrix.

`SparseMatrix` owns one `SparseStore` and forwards to it. Apart from `put`
every operation clones the store, transforms the clone and hands back a
new `SparseMatrix`, so two matrices never share storage.

With ``contract_checking=True`` each call also verifies its pre-conditions,
its post-conditions against a dense recomputation, and the invariant
battery in `contracts`. That is expensive and off by default.
"""

import logging
import numbers
import operator
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Optional, Tuple, Union

import numpy as np

from .contracts import ContractChecker
from .elimination import rank_elimination
from .errors import InvalidArgument
from .matrix_functions import det, inverse
from .store import Axis, SparseStore, row_operation
from .utils import DECIMALS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Scalar:
    value: Any


@dataclass(frozen=True)
class MatrixLike:
    store: SparseStore


Operand = Union[Scalar, MatrixLike]


def resolve_operand(other) -> Operand:
    """
    Classify the right-hand side of an arithmetic call once, up front.

    Sparse matrices, sparse stores and 2-d ndarrays are matrices; numbers
    (including numpy scalars and Fractions) are scalars.
    """
    if isinstance(other, SparseMatrix):
        return MatrixLike(other._store)
    if isinstance(other, SparseStore):
        return MatrixLike(other)
    if isinstance(other, np.ndarray):
        if other.ndim == 0:
            return Scalar(other.item())
        return MatrixLike(SparseStore.from_dense(other))
    if isinstance(other, numbers.Number):
        return Scalar(other)
    raise InvalidArgument(f"not a sparse matrix object or scalar: {type(other).__name__}")


class SparseMatrix:
    """
    Sparse matrix value type.

    Parameters
    ----------
    store : SparseStore
        Storage to take ownership of. Callers must not keep using it.
    contract_checking : bool
        Verify pre/post-conditions and invariants on every call.
    rng : np.random.Generator | None
        Seeded source for the invariant checks; see `ContractChecker`.
    """

    # Make numpy defer to our reflected operators (ndarray + SparseMatrix).
    __array_ufunc__ = None

    def __init__(
        self,
        store: SparseStore,
        contract_checking: bool = False,
        rng: Optional[np.random.Generator] = None,
        *,
        checker: Optional[ContractChecker] = None,
    ) -> None:
        if not isinstance(store, SparseStore):
            raise InvalidArgument("Not a proper store")
        self._store = store
        if checker is None and contract_checking:
            logger.debug("contract checking enabled for %r", store)
            checker = ContractChecker(rng)
        self._checker = checker

    @classmethod
    def identity(cls, n: int, **kwargs) -> "SparseMatrix":
        return cls(SparseStore.identity(n), **kwargs)

    def _wrap(self, store: SparseStore) -> "SparseMatrix":
        return SparseMatrix(store, checker=self._checker)

    @property
    def contract_checking(self) -> bool:
        return self._checker is not None

    @property
    def store(self) -> SparseStore:
        """A copy of the underlying store."""
        return self._store.clone()

    # ------------------------------------------------------------------
    # Shape and element access
    # ------------------------------------------------------------------
    @property
    def rows(self) -> int:
        return self._store.rows

    @property
    def columns(self) -> int:
        return self._store.columns

    @property
    def shape(self) -> Tuple[int, int]:
        return self._store.shape

    @property
    def entry_count(self) -> int:
        """Number of stored (non-zero) entries."""
        return self._store.entry_count

    def within_bounds(self, row: int, col: int) -> bool:
        return self._store.within_bounds(row, col)

    def get(self, row: int, col: int):
        return self._store.get(row, col)

    def __getitem__(self, index):
        if not isinstance(index, tuple) or len(index) != 2:
            raise InvalidArgument("index must be a (row, col) pair")
        return self._store.get(*index)

    def __setitem__(self, index, value) -> None:
        if not isinstance(index, tuple) or len(index) != 2:
            raise InvalidArgument("index must be a (row, col) pair")
        self.put(index[0], index[1], value)

    def put(self, row: int, col: int, value) -> None:
        """Write `value` in place. This is the only mutating operation."""
        c = self._checker
        if c:
            c.check_invariants(self._store)
            c.require_in_bounds(self._store, row, col)
            c.require(
                isinstance(value, numbers.Number),
                "pre-condition",
                "a number",
                type(value).__name__,
                "value is numeric",
            )
            old_value = self._store.get(row, col)
            old_count = self._store.entry_count

        self._store.put(row, col, value)

        if c:
            c.check_invariants(self._store)
            c.require_equal(value, self._store.get(row, col), "post-condition", "value placed")
            expected = old_count
            if value == 0 and old_value != 0:
                expected -= 1
            elif value != 0 and old_value == 0:
                expected += 1
            c.require_equal(
                expected, self._store.entry_count, "post-condition", "entry count delta"
            )

    def each_non_zero(self) -> Iterator[Tuple[int, int, Any]]:
        """(row, col, value) for every non-zero entry, row-major."""
        return self._store.each_non_zero()

    def __iter__(self) -> Iterator[Any]:
        """Every cell, zeros included, row by row."""
        for r in range(self.rows):
            yield from self._store.row(r)

    def row(self, index: int):
        return self._store.row(index)

    def col(self, index: int):
        return self._store.col(index)

    def to_dense(self) -> np.ndarray:
        return self._store.to_dense()

    def clone(self) -> "SparseMatrix":
        return self._wrap(self._store.clone())

    def __contains__(self, value) -> bool:
        if value == 0:
            return self.entry_count < self.rows * self.columns
        return any(v == value for _r, _c, v in self._store.each_non_zero())

    def __eq__(self, other) -> bool:
        if isinstance(other, SparseMatrix):
            return self._store == other._store
        if isinstance(other, SparseStore):
            return self._store == other
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"SparseMatrix(rows={self.rows}, columns={self.columns}, "
            f"entries={self.entry_count})"
        )

    def __str__(self) -> str:
        return str(self.to_dense())

    # ------------------------------------------------------------------
    # Structural transforms
    # ------------------------------------------------------------------
    def _transformed(self, transform, expected_dense) -> "SparseMatrix":
        """
        Clone, apply `transform` to the clone and wrap it. `expected_dense`
        computes the post-condition from this matrix's dense form.
        """
        c = self._checker
        if c:
            c.check_invariants(self._store)
            before = self._store.to_dense()

        new_store = self._store.clone()
        transform(new_store)
        result = self._wrap(new_store)

        if c:
            c.check_invariants(new_store)
            c.require_dense_close(
                expected_dense(before), new_store.to_dense(), "post-condition", transform.__name__
            )
        return result

    def transpose(self) -> "SparseMatrix":
        def transpose(s):
            s.transpose()

        return self._transformed(transpose, lambda d: d.T)

    def flip_horizontal(self) -> "SparseMatrix":
        def flip_horizontal(s):
            s.flip_horizontal()

        return self._transformed(flip_horizontal, lambda d: d[:, ::-1])

    def flip_vertical(self) -> "SparseMatrix":
        def flip_vertical(s):
            s.flip_vertical()

        return self._transformed(flip_vertical, lambda d: d[::-1, :])

    def rotate(self, turns: int) -> "SparseMatrix":
        """Rotate by (turns + 1) quarter turns; turns is 0, 1 or 2."""
        c = self._checker
        if c:
            c.require(self._store.is_square, "pre-condition", "square", self.shape, "rotate")
            c.require(turns in (0, 1, 2), "pre-condition", (0, 1, 2), turns, "rotation")

        def rotate(s):
            s.rotate(turns)

        return self._transformed(rotate, lambda d: np.rot90(d, k=turns + 1))

    def row_switch(self, i: int, j: int, axis: Union[Axis, int] = Axis.ROW) -> "SparseMatrix":
        c = self._checker
        if c:
            c.require(axis in (Axis.ROW, Axis.COLUMN), "pre-condition", tuple(Axis), axis, "axis")
            size = self.rows if axis == Axis.ROW else self.columns
            c.require(
                0 <= i < size and 0 <= j < size,
                "pre-condition",
                f"indices in [0, {size})",
                (i, j),
                "row_switch",
            )

        def row_switch(s):
            s.row_switch(i, j, axis)

        def expected(d):
            order = list(range(d.shape[axis]))
            order[i], order[j] = order[j], order[i]
            return d[order, :] if axis == Axis.ROW else d[:, order]

        return self._transformed(row_switch, expected)

    def sub_matrix(self, rows: Iterable[int], cols: Iterable[int]) -> "SparseMatrix":
        """Copy with the given rows and columns deleted and the rest re-indexed."""
        rows, cols = sorted(set(rows)), sorted(set(cols))
        c = self._checker
        if c:
            c.require(
                all(0 <= r < self.rows for r in rows)
                and all(0 <= k < self.columns for k in cols),
                "pre-condition",
                self.shape,
                (rows, cols),
                "deleted indices in bounds",
            )

        def sub_matrix(s):
            s.sub_matrix(rows, cols)

        return self._transformed(
            sub_matrix, lambda d: np.delete(np.delete(d, rows, axis=0), cols, axis=1)
        )

    def row_oper(self, i: int, j: int, op) -> "SparseMatrix":
        """Copy whose row i is op(row i, row j), column by column."""
        c = self._checker
        if c:
            c.require(
                0 <= i < self.rows and 0 <= j < self.rows,
                "pre-condition",
                f"rows in [0, {self.rows})",
                (i, j),
                "row_oper",
            )
        fn = row_operation(op)

        def row_oper(s):
            s.row_oper(i, j, fn)

        def expected(d):
            grid = d.tolist()
            grid[i] = [fn(a, b) for a, b in zip(grid[i], grid[j])]
            return grid

        return self._transformed(row_oper, expected)

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------
    def _elementwise(self, operand: Operand, op) -> "SparseMatrix":
        c = self._checker
        if c:
            c.check_invariants(self._store)
            if isinstance(operand, MatrixLike):
                c.require_equal(self.shape, operand.store.shape, "pre-condition", op.__name__)

        if isinstance(operand, MatrixLike):
            if op is operator.add:
                new_store = self._store.add_matrix(operand.store)
            else:
                new_store = self._store.subtract_matrix(operand.store)
        else:
            if op is operator.add:
                new_store = self._store.add_scalar(operand.value)
            else:
                new_store = self._store.sub_scalar(operand.value)

        if c:
            c.check_invariants(new_store)
            c.require_equal(self.shape, new_store.shape, "post-condition", op.__name__)
            if isinstance(operand, MatrixLike):
                rhs = operand.store.to_dense()
            else:
                rhs = operand.value
            c.require_dense_close(
                op(self._store.to_dense(), rhs), new_store.to_dense(), "post-condition", op.__name__
            )
        return self._wrap(new_store)

    def add(self, other) -> "SparseMatrix":
        """Sum with a matrix of the same shape or a scalar."""
        return self._elementwise(resolve_operand(other), operator.add)

    def subtract(self, other) -> "SparseMatrix":
        return self._elementwise(resolve_operand(other), operator.sub)

    @staticmethod
    def _scalar(k) -> Scalar:
        operand = resolve_operand(k)
        if not isinstance(operand, Scalar):
            raise InvalidArgument("expected a scalar operand")
        return operand

    @staticmethod
    def _matrix(other) -> MatrixLike:
        operand = resolve_operand(other)
        if not isinstance(operand, MatrixLike):
            raise InvalidArgument("expected a matrix operand")
        return operand

    def add_scalar(self, k) -> "SparseMatrix":
        return self._elementwise(self._scalar(k), operator.add)

    def sub_scalar(self, k) -> "SparseMatrix":
        return self._elementwise(self._scalar(k), operator.sub)

    def add_matrix(self, other) -> "SparseMatrix":
        return self._elementwise(self._matrix(other), operator.add)

    def subtract_matrix(self, other) -> "SparseMatrix":
        return self._elementwise(self._matrix(other), operator.sub)

    def scale(self, k) -> "SparseMatrix":
        k = self._scalar(k).value
        c = self._checker
        if c:
            c.check_invariants(self._store)

        new_store = self._store.scale(k)

        if c:
            c.check_invariants(new_store)
            c.require_dense_close(
                self._store.to_dense() * k, new_store.to_dense(), "post-condition", "scale"
            )
        return self._wrap(new_store)

    def matmul(self, other) -> "SparseMatrix":
        """Matrix product self @ other."""
        operand = resolve_operand(other)
        if not isinstance(operand, MatrixLike):
            return self.scale(operand.value)
        c = self._checker
        if c:
            c.check_invariants(self._store)
            c.require_equal(self.columns, operand.store.rows, "pre-condition", "inner dimensions")

        new_store = self._store.matmul(operand.store)

        if c:
            c.check_invariants(new_store)
            c.require_equal(
                (self.rows, operand.store.columns), new_store.shape, "post-condition", "matmul"
            )
            c.require_dense_close(
                self._store.to_dense() @ operand.store.to_dense(),
                new_store.to_dense(),
                "post-condition",
                "matmul",
            )
        return self._wrap(new_store)

    def multiply(self, other) -> "SparseMatrix":
        """
        Scalar multiple for a number, matrix product for a matrix.

        The `*` operator routes here, except with an ndarray operand on
        either side, where it is element-wise as in numpy.
        """
        operand = resolve_operand(other)
        if isinstance(operand, Scalar):
            return self.scale(operand.value)
        return self.matmul(operand.store)

    def element_mult(self, other) -> "SparseMatrix":
        operand = self._matrix(other)
        c = self._checker
        if c:
            c.check_invariants(self._store)
            c.require_equal(self.shape, operand.store.shape, "pre-condition", "element_mult")

        new_store = self._store.element_mult(operand.store)

        if c:
            c.check_invariants(new_store)
            c.require_dense_close(
                self._store.to_dense() * operand.store.to_dense(),
                new_store.to_dense(),
                "post-condition",
                "element_mult",
            )
        return self._wrap(new_store)

    def __add__(self, other) -> "SparseMatrix":
        return self.add(other)

    def __radd__(self, other) -> "SparseMatrix":
        return self.add(other)

    def __sub__(self, other) -> "SparseMatrix":
        return self.subtract(other)

    def __rsub__(self, other) -> "SparseMatrix":
        return (-self).add(other)

    def __mul__(self, other) -> "SparseMatrix":
        # numpy arrays keep their own meaning of `*`: element-wise.
        if isinstance(other, np.ndarray) and other.ndim:
            return self.element_mult(other)
        return self.multiply(other)

    def __rmul__(self, other) -> "SparseMatrix":
        if isinstance(other, np.ndarray) and other.ndim:
            return self.element_mult(other)
        operand = resolve_operand(other)
        if isinstance(operand, Scalar):
            return self.scale(operand.value)
        return self._wrap(operand.store).matmul(self)

    def __matmul__(self, other) -> "SparseMatrix":
        return self.matmul(other)

    def __rmatmul__(self, other) -> "SparseMatrix":
        return self._wrap(self._matrix(other).store).matmul(self)

    def __neg__(self) -> "SparseMatrix":
        return self.scale(-1)

    # ------------------------------------------------------------------
    # Linear algebra
    # ------------------------------------------------------------------
    def determinant(self):
        """Cofactor expansion; O(n!), small matrices only."""
        c = self._checker
        if c:
            c.check_invariants(self._store)
            c.require(self._store.is_square, "pre-condition", "square", self.shape, "determinant")
        return det(self._store)

    def inverse(self) -> "SparseMatrix":
        """Adjugate inverse, entries rounded to 10 places."""
        c = self._checker
        if c:
            c.check_invariants(self._store)

        new_store = inverse(self._store)

        if c:
            c.check_invariants(new_store)
            # Each inverse entry is off by up to 10**-DECIMALS after rounding,
            # so a cell of S @ inv(S) may drift by a row sum of S times that.
            c.require_dense_within(
                np.eye(self.rows),
                self._store.matmul(new_store).to_dense(),
                self.rows * max(1.0, self._store.norm_inf()) * 10.0**-DECIMALS,
                "post-condition",
                "S @ inverse(S) = I",
            )
        return self._wrap(new_store)

    def rank(self, tol: Optional[float] = None) -> int:
        """Bareiss elimination; exact for int and Fraction entries."""
        c = self._checker
        if c:
            c.check_invariants(self._store)

        r = rank_elimination(self._store, tol)

        if c:
            c.require(
                0 <= r <= min(self.shape), "post-condition", f"<= {min(self.shape)}", r, "rank"
            )
        return r
