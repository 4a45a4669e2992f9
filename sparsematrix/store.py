# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Sparse storage engine.

Entries live in a dict of dicts, ``{row: {col: value}}``. A cell is stored
if and only if its value is non-zero; writing zero deletes the cell, and a
row whose last cell is deleted is dropped from the outer dict.

Structural transforms (`transpose`, flips, `rotate`, `row_switch`,
`sub_matrix`, `row_oper`) mutate the store in place and return None.
Arithmetic (`add_scalar`, `add_matrix`, `matmul`, ...) always returns a
new store and leaves both operands untouched.
"""

import operator
from bisect import bisect_left
from enum import IntEnum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Tuple, Union

import numpy as np

from .errors import (
    DimensionMismatch,
    IndexOutOfBounds,
    InvalidArgument,
    InvalidDimension,
    NotSquare,
)


class Axis(IntEnum):
    ROW = 0
    COLUMN = 1


_ROW_OPS: Dict[str, Callable[[Any, Any], Any]] = {
    "add": operator.add,
    "mul": operator.mul,
}


def row_operation(op: Union[str, Callable[[Any, Any], Any]]) -> Callable[[Any, Any], Any]:
    """Resolve "add", "mul" or a binary callable to a callable."""
    if isinstance(op, str):
        try:
            return _ROW_OPS[op]
        except KeyError:
            raise InvalidArgument(f"unknown row operation {op!r}")
    if not callable(op):
        raise InvalidArgument("row operation must be callable")
    return op


def _check_dimension(value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidDimension(f"dimension must be an integer, got {value!r}")
    if value < 0:
        raise InvalidDimension(f"dimension must be non-negative, got {value}")
    return int(value)


class SparseStore:
    """
    Rank-2 sparse container holding only non-zero values.

    Parameters
    ----------
    rows, columns : int
        Non-negative dimensions. Fixed for the life of the store except
        through `transpose` (swap) and `sub_matrix` (shrink).
    """

    def __init__(self, rows: int = 0, columns: int = 0) -> None:
        self._rows = _check_dimension(rows)
        self._columns = _check_dimension(columns)
        self._map: Dict[int, Dict[int, Any]] = {}

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def create(cls, *shape: int) -> "SparseStore":
        """All-zero store; only 2-d shapes are supported."""
        if len(shape) != 2:
            raise InvalidDimension(
                f"matrices of {len(shape)} dimensions are not supported, only 2"
            )
        return cls(*shape)

    @classmethod
    def from_dense(cls, matrix) -> "SparseStore":
        """
        Copy every non-zero cell of a dense matrix.

        `matrix` is a 2-d ndarray or anything `np.asarray` accepts as one.
        Values are converted to native Python numbers so that integer and
        Fraction input keep exact arithmetic.
        """
        A = np.asarray(matrix)
        if A.ndim != 2:
            raise InvalidDimension(f"expected a 2-d matrix, got {A.ndim} dimensions")
        store = cls(*A.shape)
        for r, values in enumerate(A.tolist()):
            for c, val in enumerate(values):
                if val != 0:
                    store._map.setdefault(r, {})[c] = val
        return store

    @classmethod
    def identity(cls, n: int) -> "SparseStore":
        store = cls(n, n)
        for i in range(store.rows):
            store._map[i] = {i: 1}
        return store

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------
    @property
    def rows(self) -> int:
        return self._rows

    @property
    def columns(self) -> int:
        return self._columns

    @property
    def shape(self) -> Tuple[int, int]:
        return self._rows, self._columns

    @property
    def is_square(self) -> bool:
        return self._rows == self._columns

    def within_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self._rows and 0 <= col < self._columns

    def _require_row(self, index: int) -> None:
        if not 0 <= index < self._rows:
            raise IndexOutOfBounds(f"row {index} outside [0, {self._rows})")

    def _require_column(self, index: int) -> None:
        if not 0 <= index < self._columns:
            raise IndexOutOfBounds(f"column {index} outside [0, {self._columns})")

    # ------------------------------------------------------------------
    # Element access
    # ------------------------------------------------------------------
    def get(self, row: int, col: int):
        """Stored value at (row, col), or 0. Never raises."""
        return self._map.get(row, {}).get(col, 0)

    def put(self, row: int, col: int, value) -> None:
        """Write `value`; writing zero removes the cell from storage."""
        if not self.within_bounds(row, col):
            raise IndexOutOfBounds(
                f"index ({row}, {col}) is out of bounds for shape {self.shape}"
            )
        self._set(row, col, value)

    def _set(self, row: int, col: int, value) -> None:
        if value == 0:
            entries = self._map.get(row)
            if entries is not None:
                entries.pop(col, None)
                if not entries:
                    del self._map[row]
        else:
            self._map.setdefault(row, {})[col] = value

    def each_non_zero(self) -> Iterator[Tuple[int, int, Any]]:
        """
        Yield (row, col, value) for every stored entry, row-major.

        The store must not be mutated while the generator is live.
        """
        for r in sorted(self._map):
            entries = self._map[r]
            for c in sorted(entries):
                yield r, c, entries[c]

    def non_zero_in_row(self, row: int) -> Iterator[Tuple[int, Any]]:
        """Yield (col, value) for the stored entries of one row."""
        entries = self._map.get(row, {})
        for c in sorted(entries):
            yield c, entries[c]

    @property
    def entry_count(self) -> int:
        return sum(len(entries) for entries in self._map.values())

    def norm_inf(self) -> float:
        """Largest absolute row sum, 0.0 for an empty store."""
        return max(
            (float(sum(abs(v) for v in entries.values())) for entries in self._map.values()),
            default=0.0,
        )

    def row(self, index: int) -> List[Any]:
        self._require_row(index)
        return [self.get(index, c) for c in range(self._columns)]

    def col(self, index: int) -> List[Any]:
        self._require_column(index)
        return [self.get(r, index) for r in range(self._rows)]

    def to_dense(self) -> np.ndarray:
        if self._rows == 0 or self._columns == 0:
            return np.zeros(self.shape)
        return np.array([self.row(r) for r in range(self._rows)])

    # ------------------------------------------------------------------
    # Copying and comparison
    # ------------------------------------------------------------------
    def clone(self) -> "SparseStore":
        new = SparseStore(self._rows, self._columns)
        new._map = {r: dict(entries) for r, entries in self._map.items()}
        return new

    def __eq__(self, other) -> bool:
        if not isinstance(other, SparseStore):
            return NotImplemented
        if self.shape != other.shape:
            return False
        mine = {r: e for r, e in self._map.items() if e}
        theirs = {r: e for r, e in other._map.items() if e}
        return mine == theirs

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"SparseStore(rows={self._rows}, columns={self._columns}, "
            f"entries={self.entry_count})"
        )

    # ------------------------------------------------------------------
    # In-place structural transforms
    # ------------------------------------------------------------------
    def _remap(self, move: Callable[[int, int], Tuple[int, int]]) -> None:
        new_map: Dict[int, Dict[int, Any]] = {}
        for r, c, val in list(self.each_non_zero()):
            nr, nc = move(r, c)
            new_map.setdefault(nr, {})[nc] = val
        self._map = new_map

    def transpose(self) -> None:
        self._remap(lambda r, c: (c, r))
        self._rows, self._columns = self._columns, self._rows

    def flip_horizontal(self) -> None:
        """Mirror left to right: (r, c) -> (r, columns - 1 - c)."""
        last = self._columns - 1
        self._remap(lambda r, c: (r, last - c))

    def flip_vertical(self) -> None:
        """Mirror top to bottom: (r, c) -> (rows - 1 - r, c)."""
        last = self._rows - 1
        self._remap(lambda r, c: (last - r, c))

    def rotate(self, turns: int) -> None:
        """
        Rotate a square store by (turns + 1) quarter turns.

        turns = 0, 1, 2 give 90, 180 and 270 degrees. A quarter turn takes
        [[1, 2], [3, 4]] to [[2, 4], [1, 3]], the same direction as
        ``np.rot90``.
        """
        if not self.is_square:
            raise NotSquare(f"cannot rotate a {self._rows}x{self._columns} matrix")
        if (
            isinstance(turns, bool)
            or not isinstance(turns, (int, np.integer))
            or turns not in (0, 1, 2)
        ):
            raise InvalidArgument(f"rotation must be 0, 1 or 2, got {turns!r}")
        for _ in range(turns + 1):
            self._quarter_turn()

    def _quarter_turn(self) -> None:
        n = self._rows
        # Walk the concentric rings, cycling four cells at a time.
        for layer in range(n // 2):
            first, last = layer, n - 1 - layer
            for i in range(first, last):
                top = (first, i)
                left = (n - 1 - i, first)
                bottom = (last, n - 1 - i)
                right = (i, last)
                saved = self.get(*top)
                self._set(*top, self.get(*right))
                self._set(*right, self.get(*bottom))
                self._set(*bottom, self.get(*left))
                self._set(*left, saved)

    def row_switch(self, i: int, j: int, axis: Union[Axis, int] = Axis.ROW) -> None:
        """Swap rows i and j (Axis.ROW) or columns i and j (Axis.COLUMN)."""
        try:
            axis = Axis(axis)
        except ValueError:
            raise InvalidArgument(f"axis must be 0 (rows) or 1 (columns), got {axis!r}")

        if axis is Axis.ROW:
            self._require_row(i)
            self._require_row(j)
            first = self._map.pop(i, None)
            second = self._map.pop(j, None)
            if first:
                self._map[j] = first
            if second:
                self._map[i] = second
        else:
            self._require_column(i)
            self._require_column(j)
            for entries in self._map.values():
                first = entries.pop(i, None)
                second = entries.pop(j, None)
                if first is not None:
                    entries[j] = first
                if second is not None:
                    entries[i] = second

    def sub_matrix(self, rows: Iterable[int], cols: Iterable[int]) -> None:
        """
        Delete the given rows and columns, re-indexing what is left so that
        it is contiguous from 0. Duplicate indices are removed once.
        """
        drop_rows = sorted(set(rows))
        drop_cols = sorted(set(cols))
        for r in drop_rows:
            self._require_row(r)
        for c in drop_cols:
            self._require_column(c)

        skip_rows, skip_cols = set(drop_rows), set(drop_cols)
        new_map: Dict[int, Dict[int, Any]] = {}
        for r, c, val in self.each_non_zero():
            if r in skip_rows or c in skip_cols:
                continue
            nr = r - bisect_left(drop_rows, r)
            nc = c - bisect_left(drop_cols, c)
            new_map.setdefault(nr, {})[nc] = val
        self._map = new_map
        self._rows -= len(drop_rows)
        self._columns -= len(drop_cols)

    def row_oper(self, i: int, j: int, op: Union[str, Callable[[Any, Any], Any]]) -> None:
        """
        Replace row i with op(row_i[col], row_j[col]) column by column.

        `op` is "add", "mul" or a binary callable such as ``operator.add``.
        """
        op = row_operation(op)
        self._require_row(i)
        self._require_row(j)
        for col in range(self._columns):
            self._set(i, col, op(self.get(i, col), self.get(j, col)))

    # ------------------------------------------------------------------
    # Arithmetic (new store every time)
    # ------------------------------------------------------------------
    def _scalar_map(self, func: Callable[[Any], Any]) -> "SparseStore":
        result = SparseStore(self._rows, self._columns)
        for r in range(self._rows):
            for c in range(self._columns):
                result._set(r, c, func(self.get(r, c)))
        return result

    def add_scalar(self, k) -> "SparseStore":
        if k == 0:
            return self.clone()
        return self._scalar_map(lambda v: v + k)

    def sub_scalar(self, k) -> "SparseStore":
        if k == 0:
            return self.clone()
        return self._scalar_map(lambda v: v - k)

    def scale(self, k) -> "SparseStore":
        result = SparseStore(self._rows, self._columns)
        for r, c, val in self.each_non_zero():
            result._set(r, c, val * k)
        return result

    def _require_same_shape(self, other: "SparseStore", what: str) -> None:
        if self.shape != other.shape:
            raise DimensionMismatch(
                f"cannot {what} matrices of shape {self.shape} and {other.shape}"
            )

    def _combine(self, other: "SparseStore", op: Callable[[Any, Any], Any]) -> "SparseStore":
        result = self.clone()
        for r, c, val in other.each_non_zero():
            result._set(r, c, op(result.get(r, c), val))
        return result

    def add_matrix(self, other: "SparseStore") -> "SparseStore":
        self._require_same_shape(other, "add")
        return self._combine(other, operator.add)

    def subtract_matrix(self, other: "SparseStore") -> "SparseStore":
        self._require_same_shape(other, "subtract")
        return self._combine(other, operator.sub)

    def element_mult(self, other: "SparseStore") -> "SparseStore":
        self._require_same_shape(other, "multiply element-wise")
        result = SparseStore(self._rows, self._columns)
        for r, c, val in self.each_non_zero():
            result._set(r, c, val * other.get(r, c))
        return result

    def matmul(self, other: "SparseStore") -> "SparseStore":
        """Matrix product, visiting only the non-zero entries of both sides."""
        if self._columns != other.rows:
            raise DimensionMismatch(
                f"cannot multiply {self.shape} by {other.shape}: "
                f"{self._columns} columns vs {other.rows} rows"
            )
        result = SparseStore(self._rows, other.columns)
        for r, k, val in self.each_non_zero():
            for c, other_val in other.non_zero_in_row(k):
                result._set(r, c, result.get(r, c) + val * other_val)
        return result
