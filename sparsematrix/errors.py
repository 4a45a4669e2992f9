# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Error kinds raised by the sparse store, the algorithms and the facade.

Every class derives from `SparseMatrixError` and from the builtin a caller
would reach for first, so ``except ValueError`` keeps working.
"""

import numpy as np


class SparseMatrixError(Exception):
    """Base class for every error raised by this package."""


class InvalidDimension(SparseMatrixError, ValueError):
    """Negative dimension, or a shape that is not 2-d."""


class IndexOutOfBounds(SparseMatrixError, IndexError):
    """Index outside [0, rows) x [0, columns)."""


class DimensionMismatch(SparseMatrixError, ValueError):
    """Operand shapes are incompatible."""


class NotSquare(SparseMatrixError, ValueError):
    """Operation only defined for square matrices."""


class NotInvertible(SparseMatrixError, np.linalg.LinAlgError):
    """Matrix is not square or has a zero determinant."""


class InvalidArgument(SparseMatrixError, ValueError):
    """Out-of-range selector (rotation amount, axis) or unsupported operand."""


class InvalidArguments(InvalidArgument):
    """The factory was called with an unsupported argument shape."""


class ContractViolation(SparseMatrixError, AssertionError):
    """
    A pre-condition, post-condition or invariant failed while contract
    checking was enabled. Always an implementation bug, never retried.
    """

    def __init__(self, condition: str, expected=None, actual=None, detail: str = ""):
        self.condition = condition
        self.expected = expected
        self.actual = actual
        self.detail = detail
        msg = f"{condition} not met"
        if detail:
            msg += f" ({detail})"
        msg += f". Expected\n{expected!r}, got\n{actual!r}"
        super().__init__(msg)
