# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
sparsematrix
============

A sparse matrix that stores only its non-zero entries but offers the
algebra of a dense one: indexing, transpose, flips and rotations,
row/column operations, arithmetic, determinant, inverse and rank.

Public API
~~~~~~~~~~
- Construction
    - `create`, `SparseMatrix`, `SparseStore`
- Matrix utilities
    - `det`, `adj`, `cofactor`, `inverse`
- Elimination
    - `forward_eliminate`, `rank_elimination`
- Debugging
    - `ContractChecker` (enable with ``contract_checking=True``)

Everything else lives in sub-modules and is **not** considered part of the
stable interface.

Example
-------
>>> import sparsematrix as sm
>>> A = sm.create([[6, 1, 1], [4, -2, 5], [2, 8, 7]])
>>> A.determinant()
-306
>>> A.rank()
3
"""

from importlib.metadata import version as _pkg_version

from .contracts import ContractChecker
from .elimination import forward_eliminate, rank_elimination
from .errors import (
    ContractViolation,
    DimensionMismatch,
    IndexOutOfBounds,
    InvalidArgument,
    InvalidArguments,
    InvalidDimension,
    NotInvertible,
    NotSquare,
    SparseMatrixError,
)
from .factory import create
from .matrix import MatrixLike, Scalar, SparseMatrix, resolve_operand

# ---------------------------------------------------------------------
# Re-export the high-level functions users are expected to call.
# Each of these names is implemented in one of the internal sub-modules.
# ---------------------------------------------------------------------
from .matrix_functions import adj, cofactor, det, inverse
from .store import Axis, SparseStore
from .utils import DECIMALS, EPS

__all__ = [
    "create",
    "SparseMatrix",
    "SparseStore",
    "Axis",
    "Scalar",
    "MatrixLike",
    "resolve_operand",
    "det",
    "adj",
    "cofactor",
    "inverse",
    "forward_eliminate",
    "rank_elimination",
    "ContractChecker",
    "SparseMatrixError",
    "InvalidDimension",
    "IndexOutOfBounds",
    "DimensionMismatch",
    "NotSquare",
    "NotInvertible",
    "InvalidArgument",
    "InvalidArguments",
    "ContractViolation",
    "DECIMALS",
    "EPS",
]

# ---------------------------------------------------------------------
# Version string (helps “pip show sparsematrix”, Sphinx, etc.)
# ---------------------------------------------------------------------
try:  # installed via pip / build backend
    __version__ = _pkg_version(__name__)
except Exception:  # running from a checkout
    __version__ = "0.0.0.dev0"

# ---------------------------------------------------------------------
# Optional: lightweight default logging config so users see warnings
# only if they deliberately enable them.
# ---------------------------------------------------------------------
import logging as _logging

_logging.getLogger(__name__).addHandler(_logging.NullHandler())
