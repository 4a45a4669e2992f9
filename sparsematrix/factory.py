# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

from typing import Optional

import numpy as np

from .errors import InvalidArguments
from .matrix import SparseMatrix
from .store import SparseStore


def _is_dense(arg) -> bool:
    return isinstance(arg, (np.ndarray, list, tuple)) or hasattr(arg, "__array__")


def _is_int(arg) -> bool:
    return isinstance(arg, (int, np.integer)) and not isinstance(arg, bool)


def create(
    *args,
    contract_checking: bool = False,
    rng: Optional[np.random.Generator] = None,
) -> SparseMatrix:
    """
    Build a `SparseMatrix`.

    ``create(dense)``          copies the non-zero cells of a 2-d matrix.
    ``create(rows, columns)``  makes an all-zero matrix of that size.
    """
    if len(args) == 1 and _is_dense(args[0]):
        store = SparseStore.from_dense(args[0])
    elif len(args) == 2 and all(_is_int(a) for a in args):
        store = SparseStore.create(*args)
    else:
        raise InvalidArguments("Invalid arguments")
    return SparseMatrix(store, contract_checking=contract_checking, rng=rng)
