# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import operator

import numpy as np
import pytest

from sparsematrix.errors import (
    DimensionMismatch,
    IndexOutOfBounds,
    InvalidArgument,
    InvalidDimension,
    NotSquare,
)
from sparsematrix.store import Axis, SparseStore
from sparsematrix.utils import random_dense

SEEDS = [0, 1, 2, 3, 4]


def _sparse(rows, columns, seed, density=0.4):
    return SparseStore.from_dense(
        random_dense(rows, columns, low=-9, high=10, density=density, seed=seed)
    )


def test_create_all_zero():
    S = SparseStore.create(3, 4)
    assert S.shape == (3, 4)
    assert S.entry_count == 0
    np.testing.assert_array_equal(S.to_dense(), np.zeros((3, 4)))


@pytest.mark.parametrize("shape", [(3,), (2, 3, 4), ()])
def test_create_rejects_other_ranks(shape):
    with pytest.raises(InvalidDimension):
        SparseStore.create(*shape)


def test_negative_dimension():
    with pytest.raises(InvalidDimension):
        SparseStore(-1, 2)
    with pytest.raises(ValueError):
        SparseStore(2, -3)


def test_from_dense_omits_zeros():
    A = np.array([[0, 1, 0], [2, 0, 0]])
    S = SparseStore.from_dense(A)
    assert S.shape == (2, 3)
    assert S.entry_count == 2
    assert list(S.each_non_zero()) == [(0, 1, 1), (1, 0, 2)]
    np.testing.assert_array_equal(S.to_dense(), A)


def test_from_dense_rejects_3d():
    with pytest.raises(InvalidDimension):
        SparseStore.from_dense(np.zeros((2, 2, 2)))


def test_get_never_raises():
    S = SparseStore.from_dense([[1, 2], [3, 4]])
    assert S.get(1, 1) == 4
    assert S.get(10, 0) == 0
    assert S.get(-1, -1) == 0


@pytest.mark.parametrize("index", [(2, 0), (0, 2), (-1, 0), (0, -1)])
def test_put_out_of_bounds(index):
    S = SparseStore(2, 2)
    with pytest.raises(IndexOutOfBounds):
        S.put(*index, 1)
    with pytest.raises(IndexError):
        S.put(*index, 1)


def test_put_entry_count_delta():
    S = SparseStore.from_dense([[1, 0], [0, 4]])
    assert S.entry_count == 2

    S.put(0, 1, 7)  # zero -> non-zero
    assert S.entry_count == 3
    S.put(0, 1, 7)  # same value twice
    assert S.entry_count == 3
    S.put(0, 1, 5)  # non-zero -> non-zero
    assert S.entry_count == 3
    S.put(0, 0, 0)  # non-zero -> zero
    assert S.entry_count == 2
    S.put(0, 0, 0)  # zero -> zero
    assert S.entry_count == 2
    assert S.get(0, 1) == 5


def test_put_zero_never_stores():
    S = SparseStore(3, 3)
    S.put(1, 1, 0.0)
    assert S.entry_count == 0
    assert all(v != 0 for _r, _c, v in S.each_non_zero())


def test_each_non_zero_is_row_major():
    S = SparseStore(3, 3)
    for r, c in [(2, 0), (0, 2), (1, 1), (0, 0)]:
        S.put(r, c, r + c + 1)
    assert [(r, c) for r, c, _v in S.each_non_zero()] == [(0, 0), (0, 2), (1, 1), (2, 0)]


def test_clone_does_not_alias():
    S = SparseStore.from_dense([[1, 0], [0, 2]])
    T = S.clone()
    T.put(0, 0, 9)
    T.put(1, 0, 3)
    assert S.get(0, 0) == 1
    assert S.get(1, 0) == 0
    assert S != T


def test_empty_row_equals_absent_row():
    S = SparseStore.from_dense([[1, 0], [0, 0]])
    T = S.clone()
    T._map[1] = {}
    assert S == T


def test_equality_needs_same_shape():
    assert SparseStore(2, 3) != SparseStore(3, 2)
    assert SparseStore(2, 3) == SparseStore(2, 3)


@pytest.mark.parametrize("seed", SEEDS)
def test_transpose_twice_is_identity(seed):
    S = _sparse(4, 7, seed)
    T = S.clone()
    T.transpose()
    assert T.shape == (7, 4)
    np.testing.assert_array_equal(T.to_dense(), S.to_dense().T)
    T.transpose()
    assert T == S


@pytest.mark.parametrize("seed", SEEDS)
def test_flips_are_self_inverse(seed):
    S = _sparse(5, 3, seed)
    H = S.clone()
    H.flip_horizontal()
    np.testing.assert_array_equal(H.to_dense(), S.to_dense()[:, ::-1])
    H.flip_horizontal()
    assert H == S

    V = S.clone()
    V.flip_vertical()
    np.testing.assert_array_equal(V.to_dense(), S.to_dense()[::-1, :])
    V.flip_vertical()
    assert V == S


@pytest.mark.parametrize(
    "turns,expected",
    [
        (0, [[2, 4], [1, 3]]),
        (1, [[4, 3], [2, 1]]),
        (2, [[3, 1], [4, 2]]),
    ],
)
def test_rotate_2x2(turns, expected):
    S = SparseStore.from_dense([[1, 2], [3, 4]])
    S.rotate(turns)
    np.testing.assert_array_equal(S.to_dense(), expected)


@pytest.mark.parametrize("n", [1, 3, 4, 5, 6])
@pytest.mark.parametrize("turns", [0, 1, 2])
def test_rotate_matches_rot90(n, turns):
    S = _sparse(n, n, seed=10 * n + turns, density=0.6)
    expected = np.rot90(S.to_dense(), k=turns + 1)
    S.rotate(turns)
    np.testing.assert_array_equal(S.to_dense(), expected)


@pytest.mark.parametrize("seed", SEEDS)
def test_rotations_compose(seed):
    S = _sparse(5, 5, seed)

    full_turn = S.clone()
    for _ in range(4):
        full_turn.rotate(0)
    assert full_turn == S

    two_quarters = S.clone()
    two_quarters.rotate(0)
    two_quarters.rotate(0)
    half = S.clone()
    half.rotate(1)
    assert two_quarters == half

    three_quarters = S.clone()
    three_quarters.rotate(2)
    three_quarters.rotate(0)
    assert three_quarters == S


def test_rotate_errors():
    with pytest.raises(NotSquare):
        SparseStore(2, 3).rotate(0)
    for turns in (3, -1, 1.0, True):
        with pytest.raises(InvalidArgument):
            SparseStore(2, 2).rotate(turns)


def test_row_switch_rows():
    S = SparseStore.from_dense([[1, 2], [3, 4]])
    S.row_switch(0, 1, Axis.ROW)
    np.testing.assert_array_equal(S.to_dense(), [[3, 4], [1, 2]])


def test_row_switch_columns():
    S = SparseStore.from_dense([[1, 0, 2], [0, 3, 0]])
    S.row_switch(0, 1, Axis.COLUMN)
    np.testing.assert_array_equal(S.to_dense(), [[0, 1, 2], [3, 0, 0]])


def test_row_switch_with_empty_row():
    S = SparseStore.from_dense([[0, 0], [5, 0], [0, 6]])
    S.row_switch(0, 2, 0)
    np.testing.assert_array_equal(S.to_dense(), [[0, 6], [5, 0], [0, 0]])


@pytest.mark.parametrize("seed", SEEDS)
@pytest.mark.parametrize("axis", [Axis.ROW, Axis.COLUMN])
def test_row_switch_twice_is_identity(seed, axis):
    S = _sparse(6, 6, seed)
    T = S.clone()
    T.row_switch(1, 4, axis)
    T.row_switch(1, 4, axis)
    assert T == S


def test_row_switch_errors():
    S = SparseStore(3, 3)
    with pytest.raises(InvalidArgument):
        S.row_switch(0, 1, 2)
    with pytest.raises(IndexOutOfBounds):
        S.row_switch(0, 3, Axis.ROW)


def test_sub_matrix_5x5():
    A = np.arange(1, 26).reshape(5, 5)
    S = SparseStore.from_dense(A)
    S.sub_matrix([1], [1, 3])
    assert S.shape == (4, 3)
    expected = np.delete(np.delete(A, [1], axis=0), [1, 3], axis=1)
    np.testing.assert_array_equal(S.to_dense(), expected)
    for r, orig_r in enumerate([0, 2, 3, 4]):
        for c, orig_c in enumerate([0, 2, 4]):
            assert S.get(r, c) == A[orig_r, orig_c]


def test_sub_matrix_deduplicates():
    S = SparseStore.from_dense(np.eye(4, dtype=int))
    S.sub_matrix([2, 2, 0], [3, 3])
    assert S.shape == (2, 3)
    np.testing.assert_array_equal(S.to_dense(), [[0, 1, 0], [0, 0, 0]])


def test_sub_matrix_out_of_bounds():
    with pytest.raises(IndexOutOfBounds):
        SparseStore(3, 3).sub_matrix([3], [])


@pytest.mark.parametrize("op,expected", [("add", [4, 2, 6]), (operator.mul, [3, 0, 8])])
def test_row_oper(op, expected):
    S = SparseStore.from_dense([[1, 2, 4], [3, 0, 2]])
    S.row_oper(1, 0, op)
    assert S.row(1) == expected
    assert S.row(0) == [1, 2, 4]


def test_row_oper_rejects_unknown():
    with pytest.raises(InvalidArgument):
        SparseStore(2, 2).row_oper(0, 1, "pow")
    with pytest.raises(InvalidArgument):
        SparseStore(2, 2).row_oper(0, 1, 3)


def test_row_and_col_are_dense():
    S = SparseStore.from_dense([[0, 5, 0], [7, 0, 0]])
    assert S.row(0) == [0, 5, 0]
    assert S.col(0) == [0, 7]
    with pytest.raises(IndexOutOfBounds):
        S.col(3)


def test_scalar_ops():
    S = SparseStore.from_dense([[0, 1], [2, 0]])
    np.testing.assert_array_equal(S.add_scalar(3).to_dense(), [[3, 4], [5, 3]])
    np.testing.assert_array_equal(S.sub_scalar(1).to_dense(), [[-1, 0], [1, -1]])
    assert S.sub_scalar(1).entry_count == 3
    np.testing.assert_array_equal(S.scale(-2).to_dense(), [[0, -2], [-4, 0]])
    assert S.scale(0).entry_count == 0
    # operands are untouched
    np.testing.assert_array_equal(S.to_dense(), [[0, 1], [2, 0]])


@pytest.mark.parametrize("seed", SEEDS)
def test_scalar_round_trip(seed):
    S = _sparse(4, 5, seed)
    assert S.add_scalar(5).sub_scalar(5) == S


@pytest.mark.parametrize("seed", SEEDS)
def test_matrix_add_subtract(seed):
    S = _sparse(4, 5, seed)
    T = _sparse(4, 5, seed + 100)
    np.testing.assert_array_equal(S.add_matrix(T).to_dense(), S.to_dense() + T.to_dense())
    assert S.add_matrix(T).subtract_matrix(T) == S
    assert S.subtract_matrix(T).add_matrix(T) == S


def test_add_prunes_cancelled_entries():
    S = SparseStore.from_dense([[1, 2], [0, 3]])
    T = SparseStore.from_dense([[-1, 0], [4, -3]])
    R = S.add_matrix(T)
    assert R.entry_count == 2
    assert list(R.each_non_zero()) == [(0, 1, 2), (1, 0, 4)]


def test_dimension_mismatch():
    with pytest.raises(DimensionMismatch):
        SparseStore(2, 3).add_matrix(SparseStore(3, 2))
    with pytest.raises(DimensionMismatch):
        SparseStore(2, 3).subtract_matrix(SparseStore(2, 2))
    with pytest.raises(DimensionMismatch):
        SparseStore(2, 3).matmul(SparseStore(2, 3))


@pytest.mark.parametrize("seed", SEEDS)
def test_matmul_matches_numpy(seed):
    S = _sparse(4, 6, seed)
    T = _sparse(6, 3, seed + 50)
    R = S.matmul(T)
    assert R.shape == (4, 3)
    np.testing.assert_array_equal(R.to_dense(), S.to_dense() @ T.to_dense())


def test_element_mult():
    S = SparseStore.from_dense([[1, 2], [0, 3]])
    T = SparseStore.from_dense([[4, 0], [5, 2]])
    np.testing.assert_array_equal(S.element_mult(T).to_dense(), [[4, 0], [0, 6]])


def test_identity():
    np.testing.assert_array_equal(SparseStore.identity(3).to_dense(), np.eye(3))


def test_to_dense_empty_dimension():
    assert SparseStore(0, 3).to_dense().shape == (0, 3)
    assert SparseStore(2, 0).to_dense().shape == (2, 0)
