from __future__ import annotations

import numpy as np
import pytest
import scipy.sparse as sp

from svm_rank.samples import DENSE, SPARSE, vector_ops_for


def test_dense_ops_dot_and_add_scaled():
    w = np.array([1.0, 2.0, 3.0])
    assert DENSE.dimension([1, 2, 3]) == 3
    assert DENSE.dot([1.0, 0.0, -1.0], w) == pytest.approx(-2.0)

    acc = np.zeros(3)
    DENSE.add_scaled(acc, np.array([1.0, 1.0, 2.0]), 0.5)
    assert acc.tolist() == [0.5, 0.5, 1.0]


def test_dense_dot_rejects_dimension_mismatch():
    with pytest.raises(ValueError):
        DENSE.dot([1.0, 2.0], np.zeros(3))


def test_sparse_dimension_ignores_explicit_zeros():
    assert SPARSE.dimension({0: 1.0, 4: 2.0}) == 5
    assert SPARSE.dimension({1: 1.0, 7: 0.0}) == 2
    assert SPARSE.dimension({}) == 0


def test_sparse_dot_skips_indices_past_weights():
    w = np.array([1.0, 2.0])
    assert SPARSE.dot({0: 3.0, 1: 1.0, 5: 100.0}, w) == pytest.approx(5.0)


def test_sparse_add_scaled_and_stack():
    acc = np.zeros(4)
    SPARSE.add_scaled(acc, {1: 2.0, 3: -1.0}, 2.0)
    assert acc.tolist() == [0.0, 4.0, 0.0, -2.0]

    matrix = SPARSE.stack([{0: 1.0}, {2: 3.0}], dim=4)
    assert matrix.shape == (2, 4)
    assert matrix.toarray().tolist() == [[1.0, 0.0, 0.0, 0.0], [0.0, 0.0, 3.0, 0.0]]


def test_scipy_sparse_rows_are_sparse_samples():
    row = sp.csr_matrix(np.array([[0.0, 2.0, 0.0]]))
    assert vector_ops_for(row) is SPARSE
    assert SPARSE.dimension(row) == 3
    assert SPARSE.dot(row, np.array([1.0, 1.5, 9.0])) == pytest.approx(3.0)


def test_vector_ops_for_picks_backend():
    assert vector_ops_for(np.zeros(3)) is DENSE
    assert vector_ops_for([1.0, 2.0]) is DENSE
    assert vector_ops_for({0: 1.0}) is SPARSE
    with pytest.raises(TypeError):
        vector_ops_for("not a vector")
