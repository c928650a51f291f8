"""
Sample Vector Backends

Training samples are either dense (1-D numpy arrays or plain number sequences)
or sparse ({index: value} mappings, or 1-row scipy.sparse matrices). Each
representation has an ops object with the operations the trainer needs:

    - dimension(sample): number of components the sample spans
    - dot(sample, w): inner product with a dense weight vector
    - add_scaled(w, sample, scale): w += scale * sample, in place
    - stack(samples, dim): matrix with one row per sample, for batched dot products
"""

from typing import Any, Mapping, Sequence, Union

import numpy as np
import scipy.sparse as sp


class DenseVectorOps:
    """Operations on dense samples."""

    name = 'dense'

    def dimension(self, sample) -> int:
        return int(np.asarray(sample).shape[0])

    def dot(self, sample, w: np.ndarray) -> float:
        x = np.asarray(sample, dtype=float)
        if x.shape[0] != w.shape[0]:
            raise ValueError(f"Sample has dimension {x.shape[0]}, weight vector has {w.shape[0]}")
        return float(np.dot(x, w))

    def add_scaled(self, w: np.ndarray, sample, scale: float) -> np.ndarray:
        w += scale * np.asarray(sample, dtype=float)
        return w

    def stack(self, samples: Sequence, dim: int) -> np.ndarray:
        if len(samples) == 0:
            return np.zeros((0, dim))
        return np.vstack([np.asarray(s, dtype=float).reshape(-1) for s in samples])

    def is_finite(self, sample) -> bool:
        return bool(np.all(np.isfinite(np.asarray(sample, dtype=float))))


class SparseVectorOps:
    """
    Operations on sparse samples.

    A sparse sample's dimension is one past its largest non-zero index, so
    sparse samples of different lengths can be mixed freely. Components past the
    end of a weight vector are treated as zero in dot products.
    """

    name = 'sparse'

    def _items(self, sample):
        if sp.issparse(sample):
            row = sp.csr_matrix(sample)
            if row.shape[0] != 1:
                raise ValueError(f"Sparse sample must have exactly one row, got {row.shape[0]}")
            return zip(row.indices.tolist(), row.data.tolist())
        return ((int(k), float(v)) for k, v in sample.items())

    def entries(self, sample):
        """List of (index, value) pairs; raises ValueError or TypeError for malformed samples."""
        return list(self._items(sample))

    def dimension(self, sample) -> int:
        if sp.issparse(sample):
            # A matrix row spans all of its columns
            return int(sample.shape[1])
        indices = [i for i, v in self._items(sample) if v != 0]
        return max(indices) + 1 if indices else 0

    def dot(self, sample, w: np.ndarray) -> float:
        n = w.shape[0]
        return float(sum(v * w[i] for i, v in self._items(sample) if i < n))

    def add_scaled(self, w: np.ndarray, sample, scale: float) -> np.ndarray:
        n = w.shape[0]
        for i, v in self._items(sample):
            if i >= n:
                raise ValueError(f"Sample index {i} is out of range for dimension {n}")
            w[i] += scale * v
        return w

    def stack(self, samples: Sequence, dim: int) -> sp.csr_matrix:
        rows, cols, data = [], [], []
        for r, sample in enumerate(samples):
            for i, v in self._items(sample):
                if i < 0:
                    raise ValueError(f"Negative sparse index {i}")
                rows.append(r)
                cols.append(i)
                data.append(v)
        return sp.csr_matrix((data, (rows, cols)), shape=(len(samples), dim), dtype=float)

    def is_finite(self, sample) -> bool:
        return all(np.isfinite(v) for _, v in self._items(sample))


DENSE = DenseVectorOps()
SPARSE = SparseVectorOps()


def is_sparse_sample(sample: Any) -> bool:
    return isinstance(sample, Mapping) or sp.issparse(sample)


def vector_ops_for(sample: Any) -> Union[DenseVectorOps, SparseVectorOps]:
    """
    Pick the backend for a sample.

    Args:
        sample: A dense or sparse sample

    Returns:
        DENSE or SPARSE
    """
    if is_sparse_sample(sample):
        return SPARSE
    arr = np.asarray(sample)
    if arr.ndim != 1 or not np.issubdtype(arr.dtype, np.number):
        raise TypeError(f"Unsupported sample type: {type(sample).__name__}")
    return DENSE
