from __future__ import annotations

import numpy as np

from faceauth.errors import DescriptorLengthMismatch


def as_descriptor(vec, dim: int) -> np.ndarray:
    """Coerce a descriptor-like sequence into a flat float32 vector of length `dim`.

    Never truncates, pads or reshapes: anything other than a (D,) or (1, D)
    input of the right length raises DescriptorLengthMismatch.
    """
    arr = np.asarray(vec, dtype=np.float32)
    if arr.ndim == 2 and int(arr.shape[0]) == 1:
        arr = arr[0]
    if arr.ndim != 1:
        raise DescriptorLengthMismatch(expected=int(dim), actual=int(arr.size), shape=arr.shape)
    if int(arr.shape[0]) != int(dim):
        raise DescriptorLengthMismatch(expected=int(dim), actual=int(arr.shape[0]))
    if not np.all(np.isfinite(arr)):
        raise ValueError("descriptor contains non-finite values")
    return arr


def frozen_descriptor(vec) -> np.ndarray:
    """Private read-only float32 copy, used for every descriptor the store keeps."""
    out = np.array(vec, dtype=np.float32, copy=True)
    out.flags.writeable = False
    return out


def euclidean_distances(matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
    """Row-wise Euclidean distance between an (N, D) matrix and a (D,) query.

    Computed in float64 from the float32 inputs so persisted and live descriptors
    compare identically.
    """
    mat = np.asarray(matrix, dtype=np.float64)
    if mat.ndim == 1:
        mat = mat.reshape(1, -1)
    q = np.asarray(query, dtype=np.float64).reshape(1, -1)
    diff = mat - q
    return np.sqrt(np.einsum("ij,ij->i", diff, diff))


def euclidean_distance(a: np.ndarray, b: np.ndarray) -> float:
    """Euclidean distance for 1D vectors."""
    va = np.asarray(a, dtype=np.float64).reshape(-1)
    vb = np.asarray(b, dtype=np.float64).reshape(-1)
    return float(np.linalg.norm(va - vb))
