"""k-means machine: a set of means and the squared Euclidean distance to them."""
from __future__ import annotations

from typing import Tuple

import numpy as np

from ..io import ElementKind, HDF5File, TypeMismatchError


class KMeansMachine:
    """Holds `n_means` means of dimension `n_inputs`."""

    def __init__(self, n_means: int = 0, n_inputs: int = 0):
        if n_means < 0 or n_inputs < 0:
            raise ValueError(f"Invalid dimensions: {n_means} x {n_inputs}")
        self._means = np.zeros((n_means, n_inputs))

    @classmethod
    def from_file(cls, f: HDF5File) -> KMeansMachine:
        ret = cls()
        ret.load(f)
        return ret

    @property
    def n_means(self) -> int:
        return self._means.shape[0]

    @property
    def n_inputs(self) -> int:
        return self._means.shape[1]

    @property
    def means(self) -> np.ndarray:
        return self._means.copy()

    @means.setter
    def means(self, value):
        arr = np.array(value, dtype=np.float64)
        if arr.shape != self._means.shape:
            raise ValueError(f"means must have shape {self._means.shape}, got: {arr.shape}")
        self._means = arr

    def get_mean(self, i: int) -> np.ndarray:
        return self._means[i].copy()

    def set_mean(self, i: int, mean) -> None:
        arr = np.asarray(mean, dtype=np.float64)
        if arr.shape != (self.n_inputs,):
            raise ValueError(f"mean must have shape ({self.n_inputs},), got: {arr.shape}")
        self._means[i] = arr

    def distance(self, x, i: int) -> float:
        """Return the squared Euclidean distance of x to the i-th mean."""
        return float(np.sum((self._means[i] - np.asarray(x)) ** 2))

    def _distances(self, x) -> np.ndarray:
        return np.sum((self._means - np.asarray(x)) ** 2, axis=1)

    def closest_mean(self, x) -> Tuple[int, float]:
        """Return index of and squared distance to the closest mean."""
        dists = self._distances(x)
        idx = int(np.argmin(dists))
        return idx, float(dists[idx])

    def min_distance(self, x) -> float:
        return self.closest_mean(x)[1]

    forward = min_distance

    def variances_and_weights(self, data: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Return per-cluster variances and the fraction of samples in each cluster.

        Samples are assigned to their closest mean, empty clusters get
        zero variance and weight.
        """
        data = np.asarray(data, dtype=np.float64)
        assign = np.array([self.closest_mean(x)[0] for x in data], dtype=np.int64)
        variances = np.zeros_like(self._means)
        weights = np.zeros(self.n_means)
        for j in range(self.n_means):
            members = data[assign == j]
            if len(members):
                variances[j] = np.mean((members - self._means[j]) ** 2, axis=0)
                weights[j] = len(members) / len(data)
        return variances, weights

    def save(self, f: HDF5File) -> None:
        f.set("means", self._means)

    def load(self, f: HDF5File) -> None:
        stored = f.describe("means")[0].type
        if stored.kind != ElementKind.FLOAT64 or stored.rank != 2:
            raise TypeMismatchError("means", ["float64[k,d]"], str(stored))
        self._means = f.read_buffer("means", 0, np.empty(stored.shape))

    def __eq__(self, other) -> bool:
        if not isinstance(other, KMeansMachine):
            return NotImplemented
        return np.array_equal(self._means, other._means)

    def __repr__(self) -> str:
        return f"<KMeansMachine {self.n_means} x {self.n_inputs}>"
