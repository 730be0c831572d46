"""Multivariate Gaussian with diagonal covariance."""
from __future__ import annotations

from typing import Union

import numpy as np

from ..io import ElementKind, HDF5File, TypeDescriptor
from .log import LOG_2PI


def _as_vector(value, n: int, what: str) -> np.ndarray:
    arr = np.array(value, dtype=np.float64)
    if arr.shape != (n,):
        raise ValueError(f"{what} must have shape ({n},), got: {arr.shape}")
    return arr


class Gaussian:
    """Gaussian density with diagonal covariance and variance flooring.

    Variances are never smaller than the variance thresholds: whenever the
    variance or the thresholds change, too small variances are raised to
    their threshold.
    """

    def __init__(self, n_inputs: int = 0):
        self.resize(n_inputs)

    @classmethod
    def from_file(cls, f: HDF5File) -> Gaussian:
        """Return a Gaussian loaded from the working group of the file."""
        ret = cls()
        ret.load(f)
        return ret

    def resize(self, n_inputs: int) -> None:
        """Reset to a standard normal distribution of given dimensionality."""
        if n_inputs < 0:
            raise ValueError(f"Invalid number of inputs: {n_inputs}")
        self._n_inputs = int(n_inputs)
        self._mean = np.zeros(n_inputs)
        self._variance = np.ones(n_inputs)
        self._variance_thresholds = np.zeros(n_inputs)
        self._precompute()

    def _precompute(self):
        self._g_norm = float(
            self._n_inputs * LOG_2PI + np.sum(np.log(self._variance))
        )

    @property
    def n_inputs(self) -> int:
        return self._n_inputs

    @n_inputs.setter
    def n_inputs(self, value: int):
        self.resize(value)

    @property
    def mean(self) -> np.ndarray:
        return self._mean.copy()

    @mean.setter
    def mean(self, value):
        self._mean = _as_vector(value, self._n_inputs, "mean")

    @property
    def variance(self) -> np.ndarray:
        return self._variance.copy()

    @variance.setter
    def variance(self, value):
        var = _as_vector(value, self._n_inputs, "variance")
        self._variance = np.maximum(var, self._variance_thresholds)
        self._precompute()

    @property
    def variance_thresholds(self) -> np.ndarray:
        return self._variance_thresholds.copy()

    @variance_thresholds.setter
    def variance_thresholds(self, value: Union[float, np.ndarray]):
        """Set the thresholds, a scalar is a factor applied to the current variance."""
        if np.ndim(value) == 0:
            value = self._variance * float(value)
        thr = _as_vector(value, self._n_inputs, "variance_thresholds")
        self._variance_thresholds = thr
        self.variance = self._variance  # re-apply flooring

    @property
    def g_norm(self) -> float:
        """Normalization constant: n_inputs * log(2 pi) + log det(covariance)."""
        return self._g_norm

    def log_likelihood(self, x) -> float:
        """Return the log density at the given point."""
        x = _as_vector(x, self._n_inputs, "input")
        z = np.sum((x - self._mean) ** 2 / self._variance)
        return float(-0.5 * (self._g_norm + z))

    def save(self, f: HDF5File) -> None:
        """Store the parameters in the working group of the file."""
        f.set("mean", self._mean)
        f.set("variance", self._variance)
        f.set("variance_thresholds", self._variance_thresholds)
        f.set("g_norm", np.float64(self._g_norm))
        f.set("n_inputs", np.int64(self._n_inputs))

    def load(self, f: HDF5File) -> None:
        """Load the parameters from the working group of the file.

        If anything is missing or has the wrong type, the error is raised
        and the machine is left unchanged.
        """
        n = int(f.read("n_inputs", expected=TypeDescriptor(ElementKind.INT64)))
        vectors = {}
        for name in ["mean", "variance", "variance_thresholds"]:
            vectors[name] = f.read_buffer(name, 0, np.empty(n, dtype=np.float64))
        g_norm = f.read("g_norm", expected=TypeDescriptor(ElementKind.FLOAT64))

        self._n_inputs = n
        self._mean = vectors["mean"]
        self._variance = vectors["variance"]
        self._variance_thresholds = vectors["variance_thresholds"]
        self._g_norm = float(g_norm)

    def copy(self) -> Gaussian:
        ret = type(self)()
        ret._n_inputs = self._n_inputs
        ret._mean = self._mean.copy()
        ret._variance = self._variance.copy()
        ret._variance_thresholds = self._variance_thresholds.copy()
        ret._g_norm = self._g_norm
        return ret

    def __eq__(self, other) -> bool:
        if not isinstance(other, Gaussian):
            return NotImplemented
        return (
            self._n_inputs == other._n_inputs
            and np.array_equal(self._mean, other._mean)
            and np.array_equal(self._variance, other._variance)
            and np.array_equal(self._variance_thresholds, other._variance_thresholds)
        )

    def __repr__(self) -> str:
        return f"<Gaussian n_inputs={self._n_inputs} mean={self._mean} variance={self._variance}>"
