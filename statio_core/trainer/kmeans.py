"""k-means clustering, see Bishop "Pattern recognition and machine learning", 9.1."""
from typing import Optional

import numpy as np
from overrides import overrides

from ..machine.kmeans import KMeansMachine
from .em import EMTrainer, EMTrainerConfig


class KMeansTrainerConfig(EMTrainerConfig):
    seed: Optional[int] = None
    """Seed for the random choice of the initial means (None = random)."""


class KMeansTrainer(EMTrainer[KMeansMachine, np.ndarray]):
    """Trains a `KMeansMachine` on data given as (samples x inputs) array.

    The means are initialized with distinct random samples,
    then refined with the EM algorithm.
    """

    Config = KMeansTrainerConfig
    config: KMeansTrainerConfig

    def __init__(
        self,
        convergence_threshold: float = 0.001,
        max_iterations: int = 10,
        seed: Optional[int] = None,
    ):
        super().__init__(
            convergence_threshold=convergence_threshold,
            max_iterations=max_iterations,
            seed=seed,
        )
        self._zeroth_order = np.zeros(0)
        self._first_order = np.zeros((0, 0))

    @property
    def seed(self) -> Optional[int]:
        return self.config.seed

    @seed.setter
    def seed(self, value: Optional[int]):
        self.config.seed = value

    def _check_data(self, machine: KMeansMachine, data: np.ndarray) -> np.ndarray:
        data = np.asarray(data, dtype=np.float64)
        if data.ndim != 2 or data.shape[1] != machine.n_inputs:
            msg = f"Expected data of shape (n, {machine.n_inputs}), got: {data.shape}"
            raise ValueError(msg)
        return data

    @overrides
    def initialization(self, machine: KMeansMachine, data: np.ndarray) -> None:
        data = self._check_data(machine, data)
        if len(data) < machine.n_means:
            msg = f"Need at least {machine.n_means} samples, got: {len(data)}"
            raise ValueError(msg)
        rng = np.random.default_rng(self.seed)
        picked = rng.choice(len(data), size=machine.n_means, replace=False)
        machine.means = data[picked]

    @overrides
    def e_step(self, machine: KMeansMachine, data: np.ndarray) -> float:
        data = self._check_data(machine, data)
        self._zeroth_order = np.zeros(machine.n_means)
        self._first_order = np.zeros((machine.n_means, machine.n_inputs))
        if not len(data):
            return 0.0

        total = 0.0
        for x in data:
            idx, dist = machine.closest_mean(x)
            self._zeroth_order[idx] += 1
            self._first_order[idx] += x
            total += dist
        return total / len(data)

    @overrides
    def m_step(self, machine: KMeansMachine, data: np.ndarray) -> None:
        means = machine.means
        filled = self._zeroth_order > 0  # empty clusters keep their mean
        means[filled] = self._first_order[filled] / self._zeroth_order[filled, None]
        machine.means = means
