"""Generic expectation-maximization training loop."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import ClassVar, Generic, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import Annotated

logger = logging.getLogger(__name__)

M = TypeVar("M")
D = TypeVar("D")


class EMTrainerConfig(BaseModel):
    """Settings shared by all EM trainers."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    convergence_threshold: Annotated[float, Field(ge=0)] = 0.001
    """Training stops when the relative change of the average output is below this."""

    max_iterations: Annotated[int, Field(ge=0)] = 10
    """Maximal number of M/E step iterations after the initial E step."""


class EMTrainer(ABC, Generic[M, D]):
    """Base class of trainers for a machine of type M using data of type D.

    Subclasses implement the steps, `train` runs them until convergence.
    """

    Config: ClassVar[Type[EMTrainerConfig]] = EMTrainerConfig

    def __init__(self, **kwargs):
        self.config = self.Config(**kwargs)

    @property
    def convergence_threshold(self) -> float:
        return self.config.convergence_threshold

    @convergence_threshold.setter
    def convergence_threshold(self, value: float):
        self.config.convergence_threshold = value

    @property
    def max_iterations(self) -> int:
        return self.config.max_iterations

    @max_iterations.setter
    def max_iterations(self, value: int):
        self.config.max_iterations = value

    @abstractmethod
    def initialization(self, machine: M, data: D) -> None:
        """Prepare machine and trainer state, called once before the EM loop."""

    @abstractmethod
    def e_step(self, machine: M, data: D) -> float:
        """Update the sufficient statistics given the machine parameters.

        Returns the average output of the machine across the data,
        which is used to detect convergence.
        """

    @abstractmethod
    def m_step(self, machine: M, data: D) -> None:
        """Update the machine parameters given the sufficient statistics."""

    def train(self, machine: M, data: D) -> float:
        """Train the machine and return the final average output."""
        self.initialization(machine, data)
        average_output = self.e_step(machine, data)

        for i in range(self.max_iterations):
            previous = average_output
            self.m_step(machine, data)
            average_output = self.e_step(machine, data)
            logger.debug("Iteration %d: average output %f", i + 1, average_output)

            change = abs(previous - average_output)
            if previous != 0:
                change /= abs(previous)
            if change <= self.convergence_threshold:
                break

        return average_output
