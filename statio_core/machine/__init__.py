"""Statistical machines that can be stored in HDF5 files."""
from .gaussian import Gaussian
from .kmeans import KMeansMachine
from .log import LOG_ZERO, LogDomainError, log_add, log_sub

__all__ = ["Gaussian", "KMeansMachine", "LOG_ZERO", "LogDomainError", "log_add", "log_sub"]
