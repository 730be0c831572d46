"""Arithmetic on probabilities represented in the log domain."""
import math
import sys

LOG_ZERO: float = -sys.float_info.max
"""Log-domain representation of probability zero."""

LOG_ONE: float = 0.0

LOG_2PI: float = math.log(2 * math.pi)

MINUS_LOG_THRESHOLD: float = -39.14
"""Below this difference, adding the smaller value has no effect in double precision."""


class LogDomainError(ValueError):
    """Invalid operands for a log-domain operation."""

    def __init__(self, op: str, log_a: float, log_b: float, reason: str):
        self.op = op
        self.log_a = log_a
        self.log_b = log_b
        super().__init__(f"{op}({log_a}, {log_b}): {reason}")


def log_add(log_a: float, log_b: float) -> float:
    """Return log(exp(log_a) + exp(log_b))."""
    if log_a < log_b:
        log_a, log_b = log_b, log_a
    minusdif = log_b - log_a
    if math.isnan(minusdif):
        raise LogDomainError("log_add", log_a, log_b, "difference is NaN")
    if minusdif < MINUS_LOG_THRESHOLD:
        return log_a
    return log_a + math.log1p(math.exp(minusdif))


def log_sub(log_a: float, log_b: float) -> float:
    """Return log(exp(log_a) - exp(log_b)), requires log_a >= log_b."""
    if log_a < log_b:
        raise LogDomainError("log_sub", log_a, log_b, "log_a must not be smaller")
    minusdif = log_b - log_a
    if math.isnan(minusdif):
        raise LogDomainError("log_sub", log_a, log_b, "difference is NaN")
    if log_a == log_b:
        return LOG_ZERO
    if minusdif < MINUS_LOG_THRESHOLD:
        return log_a
    return log_a + math.log1p(-math.exp(minusdif))
