"""
Seedable Beta/Gamma sampling for Thompson Sampling

The samplers consume only ``rng.random()`` (uniform on [0, 1)) from an
injected ``numpy.random.Generator``, so the exact draw sequence is defined
here rather than by a library's internal algorithm. Two implementations that
follow these steps with the same uniform stream produce identical samples.

Gamma(shape), shape >= 1 (Marsaglia & Tsang, 2000):
    d = shape - 1/3, c = 1 / sqrt(9 d)
    repeat:
        repeat: x = normal(); v = 1 + c x   until v > 0
        v = v^3; u = uniform()
        if u < 1 - 0.0331 x^4:                      return d v
        if ln(u) < 0.5 x^2 + d (1 - v + ln v):      return d v   (u == 0 rejects)

Gamma(shape), 0 < shape < 1:
    g = Gamma(shape + 1)          (drawn first)
    u = uniform()                 (drawn second)
    return g * u^(1 / shape)

normal() is the cosine branch of Box-Muller:
    u1 = 1 - uniform(), u2 = uniform()
    return sqrt(-2 ln u1) cos(2 pi u2)

Beta(alpha, beta) = X / (X + Y) with X ~ Gamma(alpha) drawn before Y ~ Gamma(beta).
"""

import math
from typing import Optional

import numpy as np


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Create the random source used by the samplers"""
    return np.random.default_rng(seed)


def sample_standard_normal(rng: np.random.Generator) -> float:
    # 1 - U keeps u1 in (0, 1] so log never sees zero
    u1 = 1.0 - rng.random()
    u2 = rng.random()
    return math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)


def sample_gamma(shape: float, rng: np.random.Generator) -> float:
    """Draw from Gamma(shape, scale=1)"""
    if shape <= 0:
        raise ValueError(f"Gamma shape must be positive (got {shape})")

    if shape < 1:
        boosted = sample_gamma(shape + 1.0, rng)
        u = rng.random()
        return boosted * u ** (1.0 / shape)

    d = shape - 1.0 / 3.0
    c = 1.0 / math.sqrt(9.0 * d)

    while True:
        x = sample_standard_normal(rng)
        v = 1.0 + c * x
        while v <= 0:
            x = sample_standard_normal(rng)
            v = 1.0 + c * x

        v = v * v * v
        u = rng.random()

        if u < 1.0 - 0.0331 * x * x * x * x:
            return d * v
        if u > 0 and math.log(u) < 0.5 * x * x + d * (1.0 - v + math.log(v)):
            return d * v


def sample_beta(alpha: float, beta: float, rng: np.random.Generator) -> float:
    """Draw a posterior success probability from Beta(alpha, beta)"""
    x = sample_gamma(alpha, rng)
    y = sample_gamma(beta, rng)
    total = x + y
    if total == 0:
        # Both draws underflowed (tiny shapes); fall back to the prior mean
        return alpha / (alpha + beta)
    return x / total
