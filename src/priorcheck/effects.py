"""
Effect-size simulation for a sum-coded binary predictor

Given a Normal prior on the intercept and on the slope of a Bernoulli-logistic
model, draw latent parameters and push them through the inverse logit to get
the prior distribution of the difference in success probability between the
two levels of the predictor (+0.5 vs -0.5).
"""
import math
import numbers
from dataclasses import dataclass

import numpy as np
from scipy.special import expit


_BELOW_ONE = np.nextafter(1.0, 0.0)


class InvalidArgument(ValueError):
    """Raised for a non-positive sample count or an unusable standard deviation."""


@dataclass(frozen=True)
class PriorConfig:
    """One cell of the prior grid"""

    intercept_mean: float = 0.0
    intercept_sd: float = 1.5
    slope_sd: float = 1.0

    def __post_init__(self):
        _check_prior(self.intercept_mean, self.intercept_sd, self.slope_sd)


def check_count(n):
    """Raise InvalidArgument unless n is a positive integer"""
    if isinstance(n, bool) or not isinstance(n, numbers.Integral):
        raise InvalidArgument(f"Number of draws must be an integer, got {n!r}")
    if n <= 0:
        raise InvalidArgument(f"Number of draws must be positive, got {n}")


def _check_real(name, value):
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidArgument(f"{name} must be a number, got {value!r}")


def _check_prior(intercept_mean, intercept_sd, slope_sd):
    _check_real("Intercept mean", intercept_mean)
    _check_real("Intercept SD", intercept_sd)
    _check_real("Slope SD", slope_sd)
    if not math.isfinite(intercept_mean):
        raise InvalidArgument(f"Intercept mean must be finite, got {intercept_mean}")
    # An intercept SD of exactly zero is a point mass, slope SD has to be positive
    if not (math.isfinite(intercept_sd) and intercept_sd >= 0):
        raise InvalidArgument(f"Intercept SD must be non-negative, got {intercept_sd}")
    if not (math.isfinite(slope_sd) and slope_sd > 0):
        raise InvalidArgument(f"Slope SD must be positive, got {slope_sd}")


def invlogit(x):
    """Inverse logit (logistic sigmoid)

    scipy's expit saturates to 0 or 1 instead of overflowing in exp.
    """
    return expit(x)


def effect_size(alpha, beta, contrast=0.5):
    """Difference in success probability between the high and low level

    Parameters:
    -----------
    alpha : float or array-like
        Intercept on the log-odds scale
    beta : float or array-like
        Slope of the sum-coded predictor
    contrast : float
        Absolute value of the predictor coding (0.5 for +0.5/-0.5)

    Returns:
    --------
    float or np.ndarray
        invlogit(alpha + beta * contrast) - invlogit(alpha - beta * contrast)
        clipped to the open interval (-1, 1)
    """
    alpha = np.asarray(alpha, dtype=float)
    beta = np.asarray(beta, dtype=float)
    p_high = invlogit(alpha + beta * contrast)
    p_low = invlogit(alpha + beta * -contrast)
    # Saturated probabilities can difference to exactly +-1
    return np.clip(p_high - p_low, -_BELOW_ONE, _BELOW_ONE)


def simulate_effects(n, intercept_mean, intercept_sd, slope_sd, rng=None):
    """Simulate the prior distribution of the effect size

    Parameters:
    -----------
    n : int
        Number of Monte Carlo draws
    intercept_mean : float
        Mean of the Normal prior on the intercept
    intercept_sd : float
        Standard deviation of the intercept prior (0 gives a fixed intercept)
    slope_sd : float
        Standard deviation of the Normal(0, slope_sd) prior on the slope
    rng : np.random.Generator, int, np.random.SeedSequence or None
        Random source. None draws fresh entropy, so results are not reproducible.

    Returns:
    --------
    np.ndarray
        Read-only array of n effect sizes, each in (-1, 1)

    Raises:
    -------
    InvalidArgument
        If n is not a positive integer or a standard deviation is out of range
    """
    check_count(n)
    _check_prior(intercept_mean, intercept_sd, slope_sd)
    rng = np.random.default_rng(rng)

    alpha = rng.normal(intercept_mean, intercept_sd, size=n)
    beta = rng.normal(0.0, slope_sd, size=n)

    effects = effect_size(alpha, beta)
    effects.setflags(write=False)
    return effects


def simulate_config(config, n, rng=None):
    """Run simulate_effects for a PriorConfig"""
    return simulate_effects(n,
                            config.intercept_mean,
                            config.intercept_sd,
                            config.slope_sd,
                            rng=rng)
