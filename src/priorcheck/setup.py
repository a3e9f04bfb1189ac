"""
Prior Predictive Checks - Common Setup

This module provides the common imports, the reference prior grid and the
helper functions needed by the chapter models.
"""
import pymc as pm
import arviz as az
import numpy as np
import pandas as pd
import scipy as scipy
import pytensor
import pytensor.tensor as pt
import sys

# Number of Monte Carlo draws per grid cell
N_DRAWS = 10000

# Intercept prior shared by every chapter: Normal(mean, sd) on the log-odds scale
INTERCEPT_PRIOR = (0.0, 1.5)

# Candidate standard deviations for fixed effects (slopes) and random effects
SLOPE_SDS = (1.0, 1.5, 2.0)
RANDOM_SDS = (0.5, 1.0, 1.5)

# Sum coding for binary predictors
LEVELS = (-0.5, 0.5)

HDI_PROB = 0.89

# Inverse link for model code
ilink = pm.math.invlogit


def print_version_info():
    """Print version information for PyMC and ArviZ"""
    print(f"Running python {sys.version}")
    print(f"Running on PyMC v{pm.__version__}")
    print(f"Running on PyTensor v{pytensor.__version__}")
    print(f"Running on ArviZ v{az.__version__}")
    print(f"Running on numpy v{np.__version__}")
    print(f"Running on scipy v{scipy.__version__}")
    print(f"Running on pandas v{pd.__version__}")

if __name__ == "__main__":
    print_version_info()
