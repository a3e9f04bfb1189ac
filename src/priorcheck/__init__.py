"""
Prior predictive checks for the thesis' hierarchical logistic regression models.
"""
from .effects import (InvalidArgument, PriorConfig, effect_size, invlogit,
                      simulate_config, simulate_effects)

__version__ = "0.1.0"
