"""
config.py
=========
Default parameters of the decomposition engine.
"""

# Decomposition defaults
DEFAULT_MODE = "logadd"
DEFAULT_METHOD = "cma"

# Grid length (in bandwidths) for infinite-support kernels without an
# explicit length; each keeps the truncated tail weights below 1e-15
INFINITE_SUPPORT_SPAN = {
    "logistic": 71,
    "sigmoid": 71,
    "gaussian": 19,
    "exponential": 135,
    "silverman": 98,
}

# Rehomme-Ladiray defaults
RL_DEFAULT_ORDER = 3
RL_DEFAULT_CONVEXITY = 0.5
# First row of the Gram matrix of the third difference operator
RL_ROUGHNESS_ROW = (20.0, -15.0, 6.0, -1.0)

# Spencer 15-term building blocks
SPENCER_SHAPE = (-3.0, 3.0, 4.0, 3.0, -3.0)
SPENCER_WINDOWS = (5, 4, 4)

# Default trend-filter arguments
HP_LOG_INTERCEPT = -7.10636
HP_LOG_SLOPE = 5.91863781313348
SPLINE_ROUGHNESS_SCALE = 0.6
