"""
fieldrand: randomization and design-based inference for field experiments.

Public API is re-exported here for convenience.
"""

from importlib.metadata import PackageNotFoundError, version as _version

# ---- Version ----
try:
    __version__ = _version("fieldrand")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

from .errors import InvalidArgument  # noqa: F401

# Assignment designs
from .assign import (  # noqa: F401
    simple_assign,
    assign,
    factorial_assign,
    multi_arm_assign,
    block_assign,
    block_probabilities,
    cluster_assign,
    waitlist_assign,
    treated_in_period,
)

# Estimation
from .ipw import (  # noqa: F401
    diff_in_means,
    ipw_weights,
    ipw_estimate,
    ipw_effect,
    IPWResult,
    simulated_probabilities,
    interior_mask,
)

# Inference
from .inference import (  # noqa: F401
    randomization_inference,
    exact_randomization_inference,
    RandomizationInferenceResult,
)

# Sanity checks
from .sanity import (  # noqa: F401
    check_assignment_size,
    assignment_counts,
    standardized_mean_diff,
    balance_report,
)

from .utils import keyed  # noqa: F401

# Synthetic data for examples
from .simulate import (  # noqa: F401
    potential_outcomes,
    reveal_outcomes,
    graded_probabilities,
)

__all__ = [
    "__version__",
    "InvalidArgument",
    # assign
    "simple_assign",
    "assign",
    "factorial_assign",
    "multi_arm_assign",
    "block_assign",
    "block_probabilities",
    "cluster_assign",
    "waitlist_assign",
    "treated_in_period",
    # ipw
    "diff_in_means",
    "ipw_weights",
    "ipw_estimate",
    "ipw_effect",
    "IPWResult",
    "simulated_probabilities",
    "interior_mask",
    # inference
    "randomization_inference",
    "exact_randomization_inference",
    "RandomizationInferenceResult",
    # sanity
    "check_assignment_size",
    "assignment_counts",
    "standardized_mean_diff",
    "balance_report",
    # simulate
    "potential_outcomes",
    "reveal_outcomes",
    "graded_probabilities",
    # utils
    "keyed",
]
