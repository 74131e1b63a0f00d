"""Non-collapsing observables."""

from qclust.observables.marginals import (
    extract_marginals,
    joint_distribution,
    bitstring_distribution,
)
from qclust.observables.sampler import sample_bitstrings, estimate_counts

__all__ = [
    "extract_marginals",
    "joint_distribution",
    "bitstring_distribution",
    "sample_bitstrings",
    "estimate_counts",
]
