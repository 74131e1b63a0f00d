"""Core qclust components: operators, cluster engine, partition, config and errors."""

from qclust.core.config import SimulatorConfig, DEFAULT_CONFIG
from qclust.core.errors import QclustError, InvalidArgumentError, InvalidStateError
from qclust.core.operators import (
    Operator,
    H,
    X,
    CNOT,
    CZ,
    PhaseGate,
    Oracle,
    Unitary,
    OperatorLibrary,
)
from qclust.core.cluster import ClusterState
from qclust.core.partition import ClusterPartition, QubitLocation

__all__ = [
    # Configuration
    "SimulatorConfig",
    "DEFAULT_CONFIG",
    # Errors
    "QclustError",
    "InvalidArgumentError",
    "InvalidStateError",
    # Operators
    "Operator",
    "H",
    "X",
    "CNOT",
    "CZ",
    "PhaseGate",
    "Oracle",
    "Unitary",
    "OperatorLibrary",
    # Clusters
    "ClusterState",
    "ClusterPartition",
    "QubitLocation",
]
