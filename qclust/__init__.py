"""
qclust - entangled-cluster state-vector simulation

A pure-state qubit register simulator that stores each entangled group of
qubits as its own amplitude vector, so memory follows cluster size instead
of register size.
"""

from qclust.core import (
    SimulatorConfig,
    InvalidArgumentError,
    InvalidStateError,
    H,
    X,
    CNOT,
    CZ,
    PhaseGate,
    Oracle,
    Unitary,
)
from qclust.runtime.register import QubitRegister

__version__ = "0.1.0"
__all__ = [
    "QubitRegister",
    "SimulatorConfig",
    "InvalidArgumentError",
    "InvalidStateError",
    "H",
    "X",
    "CNOT",
    "CZ",
    "PhaseGate",
    "Oracle",
    "Unitary",
]
