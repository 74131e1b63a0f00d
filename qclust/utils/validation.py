"""
Validation utilities for qclust.

Replays an operator sequence on a QubitRegister and on qiskit's exact
statevector simulator and compares the final amplitudes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np

from qclust.core.operators import Operator


OperationList = Sequence[Tuple[Operator, Sequence[int]]]


@dataclass
class ValidationResult:
    """Result of validating qclust against exact simulation."""
    qclust_amplitudes: np.ndarray
    exact_amplitudes: np.ndarray
    max_error: float
    passed: bool
    threshold: float
    details: Dict[str, Any]


def to_qiskit_circuit(num_qubits: int, operations: OperationList):
    """
    Build the equivalent qiskit QuantumCircuit.

    Every operator is inserted as a ``unitary`` instruction on its qubits.
    qiskit treats the first qubit of an instruction as the least significant
    bit of the matrix index, which is the qclust operand convention.
    """
    try:
        from qiskit import QuantumCircuit
    except ImportError:
        raise ImportError("Qiskit is required for validation. "
                          "Install with: pip install qiskit")

    qc = QuantumCircuit(num_qubits)
    for op, qubits in operations:
        qc.unitary(op.matrix(), list(qubits), label=op.name)
    return qc


def validate_against_exact(
    num_qubits: int,
    operations: OperationList,
    threshold: float = 1e-9,
    verbose: bool = False
) -> ValidationResult:
    """
    Validate qclust against an exact qiskit Statevector simulation.
    
    Args:
        num_qubits: Register size
        operations: (operator, qubits) pairs applied in order
        threshold: Maximum allowed absolute amplitude error
        verbose: Print a short report
        
    Returns:
        ValidationResult with both final state vectors
    """
    try:
        from qiskit.quantum_info import Statevector
    except ImportError:
        raise ImportError("Qiskit is required for validation. "
                          "Install with: pip install qiskit")
    
    from qclust.runtime.register import QubitRegister
    
    register = QubitRegister(num_qubits)
    for op, qubits in operations:
        register.do_op(op, list(qubits))
    num_clusters = len(register.clusters)
    
    all_qubits = list(range(num_qubits))
    register.couple(all_qubits)
    ours = register.get_amplitudes(all_qubits)
    
    circuit = to_qiskit_circuit(num_qubits, operations)
    exact = np.asarray(Statevector.from_instruction(circuit).data, dtype=np.complex128)
    
    max_error = float(np.max(np.abs(ours - exact)))
    passed = max_error <= threshold
    
    if verbose:
        print(f"Operations: {len(operations)}, clusters before final couple: {num_clusters}")
        print(f"Max amplitude error: {max_error:.3e}")
        print(f"Result: {'PASSED' if passed else 'FAILED'}")
    
    return ValidationResult(
        qclust_amplitudes=ours,
        exact_amplitudes=exact,
        max_error=max_error,
        passed=passed,
        threshold=threshold,
        details={
            "num_qubits": num_qubits,
            "num_operations": len(operations),
            "num_clusters": num_clusters,
        }
    )
