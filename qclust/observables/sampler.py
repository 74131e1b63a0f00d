"""
Bitstring sampling for qclust.

Samples are drawn from the exact joint distribution and leave the register
untouched; use QubitRegister.measure for collapsing measurements.
"""

from __future__ import annotations

from typing import Dict, List, Optional
import numpy as np
from collections import Counter

from qclust.observables.marginals import index_to_bitstring, joint_distribution
from qclust.runtime.register import QubitRegister


def sample_bitstrings(
    register: QubitRegister,
    qubits: List[int],
    num_samples: int,
    seed: Optional[int] = None
) -> List[str]:
    """
    Sample bitstrings over ``qubits`` without collapsing the register.
    
    Args:
        register: Register to sample from
        qubits: Qubit indices; qubits[0] is the first character
        num_samples: Number of bitstrings to draw
        seed: Random seed for reproducibility
        
    Returns:
        List of sampled bitstrings
    """
    rng = np.random.default_rng(seed)
    probs = joint_distribution(register, qubits)
    probs = probs / probs.sum()
    indices = rng.choice(len(probs), size=num_samples, p=probs)
    return [index_to_bitstring(int(i), len(qubits)) for i in indices]


def estimate_counts(
    register: QubitRegister,
    qubits: List[int],
    num_samples: int,
    seed: Optional[int] = None
) -> Dict[str, int]:
    """
    Sample and return counts (like Qiskit's counts format).
    
    Returns:
        Dictionary mapping bitstring -> count
    """
    samples = sample_bitstrings(register, qubits, num_samples, seed)
    return dict(Counter(samples))
