"""
Marginal distribution extraction for qclust.

Clusters are independent, so the joint distribution of any set of qubits is
the product of each cluster's marginal over its selected qubits. Nothing
here couples or collapses the register.
"""

from __future__ import annotations

from typing import Dict, List
import numpy as np

from qclust.core.cluster import slot_offsets
from qclust.core.errors import InvalidArgumentError
from qclust.runtime.register import QubitRegister


def extract_marginals(register: QubitRegister, qubits: List[int]) -> Dict[int, np.ndarray]:
    """
    Extract single-qubit outcome distributions.
    
    Returns:
        Dictionary mapping qubit -> [p(0), p(1)] probability array
    """
    marginals = {}
    for q in qubits:
        p1 = register.probability(q)
        marginals[q] = np.array([1.0 - p1, p1])
    return marginals


def joint_distribution(register: QubitRegister, qubits: List[int]) -> np.ndarray:
    """
    Joint outcome distribution of ``qubits``.
    
    Args:
        register: Register to read
        qubits: Distinct qubit indices
        
    Returns:
        Array of length 2^len(qubits); entry j is the probability that
        qubits[i] reads bit i of j for every i
    """
    qubits = [int(q) for q in qubits]
    if len(set(qubits)) != len(qubits):
        raise InvalidArgumentError(f"Qubits must be distinct, got {qubits}")
    if not qubits:
        return np.ones(1)
    
    partition = register.partition
    grouped: List[int] = []
    joint = np.ones(1)
    for cid in partition.cluster_ids_for(qubits):
        cluster = partition.clusters[cid]
        members = [q for q in qubits if partition.location(q).cluster_id == cid]
        marginal = cluster.marginal([partition.location(q).slot for q in members])
        # Earlier clusters stay in the low bits.
        joint = np.kron(marginal, joint)
        grouped.extend(members)
    
    position = {q: i for i, q in enumerate(grouped)}
    return joint[slot_offsets([position[q] for q in qubits])]


def bitstring_distribution(register: QubitRegister, qubits: List[int]) -> Dict[str, float]:
    """
    Probability of every bitstring over ``qubits``.
    
    Bitstrings list qubits[0] first.
    """
    n = len(qubits)
    if n > 20:
        raise InvalidArgumentError(f"Cannot enumerate a distribution over {n} qubits. "
                                   "Use sampling instead.")
    probs = joint_distribution(register, qubits)
    return {index_to_bitstring(i, n): float(p) for i, p in enumerate(probs)}


def index_to_bitstring(index: int, num_bits: int) -> str:
    """Bit 0 of ``index`` is the first character."""
    return ''.join(str((index >> b) & 1) for b in range(num_bits))
