"""
Cluster bookkeeping demo using qclust.

Prepares Bell pairs across a wide register, shows that each pair is kept
as its own 4-amplitude cluster, then measures and watches the clusters
split back into singletons.
"""

import logging

import numpy as np

from qclust import QubitRegister, SimulatorConfig, H, CNOT
from qclust.observables import bitstring_distribution, estimate_counts
from qclust.utils.logging_config import setup_logging


def prepare_bell_pairs(num_pairs: int, seed: int = 0) -> QubitRegister:
    """
    Entangle qubits (2i, 2i+1) for every pair i.

    Args:
        num_pairs: Number of Bell pairs
        seed: Seed for measurement randomness

    Returns:
        Register of 2 * num_pairs qubits
    """
    reg = QubitRegister(2 * num_pairs, config=SimulatorConfig(seed=seed))
    for i in range(num_pairs):
        control, target = 2 * i, 2 * i + 1
        reg.do_op(H(), control)
        reg.do_op(CNOT(), target, control)
    return reg


def demo_bell_pairs():
    num_pairs = 20
    reg = prepare_bell_pairs(num_pairs, seed=42)

    sizes = [len(c) for c in reg.clusters]
    stored = sum(2 ** s for s in sizes)
    print(f"{reg.num_qubits} qubits in {len(sizes)} clusters")
    print(f"Stored amplitudes: {stored} (a dense vector would need 2^{reg.num_qubits})")

    print("\nFirst pair:")
    print(reg.print_bits(0, 1))

    print("Distribution over qubits 0, 1, 2, 3:")
    for bits, p in bitstring_distribution(reg, [0, 1, 2, 3]).items():
        if p > 1e-12:
            print(f"  {bits}: {p:.3f}")

    counts = estimate_counts(reg, [0, 1], num_samples=1000, seed=7)
    print(f"\nSampled counts on the first pair: {counts}")

    outcome = reg.measure(0)
    print(f"\nMeasured qubit 0 -> {int(outcome)}")
    print(f"Qubit 1 now reads 1 with probability {reg.probability(1):.3f}")
    print(f"Clusters: {len(reg.clusters)}")

    graph = reg.entanglement_graph()
    print(f"Entanglement graph: {graph.number_of_edges()} edges")

    assert np.isclose(reg.probability(1), float(outcome))


if __name__ == "__main__":
    setup_logging(level=logging.DEBUG)
    demo_bell_pairs()
