"""
Tests for qclust core components.
"""

import pytest
import numpy as np
from dataclasses import dataclass, field

from qclust.core.operators import (
    Operator, H, X, CNOT, CZ, PhaseGate, Oracle, Unitary, OperatorLibrary
)
from qclust.core.cluster import ClusterState, slot_offsets
from qclust.core.partition import ClusterPartition, QubitLocation
from qclust.core.errors import InvalidArgumentError, InvalidStateError
from qclust.utils.quantum_util import build_vector, equal_up_to_global_phase


def random_state(num_qubits, seed):
    rng = np.random.default_rng(seed)
    vec = rng.normal(size=1 << num_qubits) + 1j * rng.normal(size=1 << num_qubits)
    return vec / np.linalg.norm(vec)


def embed_dense(op_matrix, target_slots, num_slots):
    """Reference embedding: the full 2^k x 2^k matrix of op (x) identity."""
    dim = 1 << num_slots
    target_mask = sum(1 << s for s in target_slots)
    full = np.zeros((dim, dim), dtype=np.complex128)
    for col in range(dim):
        j_in = sum(((col >> s) & 1) << i for i, s in enumerate(target_slots))
        free = col & ~target_mask
        for j_out in range(op_matrix.shape[0]):
            row = free | sum(((j_out >> i) & 1) << s for i, s in enumerate(target_slots))
            full[row, col] += op_matrix[j_out, j_in]
    return full


class TestOperators:
    """Tests for the operator variants."""

    def test_hadamard(self):
        out = H().apply([1, 0])
        assert np.allclose(out, [1 / np.sqrt(2), 1 / np.sqrt(2)])

        out = H().apply([0, 1])
        assert np.allclose(out, [1 / np.sqrt(2), -1 / np.sqrt(2)])

    def test_apply_does_not_mutate_input(self):
        vec = build_vector(0.6, 0.8)
        H().apply(vec)
        CNOT().apply(np.array([1, 2, 3, 4], dtype=np.complex128))
        assert np.allclose(vec, [0.6, 0.8])

    def test_pauli_x(self):
        assert np.allclose(X().apply([0.6, 0.8j]), [0.8j, 0.6])

    def test_cnot_target_is_first_operand(self):
        # a|00> + b|01> + c|10> + d|11>, operand 1 (control) is the high bit
        out = CNOT().apply([1, 2, 3, 4])
        assert np.allclose(out, [1, 2, 4, 3])

    def test_cz(self):
        out = CZ().apply([1, 2, 3, 4])
        assert np.allclose(out, [1, 2, 3, -4])

    def test_phase_gate(self):
        theta = np.pi / 3
        out = PhaseGate(theta).apply([0.6, 0.8])
        assert np.allclose(out, [0.6, 0.8 * np.exp(1j * theta)])

        # pi phase is a Z gate
        assert np.allclose(PhaseGate(np.pi).apply([0.6, 0.8]), [0.6, -0.8])

    def test_batched_apply(self):
        batch = np.array([[1, 0], [0, 1], [0.6, 0.8]], dtype=np.complex128)
        out = H().apply(batch)
        expected = np.array([H().apply(row) for row in batch])
        assert np.allclose(out, expected)

    def test_wrong_length_rejected(self):
        with pytest.raises(InvalidArgumentError):
            H().apply([1, 0, 0, 0])
        with pytest.raises(InvalidArgumentError):
            CNOT().apply([1, 0])

    def test_matrices_are_unitary(self):
        for op in [H(), X(), CNOT(), CZ(), PhaseGate(0.7), Oracle(lambda x: x % 3 == 1, arity=4)]:
            m = op.matrix()
            assert np.allclose(m @ m.conj().T, np.eye(op.dimension))

    def test_cnot_matrix(self):
        expected = np.array([
            [1, 0, 0, 0],
            [0, 1, 0, 0],
            [0, 0, 0, 1],
            [0, 0, 1, 0]
        ])
        assert np.allclose(CNOT().matrix(), expected)


class TestOracle:
    """Tests for the predicate oracle."""

    def test_marks_solution(self):
        oracle = Oracle(lambda x: x == 2, arity=3)
        # x=2, y=0 -> index (2 << 1) | 0
        vec = np.zeros(8)
        vec[4] = 1.0
        out = oracle.apply(vec)
        assert np.isclose(out[5], 1.0)
        assert np.isclose(np.sum(np.abs(out) ** 2), 1.0)

    def test_non_solution_unchanged(self):
        oracle = Oracle(lambda x: x == 2, arity=3)
        for x in (0, 1, 3):
            vec = np.zeros(8, dtype=np.complex128)
            vec[x << 1] = 0.6 - 0.8j
            assert np.allclose(oracle.apply(vec), vec)

    def test_maps_x_y_to_x_y_xor_f(self):
        predicate = lambda x: x in (1, 6)
        oracle = Oracle(predicate, arity=4)
        for x in range(8):
            for y in (0, 1):
                vec = np.zeros(16, dtype=np.complex128)
                vec[(x << 1) | y] = 1j
                out = oracle.apply(vec)
                expected_index = (x << 1) | (y ^ int(predicate(x)))
                assert np.isclose(out[expected_index], 1j)

    def test_designated_target(self):
        oracle = Oracle(lambda x: x == 2, arity=3, target=2)
        # x packs operands 0 and 1, so x=2 is index 2; y is bit 2
        vec = np.zeros(8)
        vec[2] = 1.0
        out = oracle.apply(vec)
        assert np.isclose(out[6], 1.0)
        assert oracle.argument(6) == 2

    def test_is_permutation(self):
        oracle = Oracle(lambda x: x % 2 == 0, arity=3)
        perm = oracle.permutation()
        assert sorted(perm) == list(range(8))

    def test_arity_must_be_at_least_two(self):
        with pytest.raises(InvalidArgumentError):
            Oracle(lambda x: True, arity=1)
        with pytest.raises(InvalidArgumentError):
            Oracle(lambda x: True, arity=3, target=3)

    def test_oracles_compare_by_identity(self):
        first = Oracle(lambda x: x == 1, arity=3)
        second = Oracle(lambda x: x == 2, arity=3)
        assert first != second
        assert first == first
        assert len({first, second}) == 2


class TestUnitaryAndLibrary:
    """Tests for matrix operators and name lookup."""

    def test_unitary_matches_named_gate(self):
        op = Unitary(CNOT().matrix())
        assert op.arity == 2
        vec = random_state(2, seed=1)
        assert np.allclose(op.apply(vec), CNOT().apply(vec))

    def test_non_unitary_rejected(self):
        with pytest.raises(InvalidArgumentError):
            Unitary(np.array([[1, 1], [0, 1]]))
        with pytest.raises(InvalidArgumentError):
            Unitary(np.eye(3))

    def test_get_operator(self):
        assert OperatorLibrary.get_operator("cx") == CNOT()
        assert OperatorLibrary.get_operator("H") == H()
        phase = OperatorLibrary.get_operator("P", theta=0.25)
        assert isinstance(phase, PhaseGate)
        assert phase.theta == 0.25

    def test_unknown_operator(self):
        with pytest.raises(InvalidArgumentError):
            OperatorLibrary.get_operator("toffoli")
        with pytest.raises(InvalidArgumentError):
            OperatorLibrary.get_operator("phase")

    def test_unitaries_compare_by_identity(self):
        op = Unitary(H().matrix())
        other = Unitary(X().matrix())
        assert op != other
        assert op == op
        assert len({op, other}) == 2


class TestClusterState:
    """Tests for the cluster engine."""

    def test_zero_state(self):
        cluster = ClusterState.zero_state(4)
        assert cluster.qubits == [4]
        assert np.allclose(cluster.get_amplitudes(), [1, 0])

    def test_get_amplitudes_is_a_copy(self):
        cluster = ClusterState.zero_state(0)
        amps = cluster.get_amplitudes()
        amps[0] = 0.0
        assert np.allclose(cluster.get_amplitudes(), [1, 0])

    def test_set_amplitudes_is_a_copy(self):
        cluster = ClusterState.zero_state(0)
        vec = build_vector(0.6, 0.8)
        cluster.set_amplitudes(vec)
        vec[0] = 5.0
        assert np.allclose(cluster.get_amplitudes(), [0.6, 0.8])

    def test_set_amplitudes_validation(self):
        cluster = ClusterState(qubits=[0, 1])
        with pytest.raises(InvalidArgumentError):
            cluster.set_amplitudes([1, 0])
        with pytest.raises(InvalidStateError):
            cluster.set_amplitudes([1, 1, 0, 0])
        assert np.allclose(cluster.get_amplitudes(), [1, 0, 0, 0])

    def test_reordered_access(self):
        cluster = ClusterState(qubits=[7, 8], amplitudes=[0, 1, 0, 0])
        # |slot0=1, slot1=0>; viewed with slot 1 as the low bit it is index 2
        assert np.allclose(cluster.get_amplitudes([1, 0]), [0, 0, 1, 0])

        cluster.set_amplitudes([0, 0, 0.6, 0.8], [1, 0])
        assert np.allclose(cluster.get_amplitudes(), [0, 0.6, 0, 0.8])

    def test_slot_offsets(self):
        assert list(slot_offsets([2, 0])) == [0, 4, 1, 5]
        assert list(slot_offsets([])) == [0]

    @pytest.mark.parametrize("targets", [[0], [2], [0, 1], [2, 0], [1, 3], [3, 1, 0]])
    def test_apply_operator_matches_dense_embedding(self, targets):
        k = 4
        op = Unitary(np.linalg.qr(
            np.random.default_rng(len(targets)).normal(size=(1 << len(targets),) * 2)
        )[0])
        state = random_state(k, seed=sum(targets))
        cluster = ClusterState(qubits=list(range(k)), amplitudes=state)

        cluster.apply_operator(op, targets)

        expected = embed_dense(op.matrix(), targets, k) @ state
        assert np.allclose(cluster.get_amplitudes(), expected)

    def test_apply_operator_respects_operand_order(self):
        # |q0=0, q1=1>: CNOT with target slot 0 and control slot 1 flips slot 0
        cluster = ClusterState.basis_state([0, 1], index=2)
        cluster.apply_operator(CNOT(), [0, 1])
        assert np.allclose(cluster.get_amplitudes(), [0, 0, 0, 1])

        # Swapping roles: slot 0 is now control and reads 1, so slot 1 flips
        cluster = ClusterState.basis_state([0, 1], index=1)
        cluster.apply_operator(CNOT(), [1, 0])
        assert np.allclose(cluster.get_amplitudes(), [0, 0, 0, 1])

    def test_apply_operator_bad_slots(self):
        cluster = ClusterState(qubits=[0, 1, 2])
        with pytest.raises(InvalidArgumentError):
            cluster.apply_operator(CNOT(), [0])
        with pytest.raises(InvalidArgumentError):
            cluster.apply_operator(CNOT(), [1, 1])
        with pytest.raises(InvalidArgumentError):
            cluster.apply_operator(H(), [3])

    def test_probability_zero_is_marginal(self):
        state = random_state(3, seed=5)
        cluster = ClusterState(qubits=[0, 1, 2], amplitudes=state)

        for slot in range(3):
            expected = 0.0
            for index in reversed(range(8)):
                if not (index >> slot) & 1:
                    expected += abs(state[index]) ** 2
            assert np.isclose(cluster.probability_zero(slot), expected)

    def test_marginal(self):
        state = random_state(3, seed=9)
        cluster = ClusterState(qubits=[0, 1, 2], amplitudes=state)
        marginal = cluster.marginal([2, 0])
        assert np.isclose(marginal.sum(), 1.0)
        assert np.isclose(marginal[0] + marginal[2], cluster.probability_zero(2))

    def test_measure_collapses(self):
        cluster = ClusterState(qubits=[0, 1], amplitudes=[0.6, 0, 0, 0.8])
        outcome = cluster.measure_slot(0, np.random.default_rng(0))
        expected = [0, 0, 0, 1] if outcome else [1, 0, 0, 0]
        assert np.allclose(cluster.get_amplitudes(), expected)

    def test_factor_out(self):
        cluster = ClusterState(qubits=[3, 5, 9], amplitudes=random_state(3, seed=2))
        outcome = cluster.measure_slot(1, np.random.default_rng(3))
        collapsed = cluster.get_amplitudes()

        singleton, remainder = cluster.factor_out(1, outcome)

        assert singleton.qubits == [5]
        assert np.array_equal(singleton.get_amplitudes(), [0, 1] if outcome else [1, 0])
        assert remainder.qubits == [3, 9]
        assert np.isclose(remainder.norm2(), 1.0)
        assert np.allclose(singleton.tensor(remainder).get_amplitudes([1, 0, 2]), collapsed)

    def test_factor_out_requires_collapse(self):
        cluster = ClusterState(qubits=[0, 1], amplitudes=[0.6, 0.8, 0, 0])
        with pytest.raises(InvalidStateError):
            cluster.factor_out(0, False)
        with pytest.raises(InvalidArgumentError):
            ClusterState.zero_state(0).factor_out(0, False)

    def test_accepted_vectors_are_stored_unit_norm(self):
        amp = np.sqrt(1 + 0.9e-8)
        a = ClusterState(qubits=[0], amplitudes=[amp, 0])
        b = ClusterState.zero_state(1)
        b.set_amplitudes([amp, 0])

        assert np.isclose(a.norm2(), 1.0, rtol=0, atol=1e-14)
        assert np.isclose(b.norm2(), 1.0, rtol=0, atol=1e-14)
        product = a.tensor(b)
        assert np.allclose(product.get_amplitudes(), [1, 0, 0, 0])

    def test_measure_draws_against_renormalised_marginal(self):
        class AlmostOne:
            def random(self):
                return 0.9999999999

        cluster = ClusterState(qubits=[0, 1], amplitudes=[0.6, 0, 0.8, 0])
        # Slightly under-normalised, as after many floating point operations
        cluster.amplitudes *= np.sqrt(1 - 9e-9)

        assert cluster.measure_slot(0, AlmostOne()) is False
        assert np.isclose(cluster.norm2(), 1.0)

    def test_tensor_puts_self_in_low_bits(self):
        a = ClusterState(qubits=[0], amplitudes=[0.6, 0.8])
        b = ClusterState(qubits=[1], amplitudes=[0, 1])
        product = a.tensor(b)
        assert product.qubits == [0, 1]
        assert np.allclose(product.get_amplitudes(), [0, 0, 0.6, 0.8])

    def test_non_unitary_operator_detected_on_measure(self):
        @dataclass(frozen=True)
        class Doubler(Operator):
            arity: int = field(default=1, init=False)

            def _transform(self, vec):
                return 2 * vec

        cluster = ClusterState.zero_state(0)
        cluster.apply_operator(Doubler(), [0])
        with pytest.raises(InvalidStateError):
            cluster.measure_slot(0, np.random.default_rng(0))
        # Nothing was collapsed
        assert np.allclose(cluster.get_amplitudes(), [2, 0])


class TestClusterPartition:
    """Tests for the cluster arena."""

    def test_singletons(self):
        partition = ClusterPartition.singletons(4)
        assert len(partition) == 4
        assert partition.location(2) == QubitLocation(cluster_id=2, slot=0)
        partition.check_invariants()

    def test_out_of_range(self):
        partition = ClusterPartition.singletons(2)
        with pytest.raises(InvalidArgumentError):
            partition.location(2)
        with pytest.raises(InvalidArgumentError):
            partition.location(-1)
        with pytest.raises(InvalidArgumentError):
            ClusterPartition.singletons(0)

    def test_replace(self):
        partition = ClusterPartition.singletons(3)
        merged = partition.cluster_of(2).tensor(partition.cluster_of(0))
        (new_id,) = partition.replace(partition.cluster_ids_for([2, 0]), [merged])

        assert len(partition) == 2
        assert partition.location(2) == QubitLocation(new_id, 0)
        assert partition.location(0) == QubitLocation(new_id, 1)
        assert new_id not in (0, 1, 2)
        partition.check_invariants()

    def test_replace_must_cover_same_qubits(self):
        partition = ClusterPartition.singletons(3)
        with pytest.raises(InvalidStateError):
            partition.replace([0], [ClusterState(qubits=[0, 1])])
        partition.check_invariants()

    def test_cluster_ids_first_encountered_order(self):
        partition = ClusterPartition.singletons(4)
        assert partition.cluster_ids_for([3, 1, 3, 0]) == [3, 1, 0]

    def test_entanglement_graph(self):
        import networkx as nx

        partition = ClusterPartition.singletons(5)
        merged = partition.cluster_of(1).tensor(partition.cluster_of(3)).tensor(partition.cluster_of(4))
        partition.replace([1, 3, 4], [merged])

        graph = partition.entanglement_graph()
        components = sorted(sorted(c) for c in nx.connected_components(graph))
        assert components == [[0], [1, 3, 4], [2]]

    def test_total_norm_product(self):
        partition = ClusterPartition.singletons(3)
        assert np.isclose(partition.total_norm_product(), 1.0)


class TestQuantumUtil:
    """Tests for vector helpers."""

    def test_global_phase(self):
        a = build_vector(0.6, 0.8)
        assert equal_up_to_global_phase(a * 1j, a)
        assert not equal_up_to_global_phase(build_vector(0.6, -0.8), a)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
