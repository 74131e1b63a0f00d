"""
qclust qubit register.

The register is the client-facing partition manager. It keeps every qubit
in exactly one cluster, couples clusters when an operator spans several of
them and splits measured qubits back out into singletons.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple, Union

import networkx as nx
import numpy as np

from qclust.core.cluster import ClusterState
from qclust.core.config import DEFAULT_CONFIG, SimulatorConfig
from qclust.core.errors import InvalidArgumentError
from qclust.core.operators import Operator
from qclust.core.partition import ClusterPartition
from qclust.utils.quantum_util import format_vector


logger = logging.getLogger(__name__)

QubitArgs = Tuple[Union[int, Sequence[int]], ...]


def _normalize_qubits(qubits: QubitArgs) -> List[int]:
    """Accept either ``f(3, 1)`` or ``f([3, 1])``."""
    if len(qubits) == 1 and not isinstance(qubits[0], (int, np.integer)):
        return [int(q) for q in qubits[0]]
    return [int(q) for q in qubits]


class QubitRegister:
    """
    Register of qubits stored as independent clusters.

    Usage:
        reg = QubitRegister(3, config=SimulatorConfig(seed=7))
        reg.do_op(H(), 0)
        reg.do_op(CNOT(), 1, 0)     # target 1, control 0
        bit = reg.measure(0)

    Attributes:
        num_qubits: Number of qubits
        config: Simulator configuration
        rng: Random source for measurements
        partition: Cluster arena and qubit index table
    """

    def __init__(
        self,
        num_qubits: int,
        config: Optional[SimulatorConfig] = None,
        rng=None
    ):
        self.config = config or DEFAULT_CONFIG
        self.rng = rng if rng is not None else self.config.make_rng()
        self.partition = ClusterPartition.singletons(num_qubits, self.config.epsilon)

    @property
    def num_qubits(self) -> int:
        return self.partition.num_qubits

    @property
    def clusters(self) -> List[Tuple[int, ...]]:
        """Snapshot of the qubits of every live cluster, in slot order."""
        return [tuple(c.qubits) for c in self.partition]

    def cluster_size(self, qubit: int) -> int:
        return self.partition.cluster_of(qubit).size

    def cluster_qubits(self, qubit: int) -> Tuple[int, ...]:
        return tuple(self.partition.cluster_of(qubit).qubits)

    def entanglement_graph(self) -> nx.Graph:
        return self.partition.entanglement_graph()

    def _check_distinct(self, qubits: List[int]) -> None:
        for q in qubits:
            self.partition.check_qubit(q)
        if len(set(qubits)) != len(qubits):
            raise InvalidArgumentError(f"Qubits must be distinct, got {qubits}")

    # ------------------------------------------------------------------
    # Coupling
    # ------------------------------------------------------------------

    def _merged(self, cluster_ids: List[int]) -> ClusterState:
        """Tensor product of the given clusters, not yet in the partition."""
        merged = self.partition.clusters[cluster_ids[0]]
        for cid in cluster_ids[1:]:
            merged = merged.tensor(self.partition.clusters[cid])
        return merged

    def couple(self, *qubits: Union[int, Sequence[int]]) -> QubitRegister:
        """
        Merge the clusters of ``qubits`` into one.

        The new slot order is the concatenation of the touched clusters'
        qubit lists in first-encountered order, and the first cluster
        occupies the low bits of the new basis index.
        """
        qubit_list = _normalize_qubits(qubits)
        for q in qubit_list:
            self.partition.check_qubit(q)

        cluster_ids = self.partition.cluster_ids_for(qubit_list)
        if len(cluster_ids) <= 1:
            return self

        merged = self._merged(cluster_ids)
        logger.debug("Coupling clusters %s into %d qubits", cluster_ids, merged.size)
        self.partition.replace(cluster_ids, [merged])
        return self

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def do_op(self, op: Operator, *qubits: Union[int, Sequence[int]]) -> QubitRegister:
        """
        Apply ``op`` to the given qubits; operand i is ``qubits[i]``.

        Qubits in different clusters are coupled first, unless the config
        disables auto-coupling, in which case that is an error. The merged
        cluster only replaces the old ones once ``op`` has been applied, so
        a failing operator leaves the register untouched.
        """
        qubit_list = _normalize_qubits(qubits)
        if len(qubit_list) != op.arity:
            raise InvalidArgumentError(
                f"{op.name} has arity {op.arity} but got {len(qubit_list)} qubits"
            )
        self._check_distinct(qubit_list)

        cluster_ids = self.partition.cluster_ids_for(qubit_list)
        if len(cluster_ids) == 1:
            cluster = self.partition.clusters[cluster_ids[0]]
            slots = [self.partition.location(q).slot for q in qubit_list]
            cluster.apply_operator(op, slots)
            return self

        if not self.config.auto_couple:
            raise InvalidArgumentError(
                f"Qubits {qubit_list} span several clusters; couple them first"
            )
        merged = self._merged(cluster_ids)
        merged.apply_operator(op, [merged.slot_of(q) for q in qubit_list])
        logger.debug("Coupling clusters %s into %d qubits", cluster_ids, merged.size)
        self.partition.replace(cluster_ids, [merged])
        return self

    # ------------------------------------------------------------------
    # Measurement
    # ------------------------------------------------------------------

    def measure(self, qubit: int) -> bool:
        """
        Measure one qubit, collapsing its cluster.

        The measured qubit always ends up alone in a singleton cluster
        holding exactly (1, 0) or (0, 1).

        Returns:
            True for |1>, False for |0>
        """
        location = self.partition.location(qubit)
        cluster = self.partition.clusters[location.cluster_id]
        outcome = cluster.measure_slot(location.slot, self.rng)

        if cluster.size == 1:
            singleton = ClusterState.basis_state([qubit], int(outcome), self.config.epsilon)
            self.partition.replace([location.cluster_id], [singleton])
        else:
            singleton, remainder = cluster.factor_out(location.slot, outcome)
            logger.debug("Split qubit %d out of cluster %s", qubit, cluster.qubits)
            self.partition.replace([location.cluster_id], [remainder, singleton])
        return outcome

    def measure_all(self, *qubits: Union[int, Sequence[int]]) -> List[bool]:
        """Measure each qubit in order (all qubits if none are given)."""
        qubit_list = _normalize_qubits(qubits) if qubits else list(range(self.num_qubits))
        return [self.measure(q) for q in qubit_list]

    def probability(self, qubit: int) -> float:
        """Probability of measuring |1> on ``qubit``, without collapsing."""
        location = self.partition.location(qubit)
        cluster = self.partition.clusters[location.cluster_id]
        return 1.0 - cluster.probability_zero(location.slot)

    # ------------------------------------------------------------------
    # Amplitude access
    # ------------------------------------------------------------------

    def _single_cluster(self, qubit_list: List[int]) -> Tuple[ClusterState, List[int]]:
        """The one cluster holding exactly ``qubit_list``, and their slots."""
        self._check_distinct(qubit_list)
        if not qubit_list:
            raise InvalidArgumentError("At least one qubit is required")
        cluster_ids = self.partition.cluster_ids_for(qubit_list)
        if len(cluster_ids) != 1:
            raise InvalidArgumentError(
                f"Qubits {qubit_list} span {len(cluster_ids)} clusters; couple them first"
            )
        cluster = self.partition.clusters[cluster_ids[0]]
        if cluster.size != len(qubit_list):
            raise InvalidArgumentError(
                f"Qubits {qubit_list} are part of cluster {cluster.qubits}; "
                "amplitudes are only defined for a whole cluster"
            )
        slots = [self.partition.location(q).slot for q in qubit_list]
        return cluster, slots

    def get_amplitudes(self, *qubits: Union[int, Sequence[int]]) -> np.ndarray:
        """
        Copy of the amplitudes of a whole cluster.

        Bit i of the returned vector's index is ``qubits[i]``.
        """
        cluster, slots = self._single_cluster(_normalize_qubits(qubits))
        return cluster.get_amplitudes(slots)

    def set_amplitudes(self, vector, *qubits: Union[int, Sequence[int]]) -> QubitRegister:
        """
        Overwrite the amplitudes of a whole cluster.

        Uses the same ordering as ``get_amplitudes``.
        """
        cluster, slots = self._single_cluster(_normalize_qubits(qubits))
        cluster.set_amplitudes(vector, slots)
        return self

    def print_bits(self, *qubits: Union[int, Sequence[int]]) -> str:
        """
        Diagnostic dump of the amplitudes of a whole cluster.

        Kets are written with the most significant qubit first, i.e. the
        last qubit given is the leftmost digit.
        """
        qubit_list = _normalize_qubits(qubits)
        amps = self.get_amplitudes(qubit_list)
        header = "{" + ",".join(str(q) for q in qubit_list) + "}:"
        return header + "\n " + format_vector(amps) + "\n"

    def __repr__(self) -> str:
        return f"QubitRegister(qubits={self.num_qubits}, clusters={self.clusters})"
