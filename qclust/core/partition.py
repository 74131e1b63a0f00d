"""
Cluster partition for qclust.

The partition is an arena of clusters addressed by small integer ids plus
an index table from every global qubit to its (cluster id, local slot).
Clusters are pairwise disjoint and jointly cover the register; an isolated
qubit is a singleton cluster.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Sequence

import networkx as nx

from qclust.core.cluster import ClusterState
from qclust.core.errors import InvalidArgumentError, InvalidStateError


@dataclass(frozen=True)
class QubitLocation:
    """Where a global qubit currently lives."""
    cluster_id: int
    slot: int


@dataclass
class ClusterPartition:
    """
    Mapping of register qubits onto live clusters.

    Attributes:
        num_qubits: Number of qubits in the register
        clusters: Live clusters by id
        locations: locations[q] is the QubitLocation of qubit q
    """
    num_qubits: int
    clusters: Dict[int, ClusterState] = field(default_factory=dict)
    locations: List[QubitLocation] = field(default_factory=list)
    _next_id: int = field(default=0, repr=False)

    @classmethod
    def singletons(cls, num_qubits: int, epsilon: float = 1e-8) -> ClusterPartition:
        """N singleton clusters, each in |0>."""
        if num_qubits < 1:
            raise InvalidArgumentError(f"A register needs at least one qubit, got {num_qubits}")
        partition = cls(num_qubits=num_qubits)
        partition.locations = [QubitLocation(-1, -1)] * num_qubits
        for q in range(num_qubits):
            partition._add(ClusterState.zero_state(q, epsilon))
        return partition

    def check_qubit(self, qubit: int) -> None:
        if not 0 <= qubit < self.num_qubits:
            raise InvalidArgumentError(
                f"Qubit {qubit} out of range for {self.num_qubits}-qubit register"
            )

    def location(self, qubit: int) -> QubitLocation:
        self.check_qubit(qubit)
        return self.locations[qubit]

    def cluster_of(self, qubit: int) -> ClusterState:
        return self.clusters[self.location(qubit).cluster_id]

    def cluster_ids_for(self, qubits: Iterable[int]) -> List[int]:
        """Distinct cluster ids touched by ``qubits``, first-encountered order."""
        ids: List[int] = []
        for q in qubits:
            cid = self.location(q).cluster_id
            if cid not in ids:
                ids.append(cid)
        return ids

    def _add(self, cluster: ClusterState) -> int:
        cid = self._next_id
        self._next_id += 1
        self.clusters[cid] = cluster
        for slot, q in enumerate(cluster.qubits):
            self.locations[q] = QubitLocation(cid, slot)
        return cid

    def replace(self, old_ids: Sequence[int], new_clusters: Sequence[ClusterState]) -> List[int]:
        """
        Swap clusters out of the arena.

        The new clusters must hold exactly the qubits of the old ones.

        Returns:
            Ids assigned to ``new_clusters``, in order
        """
        old_qubits = sorted(q for cid in old_ids for q in self.clusters[cid].qubits)
        new_qubits = sorted(q for cluster in new_clusters for q in cluster.qubits)
        if old_qubits != new_qubits:
            raise InvalidStateError(
                f"Replacement clusters cover {new_qubits}, expected {old_qubits}"
            )
        for cid in old_ids:
            del self.clusters[cid]
        return [self._add(cluster) for cluster in new_clusters]

    def __iter__(self) -> Iterator[ClusterState]:
        return iter(self.clusters.values())

    def __len__(self) -> int:
        return len(self.clusters)

    def total_norm_product(self) -> float:
        result = 1.0
        for cluster in self.clusters.values():
            result *= cluster.norm2()
        return result

    def check_invariants(self) -> None:
        """Verify the qubit <-> (cluster, slot) bijection."""
        seen = set()
        for cid, cluster in self.clusters.items():
            for slot, q in enumerate(cluster.qubits):
                if q in seen:
                    raise InvalidStateError(f"Qubit {q} appears in more than one cluster")
                seen.add(q)
                if self.locations[q] != QubitLocation(cid, slot):
                    raise InvalidStateError(
                        f"Qubit {q} indexed at {self.locations[q]}, found in cluster {cid} slot {slot}"
                    )
        if seen != set(range(self.num_qubits)):
            missing = sorted(set(range(self.num_qubits)) - seen)
            raise InvalidStateError(f"Qubits not covered by any cluster: {missing}")

    def entanglement_graph(self) -> nx.Graph:
        """
        Graph over all qubits whose connected components are the clusters.

        Each cluster contributes a path through its qubits in slot order.
        """
        graph = nx.Graph()
        graph.add_nodes_from(range(self.num_qubits))
        for cid, cluster in self.clusters.items():
            nx.add_path(graph, cluster.qubits, cluster_id=cid)
        return graph

    def __repr__(self) -> str:
        sizes = sorted((c.size for c in self.clusters.values()), reverse=True)
        return f"ClusterPartition(qubits={self.num_qubits}, clusters={len(self.clusters)}, sizes={sizes})"
