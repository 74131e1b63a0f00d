"""
Cluster engine for qclust.

A cluster is one group of qubits whose joint state is kept as a single
dense amplitude vector. Slot i of a cluster holds ``qubits[i]`` and is bit i
of the basis index, so a k-qubit cluster stores 2^k amplitudes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from qclust.core.errors import InvalidArgumentError, InvalidStateError
from qclust.core.operators import Operator


logger = logging.getLogger(__name__)


def slot_offsets(slots: Sequence[int]) -> np.ndarray:
    """
    Map every local pattern over ``slots`` to its address bits.

    offsets[j] has bit ``slots[i]`` set exactly when bit i of j is set.
    """
    patterns = np.arange(1 << len(slots))
    offsets = np.zeros_like(patterns)
    for i, slot in enumerate(slots):
        offsets |= ((patterns >> i) & 1) << slot
    return offsets


@dataclass
class ClusterState:
    """
    Amplitude vector for one entangled group of qubits.

    Attributes:
        qubits: Global qubit indices, in local slot order
        amplitudes: Complex vector of length 2^len(qubits)
        epsilon: Tolerance for norm and probability checks
    """
    qubits: List[int]
    amplitudes: Optional[np.ndarray] = field(default=None, repr=False)
    epsilon: float = 1e-8

    def __post_init__(self):
        self.qubits = [int(q) for q in self.qubits]
        if not self.qubits:
            raise InvalidArgumentError("A cluster needs at least one qubit")
        if len(set(self.qubits)) != len(self.qubits):
            raise InvalidArgumentError(f"Duplicate qubits in cluster: {self.qubits}")
        if self.amplitudes is None:
            self.amplitudes = np.zeros(self.dimension, dtype=np.complex128)
            self.amplitudes[0] = 1.0
        else:
            self.amplitudes = self._validated(self.amplitudes)

    @classmethod
    def basis_state(cls, qubits: Sequence[int], index: int = 0,
                    epsilon: float = 1e-8) -> ClusterState:
        amps = np.zeros(1 << len(qubits), dtype=np.complex128)
        amps[index] = 1.0
        return cls(qubits=list(qubits), amplitudes=amps, epsilon=epsilon)

    @classmethod
    def zero_state(cls, qubit: int, epsilon: float = 1e-8) -> ClusterState:
        return cls.basis_state([qubit], 0, epsilon)

    @property
    def size(self) -> int:
        return len(self.qubits)

    @property
    def dimension(self) -> int:
        return 1 << self.size

    def slot_of(self, qubit: int) -> int:
        try:
            return self.qubits.index(qubit)
        except ValueError:
            raise InvalidArgumentError(f"Qubit {qubit} is not in cluster {self.qubits}") from None

    def norm2(self) -> float:
        return float(np.vdot(self.amplitudes, self.amplitudes).real)

    def probabilities(self) -> np.ndarray:
        return np.abs(self.amplitudes) ** 2

    # ------------------------------------------------------------------
    # Amplitude access
    # ------------------------------------------------------------------

    def get_amplitudes(self, slots: Optional[Sequence[int]] = None) -> np.ndarray:
        """
        Return a copy of the amplitude vector.

        Args:
            slots: Optional ordering of all local slots; bit i of the
                   returned vector's index is slot ``slots[i]``
        """
        if slots is None:
            return self.amplitudes.copy()
        self._check_slots(slots, count=self.size)
        return self.amplitudes[slot_offsets(slots)]

    def set_amplitudes(self, vector, slots: Optional[Sequence[int]] = None) -> None:
        """
        Replace the amplitude vector with a copy of ``vector``.

        Raises InvalidArgumentError on a wrong length and InvalidStateError
        when the squared magnitudes do not sum to 1.
        """
        vec = self._validated(vector)
        if slots is not None:
            self._check_slots(slots, count=self.size)
            local = np.empty_like(vec)
            local[slot_offsets(slots)] = vec
            vec = local
        self.amplitudes = vec

    def _validated(self, vector) -> np.ndarray:
        vec = np.array(vector, dtype=np.complex128).reshape(-1)
        if vec.shape[0] != self.dimension:
            raise InvalidArgumentError(
                f"Expected {self.dimension} amplitudes for {self.size} qubits, got {vec.shape[0]}"
            )
        sum_squares = float(np.sum(np.abs(vec) ** 2))
        if abs(sum_squares - 1.0) > self.epsilon:
            raise InvalidStateError(
                f"Amplitudes are not unit norm (squares of amps sum to {sum_squares})"
            )
        # Stored vectors are exactly unit norm.
        return vec / np.sqrt(sum_squares)

    def _check_slots(self, slots: Sequence[int], count: Optional[int] = None) -> None:
        if count is not None and len(slots) != count:
            raise InvalidArgumentError(f"Expected {count} slots, got {len(slots)}")
        for slot in slots:
            if not 0 <= slot < self.size:
                raise InvalidArgumentError(f"Slot {slot} out of range for {self.size}-qubit cluster")
        if len(set(slots)) != len(slots):
            raise InvalidArgumentError(f"Duplicate slots: {list(slots)}")

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def apply_operator(self, op: Operator, target_slots: Sequence[int]) -> None:
        """
        Apply ``op`` to the given slots, identity on all others.

        Operand i of the operator is ``target_slots[i]``. For every
        assignment of the free slots the 2^k' sub-vector obtained by varying
        only the target bits is gathered, transformed and scattered back, so
        each amplitude is visited once and no 2^k x 2^k matrix is built.
        """
        if len(target_slots) != op.arity:
            raise InvalidArgumentError(
                f"{op.name} has arity {op.arity} but got {len(target_slots)} target slots"
            )
        self._check_slots(target_slots)

        target_mask = 0
        for slot in target_slots:
            target_mask |= 1 << slot

        indices = np.arange(self.dimension)
        free_bases = indices[(indices & target_mask) == 0]
        # One row per free-bit assignment, one column per target pattern.
        addresses = free_bases[:, None] | slot_offsets(target_slots)[None, :]

        block = self.amplitudes[addresses]
        transformed = op.apply(block)
        if transformed.shape != block.shape:
            raise InvalidStateError(
                f"{op.name} returned shape {transformed.shape}, expected {block.shape}"
            )
        self.amplitudes[addresses] = transformed

    # ------------------------------------------------------------------
    # Measurement
    # ------------------------------------------------------------------

    def _bit_is_set(self, slot: int) -> np.ndarray:
        return ((np.arange(self.dimension) >> slot) & 1).astype(bool)

    def probability_zero(self, slot: int) -> float:
        """Marginal probability that ``slot`` reads 0. Does not collapse."""
        self._check_slots([slot])
        probs = self.probabilities()
        return float(np.sum(probs[~self._bit_is_set(slot)]))

    def marginal(self, slots: Sequence[int]) -> np.ndarray:
        """
        Joint distribution over ``slots``, summed over all other slots.

        Entry j is the probability that slot ``slots[i]`` reads bit i of j.
        """
        self._check_slots(slots)
        indices = np.arange(self.dimension)
        patterns = np.zeros_like(indices)
        for i, slot in enumerate(slots):
            patterns |= ((indices >> slot) & 1) << i
        return np.bincount(patterns, weights=self.probabilities(), minlength=1 << len(slots))

    def measure_slot(self, slot: int, rng) -> bool:
        """
        Measure one slot and collapse the cluster.

        Args:
            slot: Local slot to measure
            rng: Random source with a ``random()`` method in [0, 1)

        Returns:
            True if |1> was measured, False for |0>
        """
        self._check_slots([slot])
        one = self._bit_is_set(slot)
        probs = self.probabilities()
        mass0 = float(np.sum(probs[~one]))
        mass1 = float(np.sum(probs[one]))
        if abs(mass0 + mass1 - 1.0) > self.epsilon:
            raise InvalidStateError(
                f"Marginal probabilities for slot {slot} sum to {mass0 + mass1}"
            )
        # Draw against the renormalised marginal.
        total = mass0 + mass1
        p0 = mass0 / total
        p1 = mass1 / total

        outcome = not (rng.random() < p0)
        mass = mass1 if outcome else mass0
        if mass <= 0.0:
            raise InvalidStateError(f"Drew outcome {int(outcome)} with zero probability")

        keep = one if outcome else ~one
        self.amplitudes[~keep] = 0.0
        self.amplitudes[keep] /= np.sqrt(mass)

        logger.debug("Measured qubit %d (p0=%.6f, p1=%.6f) -> %d",
                     self.qubits[slot], p0, p1, int(outcome))
        return outcome

    def factor_out(self, slot: int, outcome: bool) -> Tuple[ClusterState, ClusterState]:
        """
        Split a collapsed slot into its own cluster.

        Returns:
            (singleton, remainder): the measured qubit in the exact basis
            state for ``outcome``, and the other k-1 qubits holding the
            amplitudes consistent with it
        """
        if self.size == 1:
            raise InvalidArgumentError("Cannot factor a qubit out of a singleton cluster")
        self._check_slots([slot])
        keep = self._bit_is_set(slot) if outcome else ~self._bit_is_set(slot)

        leftover = float(np.sum(np.abs(self.amplitudes[~keep]) ** 2))
        if leftover > self.epsilon:
            raise InvalidStateError(
                f"Slot {slot} is not collapsed to {int(outcome)} (residual mass {leftover})"
            )

        qubit = self.qubits[slot]
        remainder = ClusterState(
            qubits=self.qubits[:slot] + self.qubits[slot + 1:],
            # Dropping a fixed bit keeps the surviving indices in order.
            amplitudes=self.amplitudes[keep].copy(),
            epsilon=self.epsilon,
        )
        singleton = ClusterState.basis_state([qubit], int(outcome), self.epsilon)
        return singleton, remainder

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def tensor(self, other: ClusterState) -> ClusterState:
        """Product cluster with ``self``'s slots in the low bits."""
        return ClusterState(
            qubits=self.qubits + other.qubits,
            amplitudes=np.kron(other.amplitudes, self.amplitudes),
            epsilon=self.epsilon,
        )

    def copy(self) -> ClusterState:
        return ClusterState(qubits=list(self.qubits), amplitudes=self.amplitudes.copy(),
                            epsilon=self.epsilon)

    def __repr__(self) -> str:
        return f"ClusterState(qubits={self.qubits}, norm2={self.norm2():.6f})"
