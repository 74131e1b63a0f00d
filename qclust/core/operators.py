"""
Operator library for qclust.

An operator is a stateless transform of fixed arity k that maps a
2^k-length amplitude vector to a new one. Operand i of an operator is
bit i of its local basis index, so operand 0 is the least significant bit.
"""

from __future__ import annotations

import numpy as np
from dataclasses import dataclass, field
from typing import Callable, Dict
from abc import ABC, abstractmethod

from qclust.core.errors import InvalidArgumentError


HADAMARD = np.array([[1, 1], [1, -1]], dtype=np.complex128) / np.sqrt(2)


class Operator(ABC):
    """
    Abstract base class for operators.

    ``apply`` accepts any array whose trailing axis has length 2^arity.
    Leading axes are a batch of independent vectors, which lets the cluster
    engine transform every free-bit assignment in a single call.
    """
    arity: int

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def dimension(self) -> int:
        return 1 << self.arity

    def apply(self, vector) -> np.ndarray:
        """
        Apply this operator, returning a new array.

        Args:
            vector: Array with trailing axis of length 2^arity

        Returns:
            Transformed array of the same shape; the input is not modified
        """
        vec = np.array(vector, dtype=np.complex128)
        if vec.ndim == 0 or vec.shape[-1] != self.dimension:
            raise InvalidArgumentError(
                f"{self.name} expects vectors of length {self.dimension}, "
                f"got shape {vec.shape}"
            )
        return self._transform(vec)

    @abstractmethod
    def _transform(self, vec: np.ndarray) -> np.ndarray:
        """Transform a private copy along its last axis; may work in place."""
        pass

    def matrix(self) -> np.ndarray:
        """Dense 2^k x 2^k matrix of this operator."""
        # Row i of the batch is op(e_i), i.e. column i of the matrix.
        return self.apply(np.eye(self.dimension, dtype=np.complex128)).T


@dataclass(frozen=True)
class H(Operator):
    """Hadamard: (a, b) -> ((a+b)/sqrt2, (a-b)/sqrt2)."""
    arity: int = field(default=1, init=False)

    def _transform(self, vec: np.ndarray) -> np.ndarray:
        a = vec[..., 0].copy()
        b = vec[..., 1]
        vec[..., 0] = (a + b) / np.sqrt(2)
        vec[..., 1] = (a - b) / np.sqrt(2)
        return vec


@dataclass(frozen=True)
class X(Operator):
    """Pauli X (NOT): (a, b) -> (b, a)."""
    arity: int = field(default=1, init=False)

    def _transform(self, vec: np.ndarray) -> np.ndarray:
        return vec[..., ::-1].copy()


@dataclass(frozen=True)
class CNOT(Operator):
    """
    Controlled NOT.

    Operand 0 is the target and operand 1 the control:
    a|00> + b|01> + c|10> + d|11>  ->  a|00> + b|01> + d|10> + c|11>
    where the kets are written |control target>.
    """
    arity: int = field(default=2, init=False)

    def _transform(self, vec: np.ndarray) -> np.ndarray:
        vec[..., [2, 3]] = vec[..., [3, 2]]
        return vec


@dataclass(frozen=True)
class CZ(Operator):
    """Controlled Z: negates the |11> amplitude."""
    arity: int = field(default=2, init=False)

    def _transform(self, vec: np.ndarray) -> np.ndarray:
        vec[..., 3] = -vec[..., 3]
        return vec


@dataclass(frozen=True)
class PhaseGate(Operator):
    """a|0> + b|1> -> a|0> + b*e^(i*theta)|1>"""
    theta: float
    arity: int = field(default=1, init=False)

    def _transform(self, vec: np.ndarray) -> np.ndarray:
        vec[..., 1] = vec[..., 1] * np.exp(1j * self.theta)
        return vec


@dataclass(frozen=True, eq=False)
class Oracle(Operator):
    """
    Bit-flip oracle for a boolean predicate.

    The ``target`` operand holds y; the other operands, packed in ascending
    operand order, form the integer argument x. Basis state (x, y) maps to
    (x, y XOR predicate(x)), a pure permutation of the basis. Oracles
    compare by identity since predicates cannot be compared.

    Attributes:
        predicate: Function of the integer argument x
        arity: Number of operands, n + 1 with n >= 1
        target: Operand holding y
    """
    predicate: Callable[[int], bool]
    arity: int = 2
    target: int = 0

    def __post_init__(self):
        if self.arity < 2:
            raise InvalidArgumentError(f"Oracle arity must be >= 2, got {self.arity}")
        if not 0 <= self.target < self.arity:
            raise InvalidArgumentError(
                f"Oracle target operand {self.target} out of range for arity {self.arity}"
            )

    def argument(self, index: int) -> int:
        """The argument x encoded by a basis index."""
        low = index & ((1 << self.target) - 1)
        high = index >> (self.target + 1)
        return low | (high << self.target)

    def permutation(self) -> np.ndarray:
        """perm[i] is the basis index that basis index i is sent to."""
        perm = np.arange(self.dimension)
        for index in range(self.dimension):
            if self.predicate(self.argument(index)):
                perm[index] = index ^ (1 << self.target)
        return perm

    def _transform(self, vec: np.ndarray) -> np.ndarray:
        out = np.empty_like(vec)
        out[..., self.permutation()] = vec
        return out


@dataclass(frozen=True, eq=False)
class Unitary(Operator):
    """
    Arbitrary unitary given as a dense matrix.

    The matrix uses the same operand convention as every other operator:
    operand 0 is the least significant bit of the row/column index.
    Compares by identity.
    """
    matrix_data: np.ndarray = field(repr=False)
    atol: float = 1e-10
    arity: int = field(default=0, init=False)

    def __post_init__(self):
        mat = np.array(self.matrix_data, dtype=np.complex128)
        if mat.ndim != 2 or mat.shape[0] != mat.shape[1]:
            raise InvalidArgumentError(f"Unitary needs a square matrix, got shape {mat.shape}")
        dim = mat.shape[0]
        if dim < 2 or dim & (dim - 1):
            raise InvalidArgumentError(f"Matrix dimension {dim} is not a power of two >= 2")
        if not np.allclose(mat @ mat.conj().T, np.eye(dim), atol=self.atol):
            raise InvalidArgumentError("Matrix is not unitary")
        object.__setattr__(self, "matrix_data", mat)
        object.__setattr__(self, "arity", dim.bit_length() - 1)

    def _transform(self, vec: np.ndarray) -> np.ndarray:
        return vec @ self.matrix_data.T


class OperatorLibrary:
    """Library of the stateless operators, plus lookup by name."""

    H = H()
    X = X()
    CNOT = CNOT()
    CX = CNOT  # Alias
    CZ = CZ()

    @classmethod
    def get_operator(cls, name: str, **params: float) -> Operator:
        """
        Get an operator by name.

        Parametric operators take their parameters as keywords,
        e.g. ``get_operator("P", theta=np.pi / 4)``.
        """
        name_upper = name.upper()
        name_map: Dict[str, Operator] = {
            "H": cls.H, "X": cls.X, "NOT": cls.X,
            "CX": cls.CX, "CNOT": cls.CNOT, "CZ": cls.CZ,
        }

        if name_upper in ("P", "PHASE"):
            if "theta" not in params:
                raise InvalidArgumentError(f"Operator {name} requires a 'theta' parameter")
            return PhaseGate(theta=params["theta"])

        if name_upper not in name_map:
            raise InvalidArgumentError(f"Unknown operator: {name}")

        return name_map[name_upper]
