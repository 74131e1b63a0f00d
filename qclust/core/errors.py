"""Exception types raised by the qclust engine."""

from __future__ import annotations


class QclustError(Exception):
    """Base class for all qclust errors."""


class InvalidArgumentError(QclustError, ValueError):
    """
    A caller passed something the engine cannot act on.

    Raised for arity mismatches, out-of-range or duplicate qubit indices,
    malformed vector lengths and cross-cluster access without coupling.
    """


class InvalidStateError(QclustError, RuntimeError):
    """
    The simulated state violates a probability invariant.

    Usually a sign of a non-unitary operator or of corrupted amplitudes.
    """
