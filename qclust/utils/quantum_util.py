"""Small helpers for building and comparing amplitude vectors."""

from __future__ import annotations

from typing import List

import numpy as np


DEFAULT_TOLERANCE = 1e-9


def build_vector(*values: complex) -> np.ndarray:
    """build_vector(3/5, 4/5) -> complex128 array [0.6, 0.8]."""
    return np.array(values, dtype=np.complex128)


def is_approx_zero(value: float, tol: float = DEFAULT_TOLERANCE) -> bool:
    return abs(value) <= tol


def is_approx_equal_vector(a, b, tol: float = DEFAULT_TOLERANCE) -> bool:
    a = np.asarray(a)
    b = np.asarray(b)
    return a.shape == b.shape and np.allclose(a, b, atol=tol, rtol=0)


def equal_up_to_global_phase(a, b, tol: float = DEFAULT_TOLERANCE) -> bool:
    """True if a == e^{i phi} b for some phase phi."""
    a = np.asarray(a, dtype=np.complex128)
    b = np.asarray(b, dtype=np.complex128)
    if a.shape != b.shape:
        return False
    # Align on the largest entry of b to pick the phase.
    k = int(np.argmax(np.abs(b)))
    if abs(b[k]) <= tol:
        return is_approx_equal_vector(a, b, tol)
    phase = a[k] / b[k]
    if not np.isclose(abs(phase), 1.0, atol=tol):
        return False
    return is_approx_equal_vector(a, phase * b, tol)


def consecutive_qubits(start: int, stop: int) -> List[int]:
    """[start, start+1, ..., stop-1]"""
    return list(range(start, stop))


def format_vector(amps) -> str:
    """
    One-line listing of basis amplitudes.

    Kets are labelled with the basis index in binary, most significant bit
    first: { |00>=(0.6    , 0      i), |01>=(0.8    , 0      i), ... }
    """
    amps = np.asarray(amps, dtype=np.complex128)
    n = max(int(amps.shape[0]).bit_length() - 1, 1)
    entries = []
    for index, amp in enumerate(amps):
        # Adding 0.0 turns -0.0 into 0.0.
        real = amp.real + 0.0
        imag = amp.imag + 0.0
        entries.append(f"|{index:0{n}b}>=({real: <7.4g}, {imag: <7.4g}i)")
    return "{ " + ", ".join(entries) + " }"
