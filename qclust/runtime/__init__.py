"""Runtime components for qclust."""

from qclust.runtime.register import QubitRegister

__all__ = ["QubitRegister"]
