"""Configuration for the qclust simulator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class SimulatorConfig:
    """
    Simulator-wide settings.

    Attributes:
        epsilon: Tolerance for unit-norm and marginal-probability checks
        seed: Seed for the default measurement random source
        auto_couple: If True, do_op merges the clusters of its qubits;
                     if False, operating across clusters is an error
    """
    epsilon: float = 1e-8
    seed: Optional[int] = None
    auto_couple: bool = True

    def make_rng(self) -> np.random.Generator:
        return np.random.default_rng(self.seed)


DEFAULT_CONFIG = SimulatorConfig()
