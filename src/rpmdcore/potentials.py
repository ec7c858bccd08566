#!/usr/bin/env python
# -*-coding:utf-8 -*-
'''
@File    :   potentials.py
@Time    :   2026/02/04 10:30:18
@Author  :   George Trenins
@Desc    :   Interface for the external potential and two model potentials
'''


from __future__ import print_function, division, absolute_import
from typing import Protocol, Tuple, Dict, Any, Optional
import numpy as np
import numpy.typing as npt
from rpmdcore.errors import ConfigurationError, ShapeMismatch

PotentialEval = Tuple[npt.NDArray[np.floating], npt.NDArray[np.floating]]


class PotentialEvaluator(Protocol):
    """Callable returning the potential energy of each bead, shape (nbeads,), and its gradient
    with respect to the bead positions, shape (3, natoms, nbeads), for positions of shape
    (3, natoms, nbeads). Must not carry hidden state between calls.
    """

    def __call__(self, q: npt.NDArray[np.floating]) -> PotentialEval:
        ...


class FreeParticlePotential(object):
    """V = 0 everywhere."""

    def __call__(self, q: npt.NDArray[np.floating]) -> PotentialEval:
        q = np.asarray(q)
        return np.zeros(q.shape[-1]), np.zeros_like(q, dtype=float)

    @classmethod
    def from_dict(cls, params: Optional[Dict[str, Any]] = None) -> "FreeParticlePotential":
        return cls()


class HarmonicPotential(object):
    """Isotropic harmonic well, V = Σ_j ½ k_j |q_j - q0_j|² for each bead.

    Args:
        k (float or array-like): force constant, scalar or one per atom
        q0 (array-like, optional): minimum, shape (3, natoms). Defaults to the origin.
    """

    def __init__(self, k: npt.ArrayLike, q0: Optional[npt.ArrayLike] = None) -> None:
        k = np.array(k, dtype=float, ndmin=1)
        if np.any(k < 0):
            raise ConfigurationError(f"Force constants must be non-negative, instead got {k.tolist()}")
        self.k = k
        self.q0 = None if q0 is None else np.asarray(q0, dtype=float)

    def __call__(self, q: npt.NDArray[np.floating]) -> PotentialEval:
        q = np.asarray(q, dtype=float)
        if q.ndim != 3 or q.shape[0] != 3:
            raise ShapeMismatch(f"Positions must have shape (3, natoms, nbeads), instead got {q.shape}")
        natoms = q.shape[1]
        if self.k.size not in (1, natoms):
            raise ShapeMismatch(f"Expecting 1 or {natoms} force constants, instead got {self.k.size}")
        dq = q if self.q0 is None else q - self.q0[..., None]
        k = self.k[:, None]
        dVdq = k * dq
        V = 0.5 * np.sum(k * dq**2, axis=(0, 1))
        return V, dVdq

    @classmethod
    def from_dict(cls, params: Dict[str, Any]) -> "HarmonicPotential":
        try:
            return cls(params["k"], params.get("q0"))
        except KeyError as e:
            raise ConfigurationError(f"Harmonic potential requires the force constant {e}") from e


POTENTIAL_MAP = {
    "free": FreeParticlePotential,
    "harmonic": HarmonicPotential,
}
