#!/usr/bin/env python
# -*-coding:utf-8 -*-
'''
@File    :   surfaces.py
@Time    :   2026/02/03 14:12:05
@Author  :   George Trenins
@Desc    :   Dividing surfaces for bimolecular reactions, built from interatomic and intermolecular distances
'''


from __future__ import print_function, division, absolute_import
from abc import ABC, abstractmethod
from typing import Iterable, Sequence, Tuple, Dict, Any
import numpy as np
import numpy.typing as npt
from rpmdcore.errors import ConfigurationError, NumericalSingularity, ShapeMismatch


def linear_distance(
        x: npt.NDArray[np.floating],
        c: npt.NDArray[np.floating]) -> Tuple[float, npt.NDArray[np.floating], npt.NDArray[np.floating]]:
    """Length R = |d| of the vector d = Σ_j c_j x_j and its first two derivatives.

    Args:
        x: positions, shape (3, natoms)
        c: coefficients, shape (natoms,)

    Returns:
        R (float)
        grad (np.ndarray): ∂R/∂x_{ij} = c_j u_i, with u = d/R, shape (3, natoms)
        hess (np.ndarray): ∂²R/∂x_{ij}∂x_{kl} = c_j c_l (δ_ik - u_i u_k) / R, shape (3, natoms, 3, natoms)
    """
    d = x @ c
    R = np.sqrt(np.dot(d, d))
    if R == 0:
        raise NumericalSingularity("The distance derivatives are undefined for coincident points")
    u = d / R
    grad = np.multiply.outer(u, c)
    proj = (np.eye(3) - np.multiply.outer(u, u)) / R
    hess = np.einsum('ik,j,l->ijkl', proj, c, c)
    return float(R), grad, hess


def _check_indices(indices: Iterable[int], natoms: int, name: str) -> list:
    ans = [int(i) for i in indices]
    if len(ans) == 0:
        raise ConfigurationError(f"'{name}' must contain at least one atom index")
    for i in ans:
        if not 0 <= i < natoms:
            raise ConfigurationError(f"Atom index {i} in '{name}' is out of range for {natoms} atom(s)")
    return ans


class _DistanceSurface(ABC):

    def __init__(self, natoms: int) -> None:
        self.natoms = int(natoms)

    def _check(self, centroid: npt.ArrayLike) -> npt.NDArray[np.floating]:
        x = np.asarray(centroid, dtype=float)
        if x.shape != (3, self.natoms):
            raise ShapeMismatch(f"Expecting centroid positions of shape {(3, self.natoms)}, instead got {x.shape}")
        return x

    @abstractmethod
    def _evaluate(self, x):
        """Value, gradient and Hessian at validated centroid positions."""
        pass

    def value(self, centroid: npt.ArrayLike) -> float:
        return self._evaluate(self._check(centroid))[0]

    def gradient(self, centroid: npt.ArrayLike) -> npt.NDArray[np.floating]:
        return self._evaluate(self._check(centroid))[1]

    def hessian(self, centroid: npt.ArrayLike) -> npt.NDArray[np.floating]:
        return self._evaluate(self._check(centroid))[2]


class ReactantsSurface(_DistanceSurface):
    """s0 = R_inf - R, where R is the distance between the centres of mass of two
    reactant fragments. s0 > 0 in the reactant region.

    Args:
        mass (array-like): per-atom masses, shape (natoms,)
        fragments (pair of lists of int): atom indices of the two reactants
        Rinf (float): separation at which the reactants no longer interact
    """

    def __init__(
            self,
            mass: npt.ArrayLike,
            fragments: Sequence[Iterable[int]],
            Rinf: float) -> None:
        mass = np.asarray(mass, dtype=float)
        super().__init__(mass.size)
        if len(fragments) != 2:
            raise ConfigurationError(f"Expecting exactly two reactant fragments, instead got {len(fragments)}")
        A = _check_indices(fragments[0], self.natoms, "fragments[0]")
        B = _check_indices(fragments[1], self.natoms, "fragments[1]")
        if set(A) & set(B):
            raise ConfigurationError(f"Reactant fragments share atoms: {sorted(set(A) & set(B))}")
        self.Rinf = float(Rinf)
        self.fragments = (A, B)
        c = np.zeros(self.natoms)
        c[A] = mass[A] / np.sum(mass[A])
        c[B] = -mass[B] / np.sum(mass[B])
        self._coeffs = c

    def _evaluate(self, x):
        R, grad, hess = linear_distance(x, self._coeffs)
        return self.Rinf - R, -grad, -hess

    @classmethod
    def from_dict(cls, params: Dict[str, Any], mass: npt.ArrayLike) -> "ReactantsSurface":
        try:
            return cls(mass, params["fragments"], params["Rinf"])
        except KeyError as e:
            raise ConfigurationError(f"Reactant dividing surface requires {e}") from e


class TransitionStateSurface(_DistanceSurface):
    """s1 = Σ_breaking (r - r‡) - Σ_forming (r - r‡), which vanishes at the
    transition-state geometry.

    Args:
        natoms (int): number of atoms
        forming_bonds (list of (int, int)): atom pairs of the bonds being formed
        forming_distances (list of float): transition-state lengths of the forming bonds
        breaking_bonds (list of (int, int)): atom pairs of the bonds being broken
        breaking_distances (list of float): transition-state lengths of the breaking bonds
    """

    def __init__(
            self,
            natoms: int,
            forming_bonds: Sequence[Sequence[int]],
            forming_distances: Sequence[float],
            breaking_bonds: Sequence[Sequence[int]],
            breaking_distances: Sequence[float]) -> None:
        super().__init__(natoms)
        if len(forming_bonds) != len(forming_distances):
            raise ConfigurationError("Each forming bond requires exactly one transition-state distance")
        if len(breaking_bonds) != len(breaking_distances):
            raise ConfigurationError("Each breaking bond requires exactly one transition-state distance")
        if len(forming_bonds) + len(breaking_bonds) == 0:
            raise ConfigurationError("At least one forming or breaking bond is required")
        self._terms = []
        for sign, bonds, distances in [(-1.0, forming_bonds, forming_distances),
                                       (1.0, breaking_bonds, breaking_distances)]:
            for bond, r0 in zip(bonds, distances):
                bond = _check_indices(bond, self.natoms, "bond")
                if len(bond) != 2 or bond[0] == bond[1]:
                    raise ConfigurationError(f"A bond must join two distinct atoms, instead got {bond}")
                i, j = bond
                c = np.zeros(self.natoms)
                c[i] = 1.0
                c[j] = -1.0
                self._terms.append((sign, c, float(r0)))

    def _evaluate(self, x):
        value = 0.0
        grad = np.zeros((3, self.natoms))
        hess = np.zeros((3, self.natoms, 3, self.natoms))
        for sign, c, r0 in self._terms:
            r, dr, d2r = linear_distance(x, c)
            value += sign * (r - r0)
            grad += sign * dr
            hess += sign * d2r
        return value, grad, hess

    @classmethod
    def from_dict(cls, params: Dict[str, Any], mass: npt.ArrayLike) -> "TransitionStateSurface":
        return cls(
            np.size(mass),
            params.get("forming_bonds", []),
            params.get("forming_distances", []),
            params.get("breaking_bonds", []),
            params.get("breaking_distances", []))
