#!/usr/bin/env python
# -*-coding:utf-8 -*-
'''
@File    :   geometry.py
@Time    :   2026/02/02 11:05:12
@Author  :   George Trenins
@Desc    :   Reductions over bead-resolved positions and momenta
'''


from __future__ import print_function, division, absolute_import
import numpy as np
import numpy.typing as npt
from rpmdcore.errors import ShapeMismatch
from rpmdcore.utils.rp import ring_frequency


def _check_beads(x: npt.ArrayLike, name: str) -> npt.NDArray[np.floating]:
    arr = np.asarray(x, dtype=float)
    if arr.ndim != 3 or arr.shape[0] != 3:
        raise ShapeMismatch(f"'{name}' must have shape (3, natoms, nbeads), instead got {arr.shape}")
    return arr


def _check_mass(mass: npt.ArrayLike, natoms: int) -> npt.NDArray[np.floating]:
    mass = np.asarray(mass, dtype=float)
    if mass.shape != (natoms,):
        raise ShapeMismatch(f"Expecting {natoms} atomic masses, instead got an array of shape {mass.shape}")
    return mass


def get_centroid(q: npt.ArrayLike) -> npt.NDArray[np.floating]:
    """Bead-averaged position of each atom, shape (3, natoms)."""
    q = _check_beads(q, "q")
    return np.mean(q, axis=-1)


def get_center_of_mass(q: npt.ArrayLike, mass: npt.ArrayLike) -> npt.NDArray[np.floating]:
    """Mass-weighted mean position over all atoms and beads.

    Args:
        q: bead positions, shape (3, natoms, nbeads), or centroids, shape (3, natoms)
        mass: per-atom masses, shape (natoms,)

    Returns:
        np.ndarray: shape (3,)
    """
    q = np.asarray(q, dtype=float)
    if q.ndim == 2:
        q = q[..., None]
    q = _check_beads(q, "q")
    mass = _check_mass(mass, q.shape[1])
    return np.einsum('ijk,j->i', q, mass) / (np.sum(mass) * q.shape[-1])


def get_radius_of_gyration(q: npt.ArrayLike) -> npt.NDArray[np.floating]:
    """Root-mean-square distance of the beads of each atom from its centroid, shape (natoms,).
    """
    q = _check_beads(q, "q")
    centroid = get_centroid(q)
    dq = q - centroid[..., None]
    return np.sqrt(np.sum(dq**2, axis=(0, 2)) / q.shape[-1])


def get_ring_polymer_energy(q: npt.ArrayLike, mass: npt.ArrayLike, beta: float) -> float:
    """Total spring energy of all ring polymers,

        Σ_j ½ m_j ω_P² Σ_k |q_j^(k) - q_j^(k-1)|²,   ω_P = P/β

    with bead indices taken cyclically, so that the first and last beads are joined.
    """
    q = _check_beads(q, "q")
    mass = _check_mass(mass, q.shape[1])
    wn = ring_frequency(beta, q.shape[-1])
    dq = q - np.roll(q, 1, axis=-1)
    stretch = np.sum(dq**2, axis=(0, 2))
    return float(0.5 * wn**2 * np.dot(mass, stretch))


def get_kinetic_energy(p: npt.ArrayLike, mass: npt.ArrayLike) -> float:
    """Total kinetic energy of all beads of all atoms."""
    p = _check_beads(p, "p")
    mass = _check_mass(mass, p.shape[1])
    return float(0.5 * np.sum(np.sum(p**2, axis=(0, 2)) / mass))
