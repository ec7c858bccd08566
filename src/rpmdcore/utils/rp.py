#!/usr/bin/env python
# -*-coding:utf-8 -*-
'''
@File    :   rp.py
@Time    :   2025/10/08 16:49:14
@Author  :   George Trenins
@Desc    :   ring-polymer utilities
'''


from __future__ import print_function, division, absolute_import
from typing import Optional, Union
import numpy as np
import numpy.typing as npt


def ring_frequency(beta: float, P: int, hbar: Optional[float] = 1.0) -> float:
    """Harmonic frequency of the springs between adjacent beads, ω_P = P/(β ħ)
    """
    return P / (beta*hbar)


def nmfreq(
        beta: float,
        P: int,
        n: Union[int, npt.NDArray[np.integer]],
        hbar: Optional[float] = 1.0) -> Union[float, npt.NDArray[np.floating]]:
    """n-th normal-mode frequency of a free ring-polymer

    Args:
        beta (float): reciprocal temp 1/(kB*T)
        P (int): number of ring-polymer beads
        n (int or array of int): index of normal mode
        hbar (float, optional): reduced Planck constant in the user's unit system. Defaults to 1.0.
    """
    omega_P = ring_frequency(beta, P, hbar)
    wn = 2*omega_P * np.abs(np.sin(np.pi * np.asarray(n)/P))
    return wn


def nm_propagator(
        beta: float,
        P: int,
        dt: float,
        mass: float,
        hbar: Optional[float] = 1.0) -> npt.NDArray[np.floating]:
    """Exact propagators of the free ring-polymer normal modes for a particle of given mass.

    Args:
        beta (float): reciprocal temp 1/(kB*T)
        P (int): number of ring-polymer beads
        dt (float): time step, may be negative
        mass (float): physical mass of the particle
        hbar (float, optional): reduced Planck constant. Defaults to 1.0.

    Returns:
        np.ndarray: shape (P, 2, 2), the matrix acting on (p_k, q_k) for each entry of
        the half-complex normal-mode vector. Entries k and P-k belong to the same mode
        and share a matrix; entry 0 is the free-particle centroid propagator.
    """
    prop = np.empty((P, 2, 2))
    prop[0] = [[1.0, 0.0], [dt/mass, 1.0]]
    nmax = P//2
    if nmax > 0:
        k = np.arange(1, nmax+1)
        wk = nmfreq(beta, P, k, hbar=hbar)
        wt = wk * dt
        wm = wk * mass
        cos_wt = np.cos(wt)
        sin_wt = np.sin(wt)
        prop[1:nmax+1, 0, 0] = cos_wt
        prop[1:nmax+1, 0, 1] = -wm*sin_wt
        prop[1:nmax+1, 1, 0] = sin_wt/wm
        prop[1:nmax+1, 1, 1] = cos_wt
        # mirror onto the imaginary components; the Nyquist mode of an even ring has none
        nmirror = (P-1)//2
        for k in range(1, nmirror+1):
            prop[P-k] = prop[k]
    return prop
