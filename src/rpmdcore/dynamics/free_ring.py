#!/usr/bin/env python
# -*-coding:utf-8 -*-
'''
@File    :   free_ring.py
@Time    :   2026/02/02 13:27:44
@Author  :   George Trenins
@Desc    :   Exact propagation of the free ring-polymer Hamiltonian in normal-mode space
'''


from __future__ import print_function, division, absolute_import
from typing import Optional
import logging
import numpy as np
import numpy.typing as npt
from rpmdcore.errors import ConfigurationError, ShapeMismatch
from rpmdcore.system import SystemParameters
from rpmdcore.utils.nmtransform import NormalModeTransform
from rpmdcore.utils.rp import nm_propagator

logger = logging.getLogger(__name__)


class FreeRingPolymerPropagator(object):
    """Advance bead positions and momenta under the harmonic inter-bead springs
    (and the free-particle kinetic energy) for one time step, holding the external
    potential fixed. The ring-polymer Hamiltonian is separable in x, y, z and
    diagonal in the normal modes, each of which is rotated by its exact
    harmonic-oscillator propagator.
    """

    def __init__(self, params: SystemParameters) -> None:
        mass = np.asarray(params.mass)
        if np.any(~(mass > 0)):
            raise ConfigurationError(f"All atomic masses must be positive, instead got {mass.tolist()}")
        self.params = params
        self.transform = NormalModeTransform(params.nbeads)
        self._prop = self._propagators(params.dt)
        logger.debug(
            f"Initialized free ring-polymer propagator for {params.natoms} atom(s), "
            f"{params.nbeads} bead(s), dt = {params.dt}")

    def _propagators(self, dt: float) -> npt.NDArray[np.floating]:
        """Stack of per-atom normal-mode propagators, shape (2, 2, natoms, nbeads)."""
        params = self.params
        prop = np.stack(
            [nm_propagator(params.beta, params.nbeads, dt, m) for m in params.mass])
        # (natoms, nbeads, 2, 2) -> (2, 2, natoms, nbeads) for broadcasting against (3, natoms, nbeads)
        return np.moveaxis(prop, (2, 3), (0, 1))

    def propagator_matrices(self, dt: Optional[float] = None) -> npt.NDArray[np.floating]:
        """The (p, q) propagators of each atom and normal-mode component, shape (natoms, nbeads, 2, 2)."""
        prop = self._prop if dt is None else self._propagators(dt)
        return np.moveaxis(prop, (0, 1), (2, 3)).copy()

    def propagate(
            self,
            p: npt.NDArray[np.floating],
            q: npt.NDArray[np.floating],
            dt: Optional[float] = None) -> None:
        """Propagate momenta and positions in place.

        Args:
            p: bead momenta, shape (3, natoms, nbeads), overwritten
            q: bead positions, shape (3, natoms, nbeads), overwritten
            dt: time step; defaults to the run time step. A negated time step
                undoes a forward step exactly.
        """
        params = self.params
        shape = (3, params.natoms, params.nbeads)
        if np.shape(p) != shape or np.shape(q) != shape:
            raise ShapeMismatch(
                f"Expecting momenta and positions of shape {shape}, "
                f"instead got {np.shape(p)} and {np.shape(q)}")
        if dt is None:
            dt = params.dt
            prop = self._prop
        else:
            prop = self._propagators(dt)
        if params.nbeads == 1:
            q += p * dt / params.mass[:, None]
            return
        pnm = self.transform.forward(p)
        qnm = self.transform.forward(q)
        p_new = prop[0, 0] * pnm + prop[0, 1] * qnm
        qnm = prop[1, 0] * pnm + prop[1, 1] * qnm
        p[...] = self.transform.inverse(p_new)
        q[...] = self.transform.inverse(qnm)
