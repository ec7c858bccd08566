#!/usr/bin/env python
# -*-coding:utf-8 -*-
'''
@File    :   verlet.py
@Time    :   2026/02/04 11:52:40
@Author  :   George Trenins
@Desc    :   Velocity Verlet integration of ring-polymer molecular dynamics
'''


from __future__ import print_function, division, absolute_import
from typing import Callable, Optional
import logging
import numpy as np
from rpmdcore.errors import ShapeMismatch
from rpmdcore.system import SystemParameters, SimulationState
from rpmdcore.geometry import get_centroid
from rpmdcore.potentials import PotentialEvaluator
from rpmdcore.coordinate import ReactionCoordinate
from .free_ring import FreeRingPolymerPropagator

logger = logging.getLogger(__name__)


class VelocityVerlet(object):
    """Kick-drift-kick integrator for RPMD. The drift is the exact free ring-polymer
    propagator, the kicks use the gradient of the external potential.

    Args:
        params (SystemParameters): run parameters
        potential (callable): q -> (V, dVdq), see `rpmdcore.potentials.PotentialEvaluator`
        reaction_coordinate (ReactionCoordinate): evaluator refreshed after every drift

    Notes:
        A step that raises leaves the state partially updated; callers wishing to retry
        must restore a snapshot taken with `SimulationState.copy()`.
    """

    def __init__(
            self,
            params: SystemParameters,
            potential: PotentialEvaluator,
            reaction_coordinate: ReactionCoordinate) -> None:
        if not callable(potential):
            raise TypeError(f"The potential must be callable, instead got `{type(potential).__name__}`")
        self.params = params
        self.potential = potential
        self.reaction_coordinate = reaction_coordinate
        self.free_ring = FreeRingPolymerPropagator(params)

    def _check(self, state: SimulationState) -> None:
        state.check_shapes(self.params.natoms, self.params.nbeads)

    def update_reaction_coordinate(self, state: SimulationState, xi_current: float) -> None:
        centroid = get_centroid(state.q)
        xi, dxi, d2xi = self.reaction_coordinate(centroid, xi_current)
        state.xi = xi
        state.dxi[...] = dxi
        state.d2xi[...] = d2xi

    def update_potential(self, state: SimulationState) -> None:
        V, dVdq = self.potential(state.q)
        V = np.asarray(V, dtype=float)
        dVdq = np.asarray(dVdq, dtype=float)
        if V.shape != state.V.shape or dVdq.shape != state.dVdq.shape:
            raise ShapeMismatch(
                f"The potential returned energies of shape {V.shape} and gradients of shape {dVdq.shape}, "
                f"expecting {state.V.shape} and {state.dVdq.shape}")
        state.V[...] = V
        state.dVdq[...] = dVdq

    def initialize(self, state: SimulationState, xi_current: Optional[float] = 0.0) -> None:
        """Evaluate the potential and the reaction coordinate at the current positions,
        so that the first half-kick uses a gradient consistent with the initial state.
        """
        self._check(state)
        self.update_reaction_coordinate(state, xi_current)
        self.update_potential(state)

    def step(self, state: SimulationState, xi_current: Optional[float] = 0.0) -> None:
        """Advance the state in place by one time step.

        Raises:
            ShapeMismatch: if the state does not match the run parameters (nothing is modified)
            NumericalSingularity: if the reaction coordinate is undefined at the new centroid
        """
        self._check(state)
        dt = self.params.dt
        state.p -= 0.5 * dt * state.dVdq
        self.free_ring.propagate(state.p, state.q)
        self.update_reaction_coordinate(state, xi_current)
        self.update_potential(state)
        state.p -= 0.5 * dt * state.dVdq
        state.time += dt

    def run(
            self,
            state: SimulationState,
            nsteps: int,
            xi_current: Optional[float] = 0.0,
            callback: Optional[Callable[[SimulationState, int], None]] = None) -> None:
        """Take `nsteps` steps, calling `callback(state, istep)` after each one."""
        logger.debug(f"Running {nsteps} velocity Verlet step(s) from t = {state.time}")
        for istep in range(1, nsteps+1):
            self.step(state, xi_current)
            if callback is not None:
                callback(state, istep)
