#!/usr/bin/env python
# -*-coding:utf-8 -*-
'''
@File    :   reaction.py
@Time    :   2026/02/03 09:48:31
@Author  :   George Trenins
@Desc    :   Reaction coordinate interpolating between the reactants and transition-state dividing surfaces
'''


from __future__ import print_function, division, absolute_import
from typing import Tuple
import numpy as np
import numpy.typing as npt
from rpmdcore.errors import ConfigurationError, NumericalSingularity, ShapeMismatch
from rpmdcore.system import UMBRELLA_INTEGRATION, RECROSSING_FACTOR, MODES
from ._base import DividingSurface

SurfaceEval = Tuple[float, npt.NDArray[np.floating], npt.NDArray[np.floating]]


def umbrella_integration(s0: SurfaceEval, s1: SurfaceEval, xi_current: float) -> SurfaceEval:
    """ξ = s0 / (s0 - s1) together with its gradient and Hessian.

    With D = s0 - s1 and N = s0 ∇s1 - s1 ∇s0, the quotient rule gives
    ∇ξ = N / D² and

        ∂a∂b ξ = [ (s0 ∂a∂b s1 - s1 ∂a∂b s0 + ∂a s1 ∂b s0 - ∂a s0 ∂b s1) D
                   - 2 N_a (∂b s0 - ∂b s1) ] / D³

    `xi_current` is not used. Coinciding surfaces raise NumericalSingularity.
    """
    v0, g0, h0 = s0
    v1, g1, h1 = s1
    v0 = np.float64(v0)
    v1 = np.float64(v1)
    D = v0 - v1
    N = v0*g1 - v1*g0
    try:
        with np.errstate(divide='raise', invalid='raise'):
            xi = v0 / D
            dxi = N / D**2
            d2xi = ((v0*h1 - v1*h0
                     + np.multiply.outer(g1, g0) - np.multiply.outer(g0, g1)) * D
                    - 2*np.multiply.outer(N, g0 - g1)) / D**3
    except (FloatingPointError, ZeroDivisionError) as e:
        raise NumericalSingularity(
            f"The reactants and transition-state dividing surfaces coincide (s0 = {v0}, s1 = {v1}); "
            f"the umbrella-integration reaction coordinate is undefined") from e
    return float(xi), dxi, d2xi


def recrossing_factor(s0: SurfaceEval, s1: SurfaceEval, xi_current: float) -> SurfaceEval:
    """ξ = xi_current s1 + (1 - xi_current) s0, and likewise for the derivatives."""
    v0, g0, h0 = s0
    v1, g1, h1 = s1
    xi = xi_current * v1 + (1 - xi_current) * v0
    dxi = xi_current * g1 + (1 - xi_current) * g0
    d2xi = xi_current * h1 + (1 - xi_current) * h0
    return float(xi), dxi, d2xi


FORMULA_MAP = {
    UMBRELLA_INTEGRATION: umbrella_integration,
    RECROSSING_FACTOR: recrossing_factor,
}


class ReactionCoordinate(object):
    """Evaluates the reaction coordinate, its gradient and Hessian at a given centroid.

    Args:
        reactants (DividingSurface): the reactants dividing surface, s0
        transition_state (DividingSurface): the transition-state dividing surface, s1
        mode (str): one of "umbrella-integration" or "recrossing-factor"
    """

    def __init__(
            self,
            reactants: DividingSurface,
            transition_state: DividingSurface,
            mode: str) -> None:
        try:
            self._formula = FORMULA_MAP[mode]
        except (KeyError, TypeError):
            raise ConfigurationError(
                f"Unrecognized reaction-coordinate mode '{mode}'. Valid modes are {MODES}.")
        for name, surface in [("reactants", reactants), ("transition_state", transition_state)]:
            if not isinstance(surface, DividingSurface):
                raise TypeError(
                    f"The {name} dividing surface must provide value(), gradient() and hessian(), "
                    f"instead got `{type(surface).__name__}`")
        self.mode = mode
        self.reactants = reactants
        self.transition_state = transition_state

    @staticmethod
    def _evaluate(surface: DividingSurface, centroid: npt.NDArray[np.floating]) -> SurfaceEval:
        natoms = centroid.shape[1]
        value = float(surface.value(centroid))
        grad = np.asarray(surface.gradient(centroid), dtype=float)
        hess = np.asarray(surface.hessian(centroid), dtype=float)
        if grad.shape != (3, natoms) or hess.shape != (3, natoms, 3, natoms):
            raise ShapeMismatch(
                f"Dividing surface `{type(surface).__name__}` returned a gradient of shape {grad.shape} "
                f"and a Hessian of shape {hess.shape} for {natoms} atom(s)")
        return value, grad, hess

    def surfaces(self, centroid: npt.ArrayLike) -> Tuple[SurfaceEval, SurfaceEval]:
        """Value, gradient and Hessian of the reactants and transition-state surfaces."""
        centroid = np.asarray(centroid, dtype=float)
        if centroid.ndim != 2 or centroid.shape[0] != 3:
            raise ShapeMismatch(f"Centroid positions must have shape (3, natoms), instead got {centroid.shape}")
        return (self._evaluate(self.reactants, centroid),
                self._evaluate(self.transition_state, centroid))

    def __call__(self, centroid: npt.ArrayLike, xi_current: float = 0.0) -> SurfaceEval:
        """Returns
            xi (float): value of the reaction coordinate
            dxi (np.ndarray): gradient, shape (3, natoms)
            d2xi (np.ndarray): Hessian, shape (3, natoms, 3, natoms)
        """
        s0, s1 = self.surfaces(centroid)
        return self._formula(s0, s1, xi_current)
