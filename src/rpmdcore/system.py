#!/usr/bin/env python
# -*-coding:utf-8 -*-
'''
@File    :   system.py
@Time    :   2026/02/02 10:21:36
@Author  :   George Trenins
@Desc    :   Run parameters and the mutable dynamical state of a ring-polymer trajectory
'''


from __future__ import print_function, division, absolute_import
from typing import Any, Dict, Optional
import copy
import numpy as np
import numpy.typing as npt
from rpmdcore.errors import ConfigurationError, ShapeMismatch

UMBRELLA_INTEGRATION = "umbrella-integration"
RECROSSING_FACTOR = "recrossing-factor"
MODES = (UMBRELLA_INTEGRATION, RECROSSING_FACTOR)


class SystemParameters(object):
    """Parameters that stay fixed for the duration of a run.

    Args:
        dt (float): time step
        beta (float): reciprocal temperature 1/(kB*T)
        mass (array-like): per-atom masses
        nbeads (int): number of ring-polymer beads per atom
        mode (str): reaction-coordinate formula, one of `MODES`

    Raises:
        ConfigurationError: if any of the above is out of range
    """

    def __init__(
            self,
            dt: float,
            beta: float,
            mass: npt.ArrayLike,
            nbeads: int,
            mode: str) -> None:
        dt = float(dt)
        if not dt > 0:
            raise ConfigurationError(f"The time step must be positive, instead got dt = {dt}")
        beta = float(beta)
        if not beta > 0:
            raise ConfigurationError(f"The reciprocal temperature must be positive, instead got beta = {beta}")
        mass = np.array(mass, dtype=float, ndmin=1)
        if mass.ndim != 1 or mass.size == 0:
            raise ConfigurationError(f"Expecting a non-empty 1D array of atomic masses, instead got shape {mass.shape}")
        if np.any(~(mass > 0)):
            raise ConfigurationError(f"All atomic masses must be positive, instead got {mass.tolist()}")
        if int(nbeads) != nbeads or nbeads < 1:
            raise ConfigurationError(f"The number of beads must be a positive integer, instead got {nbeads}")
        if mode not in MODES:
            raise ConfigurationError(f"Unrecognized reaction-coordinate mode '{mode}'. Valid modes are {MODES}.")
        mass.flags.writeable = False
        self._dt = dt
        self._beta = beta
        self._mass = mass
        self._nbeads = int(nbeads)
        self._mode = mode

    @property
    def dt(self) -> float:
        return self._dt

    @property
    def beta(self) -> float:
        return self._beta

    @property
    def mass(self) -> npt.NDArray[np.floating]:
        return self._mass

    @property
    def nbeads(self) -> int:
        return self._nbeads

    @property
    def natoms(self) -> int:
        return self._mass.size

    @property
    def mode(self) -> str:
        return self._mode

    def to_dict(self) -> Dict[str, Any]:
        return {
            'dt': self.dt,
            'beta': self.beta,
            'mass': self.mass.tolist(),
            'nbeads': self.nbeads,
            'mode': self.mode,
        }

    @classmethod
    def from_dict(cls, params: Dict[str, Any]) -> "SystemParameters":
        try:
            return cls(params['dt'], params['beta'], params['mass'], params['nbeads'], params['mode'])
        except KeyError as e:
            raise ConfigurationError(f"Missing system parameter {e}") from e

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(dt={self.dt}, beta={self.beta}, "
                f"natoms={self.natoms}, nbeads={self.nbeads}, mode='{self.mode}')")


class SimulationState(object):
    """Bead-resolved phase-space point of a ring polymer plus the quantities
    evaluated there. All arrays are owned by the state and updated in place.

    Attributes:
        time: simulation time
        p: momenta, shape (3, natoms, nbeads)
        q: positions, shape (3, natoms, nbeads)
        V: potential energy of each bead, shape (nbeads,)
        dVdq: gradient of the potential w.r.t. bead positions, shape (3, natoms, nbeads)
        xi: value of the reaction coordinate
        dxi: gradient of the reaction coordinate w.r.t. centroid positions, shape (3, natoms)
        d2xi: Hessian of the reaction coordinate, shape (3, natoms, 3, natoms)
    """

    def __init__(
            self,
            time: float,
            p: npt.ArrayLike,
            q: npt.ArrayLike,
            V: Optional[npt.ArrayLike] = None,
            dVdq: Optional[npt.ArrayLike] = None,
            xi: Optional[float] = 0.0,
            dxi: Optional[npt.ArrayLike] = None,
            d2xi: Optional[npt.ArrayLike] = None) -> None:
        self.time = float(time)
        self.q = np.array(q, dtype=float)
        if self.q.ndim != 3 or self.q.shape[0] != 3:
            raise ShapeMismatch(f"Positions must have shape (3, natoms, nbeads), instead got {self.q.shape}")
        _, natoms, nbeads = self.q.shape
        self.p = self._init_array(p, self.q.shape, "p")
        self.V = self._init_array(V, (nbeads,), "V")
        self.dVdq = self._init_array(dVdq, self.q.shape, "dVdq")
        self.xi = float(xi)
        self.dxi = self._init_array(dxi, (3, natoms), "dxi")
        self.d2xi = self._init_array(d2xi, (3, natoms, 3, natoms), "d2xi")

    @staticmethod
    def _init_array(value, shape, name) -> npt.NDArray[np.floating]:
        if value is None:
            return np.zeros(shape)
        arr = np.array(value, dtype=float)
        if arr.shape != shape:
            raise ShapeMismatch(f"'{name}' must have shape {shape}, instead got {arr.shape}")
        return arr

    @property
    def natoms(self) -> int:
        return self.q.shape[1]

    @property
    def nbeads(self) -> int:
        return self.q.shape[2]

    @classmethod
    def zeros(cls, natoms: int, nbeads: int) -> "SimulationState":
        return cls(0.0, np.zeros((3, natoms, nbeads)), np.zeros((3, natoms, nbeads)))

    @classmethod
    def from_positions(
            cls,
            q: npt.ArrayLike,
            p: Optional[npt.ArrayLike] = None,
            time: Optional[float] = 0.0,
            nbeads: Optional[int] = None) -> "SimulationState":
        """Create a state from bead positions of shape (3, natoms, nbeads). Centroid
        positions of shape (3, natoms) are accepted if `nbeads` is given and are
        replicated onto every bead.
        """
        q = np.asarray(q, dtype=float)
        if q.ndim == 2:
            if nbeads is None:
                raise ShapeMismatch("The number of beads is required to expand centroid positions")
            q = np.repeat(q[..., None], int(nbeads), axis=-1)
        return cls(time, p, q)

    def check_shapes(self, natoms: int, nbeads: int) -> None:
        """Verify that all arrays match the given numbers of atoms and beads.

        Raises:
            ShapeMismatch
        """
        expected = {
            'p': (3, natoms, nbeads),
            'q': (3, natoms, nbeads),
            'V': (nbeads,),
            'dVdq': (3, natoms, nbeads),
            'dxi': (3, natoms),
            'd2xi': (3, natoms, 3, natoms),
        }
        for name, shape in expected.items():
            actual = np.shape(getattr(self, name))
            if actual != shape:
                raise ShapeMismatch(
                    f"State array '{name}' has shape {actual}, expecting {shape} "
                    f"for {natoms} atom(s) and {nbeads} bead(s)")

    def copy(self) -> "SimulationState":
        """Return an independent snapshot of the state."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'time': self.time,
            'p': self.p.tolist(),
            'q': self.q.tolist(),
            'V': self.V.tolist(),
            'dVdq': self.dVdq.tolist(),
            'xi': self.xi,
            'dxi': self.dxi.tolist(),
            'd2xi': self.d2xi.tolist(),
        }

    @classmethod
    def from_dict(cls, state: Dict[str, Any]) -> "SimulationState":
        try:
            return cls(state['time'], state['p'], state['q'],
                       V=state.get('V'), dVdq=state.get('dVdq'),
                       xi=state.get('xi', 0.0), dxi=state.get('dxi'), d2xi=state.get('d2xi'))
        except KeyError as e:
            raise ShapeMismatch(f"Serialized state is missing {e}") from e
