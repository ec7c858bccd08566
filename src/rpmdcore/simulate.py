#!/usr/bin/env python
# -*-coding:utf-8 -*-
'''
@File    :   simulate.py
@Time    :   2026/02/06 10:32:37
@Author  :   George Trenins
@Desc    :   Top-level driver for ring-polymer molecular dynamics runs.
'''


from __future__ import print_function, division, absolute_import
from contextlib import ExitStack
from datetime import datetime
from pathlib import Path
from typing import Optional, Union, IO, Dict
import argparse
import functools
import logging
import os
import sys
from rpmdcore.config.config_handler import ConfigHandler, ConfigError
from rpmdcore.coordinate import ReactionCoordinate, SURFACE_MAP
from rpmdcore.errors import ConfigurationError
from rpmdcore.dynamics import VelocityVerlet
from rpmdcore.geometry import get_kinetic_energy, get_ring_polymer_energy, get_radius_of_gyration
from rpmdcore.potentials import POTENTIAL_MAP
from rpmdcore.system import SystemParameters, SimulationState

logger = logging.getLogger(__name__)


class _DelExitStack(ExitStack):
    """A private helper class to hold the finalizer. When _DelExitStack is garbage-collected, __del__ calls .close(), which closes all registered resources."""
    def __del__(self):
        self.close()


class IOContext(object):

    @functools.cached_property
    def _exitstack(self):
        """Lazily creates the _DelExitStack the first time it's needed, then caches it."""
        return _DelExitStack()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def closelater(self, fd):
        """Enter a given context manager and registers its __exit__ to run on close."""
        return self._exitstack.enter_context(fd)

    def close(self):
        self._exitstack.close()

    def openfile(self, file, mode='w'):
        if hasattr(file, 'close'):
            # user-managed, returned as-is
            return file
        encoding = None if mode.endswith('b') else 'utf-8'
        if file is None:
            return self.closelater(open(os.devnull, mode=mode, encoding=encoding))
        if file == '-':
            return sys.stdout
        return self.closelater(open(file, mode=mode, encoding=encoding))


class Simulation(IOContext):
    """A single RPMD trajectory: run parameters, integrator and the state it advances.

    Args:
        params (SystemParameters): run parameters
        integrator (VelocityVerlet): time stepper
        state (SimulationState): initial state, already initialized by the integrator
        xi_current (float, optional): interpolation parameter of the recrossing-factor
            reaction coordinate. Defaults to 0.
        logfile (file-like, str or Path, optional): where to write observables;
            '-' for stdout, None to discard.
        log_every (int, optional): write observables every this many steps. Defaults to 1.
        completed_steps (int, optional): steps already taken, e.g. before a restart.
    """

    def __init__(
            self,
            params: SystemParameters,
            integrator: VelocityVerlet,
            state: SimulationState,
            xi_current: Optional[float] = 0.0,
            logfile: Optional[Union[IO, str, Path]] = None,
            log_every: Optional[int] = 1,
            completed_steps: Optional[int] = 0) -> None:
        self.params = params
        self.integrator = integrator
        self.state = state
        self.xi_current = float(xi_current)
        self.logfile = self.openfile(file=logfile, mode='a')
        self.log_every = max(1, int(log_every))
        self.nsteps = int(completed_steps)
        # a restarted run appends to a log that already has its header
        self._header_written = self.nsteps > 0

    @classmethod
    def from_config(cls, handler: ConfigHandler) -> "Simulation":
        params = handler.get_system_parameters()
        xi_current = handler.get_xi_current()

        # Instantiate the potential
        potential_config: dict = handler.get_potential_config()
        potential_type = potential_config.get("type")
        try:
            PotentialClass = POTENTIAL_MAP[potential_type]
        except (KeyError, TypeError):
            raise ConfigError(
                f"Unknown potential '{potential_type}'. Available: {list(POTENTIAL_MAP.keys())}")
        try:
            potential = PotentialClass.from_dict(potential_config.get("parameters", {}))
        except ConfigurationError as e:
            raise ConfigError(f"Invalid parameters for potential '{potential_type}': {e}")

        # Instantiate the dividing surfaces and the reaction coordinate
        surfaces_config: dict = handler.get_surfaces_config()
        surfaces = {}
        for name in ["reactants", "transition_state"]:
            try:
                surfaces[name] = SURFACE_MAP[name].from_dict(surfaces_config[name], params.mass)
            except ConfigurationError as e:
                raise ConfigError(f"Invalid 'surfaces.{name}': {e}")
        rxn = ReactionCoordinate(surfaces["reactants"], surfaces["transition_state"], params.mode)
        integrator = VelocityVerlet(params, potential, rxn)

        # Initial state, either fresh or from a checkpoint
        completed_steps = 0
        restart = handler.get_restart_config()
        if restart is not None and restart.get("enabled", False):
            _, chk = ConfigHandler.load_checkpoint(restart["restart_file"])
            state = SimulationState.from_dict(chk["state"])
            state.check_shapes(params.natoms, params.nbeads)
            completed_steps = chk["completed_steps"]
            logger.info(f"Restarting from step {completed_steps}, t = {state.time}")
        else:
            state = handler.load_initial_state(params)
            integrator.initialize(state, xi_current)

        run_config: dict = handler.get_run_config()
        return cls(
            params, integrator, state,
            xi_current=xi_current,
            logfile=run_config.get("logfile"),
            log_every=run_config.get("log_every", 1),
            completed_steps=completed_steps)

    def observables(self) -> Dict[str, float]:
        state = self.state
        mass = self.params.mass
        ekin = get_kinetic_energy(state.p, mass)
        ering = get_ring_polymer_energy(state.q, mass, self.params.beta)
        epot = float(state.V.sum())
        return {
            "time": state.time,
            "xi": state.xi,
            "ekin": ekin,
            "ering": ering,
            "epot": epot,
            "etot": ekin + ering + epot,
            "rgyr": float(get_radius_of_gyration(state.q).mean()),
        }

    def log(self) -> None:
        obs = self.observables()
        if not self._header_written:
            self.logfile.write("# %8s " % "step" + " ".join(f"{key:>16s}" for key in obs) + "\n")
            self._header_written = True
        self.logfile.write("  %8d " % self.nsteps + " ".join(f"{val: 16.8e}" for val in obs.values()) + "\n")
        self.logfile.flush()

    def run(self, steps: int) -> SimulationState:
        """Take `steps` further time steps, logging observables along the way. The
        count is in addition to any steps completed before a restart.
        """
        logger.info(f"Starting {steps} step(s) of RPMD at step {self.nsteps}, t = {self.state.time}")
        if self.nsteps == 0:
            self.log()

        def callback(state, istep):
            self.nsteps += 1
            if self.nsteps % self.log_every == 0:
                self.log()

        self.integrator.run(self.state, steps, self.xi_current, callback=callback)
        logger.info(f"Finished at step {self.nsteps}, t = {self.state.time}")
        return self.state

    def checkpoint_data(self) -> dict:
        return {
            "completed_steps": self.nsteps,
            "timestamp": datetime.now().isoformat(),
            "state": self.state.to_dict(),
        }


def main(args: argparse.Namespace):
    handler: ConfigHandler = ConfigHandler(args.config)
    handler.validate()
    with Simulation.from_config(handler) as simulation:
        steps = handler.get_run_config()["steps"]
        simulation.run(steps)
        chk = getattr(args, "chk", None)
        if chk is None:
            project = handler.get_project_config()
            output_dir = Path(project["output_dir"])
            output_dir.mkdir(parents=True, exist_ok=True)
            chk = output_dir / f"{project['name']}.chk.json"
        handler.save_checkpoint(chk, simulation.checkpoint_data())
    return simulation


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Ring-polymer molecular dynamics driver.")
    parser.add_argument('config', type=str, help="Path to config file (YAML/JSON)")
    parser.add_argument('--chk', type=str, default=None, help="Path of the checkpoint written at the end of the run")
    parser.add_argument('-v', '--verbose', action='store_true', help="Print debugging messages")

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    main(args)
