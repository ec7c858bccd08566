#!/usr/bin/env python
# -*-coding:utf-8 -*-
"""
Configuration management for ring-polymer molecular dynamics runs.

Handles loading YAML configs, validating structure, converting physical
quantities to the units of the dynamics, and serializing/deserializing
checkpoints of the simulation state.
"""

from __future__ import print_function, division, absolute_import
from pathlib import Path
from typing import Dict, Any, Optional, Union, Tuple
import logging
import json
import copy

import yaml
import numpy as np

from rpmdcore.errors import ConfigurationError
from rpmdcore.system import SystemParameters, SimulationState
from rpmdcore.units import SI, UNIT_SYSTEMS
from .data_io import load_array, DataLoadError

logger = logging.getLogger(__name__)

# Entries holding physical quantities, converted to base units on access
POTENTIAL_QUANTITIES = ('k', 'q0')
SURFACE_QUANTITIES = {
    'reactants': ('Rinf',),
    'transition_state': ('forming_distances', 'breaking_distances'),
}


class ConfigError(ConfigurationError):
    """Raised when configuration is invalid or loading fails."""
    pass


class ConfigHandler:
    """Load, validate, and manage simulation configurations.

    Handles YAML input files, validation, and checkpoint serialization/deserialization.
    Converts relative paths to absolute paths relative to config file directory.
    """

    def __init__(self, config_path: Union[str, Path]) -> None:
        """Initialize configuration handler.

        Args:
            config_path: Path to YAML or JSON configuration file

        Raises:
            ConfigError: If file not found or parsing fails
        """
        self.config_path = Path(config_path).resolve()

        if not self.config_path.exists():
            raise ConfigError(f"Configuration file not found: {self.config_path}")

        if self.config_path.suffix in ['.yaml', '.yml']:
            self._load_yaml()
        elif self.config_path.suffix == '.json':
            self._load_json()
        else:
            # Try YAML first, then JSON
            try:
                self._load_yaml()
            except ConfigError:
                self._load_json()

        if self.config is None:
            raise ConfigError("Configuration file is empty")
        if not isinstance(self.config, dict):
            raise ConfigError(f"Configuration must be a mapping, instead got {type(self.config).__name__}")

        self._resolve_paths()

        logger.info(f"Loaded configuration from {self.config_path}")

    def _load_yaml(self) -> None:
        """Load configuration from YAML file."""
        try:
            with open(self.config_path, 'r') as f:
                self.config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML config: {e}")
        except (IOError, OSError) as e:
            raise ConfigError(f"I/O error reading config: {e}")

    def _load_json(self) -> None:
        """Load configuration from JSON file (e.g., checkpoint)."""
        try:
            with open(self.config_path, 'r') as f:
                self.config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Failed to parse JSON config: {e}")
        except (IOError, OSError) as e:
            raise ConfigError(f"I/O error reading config: {e}")

    def _resolve(self, path: Union[str, Path]) -> str:
        path = Path(path)
        if path.is_absolute():
            return str(path)
        return str((self.config_path.parent / path).resolve())

    def _resolve_paths(self) -> None:
        """Convert relative paths to absolute paths relative to config file directory.

        Modifies config dict in-place to store absolute paths for:
        - project.output_dir
        - initial[*].path (for external sources)
        - run.logfile (unless "-" for stdout)
        - restart.restart_file
        """
        config = self.config

        if isinstance(config.get('project'), dict) and 'output_dir' in config['project']:
            config['project']['output_dir'] = self._resolve(config['project']['output_dir'])

        if isinstance(config.get('initial'), dict):
            for _, data_config in config['initial'].items():
                if isinstance(data_config, dict) and data_config.get('source') == 'external':
                    if 'path' in data_config:
                        data_config['path'] = self._resolve(data_config['path'])

        if isinstance(config.get('run'), dict):
            logfile = config['run'].get('logfile')
            if logfile not in (None, '-'):
                config['run']['logfile'] = self._resolve(logfile)

        if isinstance(config.get('restart'), dict) and config['restart'].get('enabled'):
            if 'restart_file' in config['restart']:
                config['restart']['restart_file'] = self._resolve(config['restart']['restart_file'])

    @staticmethod
    def _validate_config_structure(config: Dict[str, Any]) -> None:
        """Validate that required top-level keys are present.

        Raises:
            ConfigError: If required keys are missing
        """
        required_keys = {'project', 'system', 'initial', 'potential', 'surfaces', 'run'}
        missing = required_keys - set(config.keys())

        if missing:
            raise ConfigError(
                f"Configuration missing required keys: {missing}. "
                f"Required keys: {required_keys}"
            )

    def validate(self) -> None:
        """Validate configuration structure and content.

        Raises:
            ConfigError: If validation fails
        """
        self._validate_config_structure(self.config)
        self.config: dict

        for section in ['project', 'system', 'initial', 'potential', 'surfaces', 'run']:
            if not isinstance(self.config.get(section), dict):
                raise ConfigError(f"'{section}' must be a dictionary")

        # Validate project section
        if 'name' not in self.config['project']:
            raise ConfigError("'project.name' is required")
        if 'output_dir' not in self.config['project']:
            raise ConfigError("'project.output_dir' is required")

        # Validate system section
        system = self.config['system']
        for key in ['dt', 'masses', 'nbeads', 'mode']:
            if key not in system:
                raise ConfigError(f"'system.{key}' is required")
        if ('beta' in system) == ('temperature' in system):
            raise ConfigError("Exactly one of 'system.beta' and 'system.temperature' is required")
        if system.get('units', 'atomic') not in UNIT_SYSTEMS:
            raise ConfigError(
                f"Unknown unit system '{system['units']}'. Available: {list(UNIT_SYSTEMS.keys())}")
        # Range checks on the converted values
        self.get_system_parameters()

        # Validate initial conditions
        if 'position' not in self.config['initial']:
            raise ConfigError("'initial.position' is required")
        for data_name, data_config in self.config['initial'].items():
            if not isinstance(data_config, dict):
                raise ConfigError(f"Initial data '{data_name}' must be a dictionary")
            if 'source' not in data_config:
                raise ConfigError(f"Initial data '{data_name}' missing 'source' key")

        # Validate potential
        if 'type' not in self.config['potential']:
            raise ConfigError("'potential.type' is required")

        # Validate dividing surfaces
        for name in ['reactants', 'transition_state']:
            if not isinstance(self.config['surfaces'].get(name), dict):
                raise ConfigError(f"'surfaces.{name}' must be a dictionary")
        self.get_potential_config()
        self.get_surfaces_config()

        # Validate run section
        steps = self.config['run'].get('steps')
        if not isinstance(steps, int) or isinstance(steps, bool) or steps < 0:
            raise ConfigError(f"'run.steps' must be a non-negative integer, instead got {steps}")

        # Validate restart section if present
        if 'restart' in self.config:
            restart = self.config['restart']
            if not isinstance(restart, dict):
                raise ConfigError("'restart' must be a dictionary")
            if 'enabled' in restart and not isinstance(restart['enabled'], bool):
                raise ConfigError("'restart.enabled' must be a boolean")

            if restart.get('enabled', False):
                if 'restart_file' not in restart:
                    raise ConfigError("'restart.restart_file' is required when restart is enabled")
                restart_path = Path(restart['restart_file'])
                if not restart_path.exists():
                    raise ConfigError(f"Restart file not found: {restart_path}")

        logger.info("Configuration validation passed")

    def get_units(self) -> SI:
        """Get the unit system in which the dynamics are carried out."""
        name = self.config['system'].get('units', 'atomic')
        try:
            return UNIT_SYSTEMS[name]()
        except KeyError:
            raise ConfigError(f"Unknown unit system '{name}'. Available: {list(UNIT_SYSTEMS.keys())}")

    def get_system_parameters(self) -> SystemParameters:
        """Convert the 'system' section to run parameters in the base units of the
        chosen unit system.

        Raises:
            ConfigError: If a quantity cannot be parsed or is out of range
        """
        system = self.config['system']
        units = self.get_units()
        try:
            dt = units.str2base(system['dt'])
            if 'beta' in system:
                beta = units.str2base(system['beta'])
            else:
                beta = units.tempBeta(units.str2base(system['temperature']))
            masses = np.array([units.str2base(m) for m in np.atleast_1d(system['masses']).tolist()])
            return SystemParameters(dt, beta, masses, system['nbeads'], system['mode'])
        except KeyError as e:
            raise ConfigError(f"'system' section is missing {e}")
        except (ValueError, TypeError, AttributeError) as e:
            raise ConfigError(f"Invalid physical quantity in 'system': {e}")
        except ConfigurationError as e:
            raise ConfigError(f"Invalid system parameters: {e}")

    def get_xi_current(self) -> float:
        return float(self.config['system'].get('xi_current', 0.0))

    def load_initial_state(self, params: SystemParameters) -> SimulationState:
        """Load initial positions (and momenta, if given; zero otherwise).

        Raises:
            ConfigError: If any array fails to load
        """
        arrays = {}
        for data_name in ['position', 'momentum']:
            data_config = self.config['initial'].get(data_name)
            if data_config is None:
                continue
            try:
                arrays[data_name] = load_array(data_config, data_name, params.natoms, params.nbeads)
                logger.info(f"Successfully loaded initial {data_name}")
            except DataLoadError as e:
                raise ConfigError(f"Failed to load initial {data_name}: {e}")
        return SimulationState(0.0, arrays.get('momentum'), arrays['position'])

    def _quantities_to_base(self, section: Dict[str, Any], keys, prefix: str) -> None:
        """Convert the entries `keys` of `section` in place to the base units of the
        run. Entries may be numbers, "value unit" strings, or nested lists of either.

        Raises:
            ConfigError: If a quantity cannot be parsed
        """
        units = self.get_units()

        def convert(value):
            if isinstance(value, (list, tuple)):
                return [convert(v) for v in value]
            return units.str2base(value)

        for key in keys:
            if key not in section:
                continue
            try:
                section[key] = convert(section[key])
            except (ValueError, TypeError, AttributeError) as e:
                raise ConfigError(f"Invalid physical quantity in '{prefix}.{key}': {e}")

    def get_potential_config(self) -> Dict[str, Any]:
        """Potential section with its physical parameters in base units."""
        potential = copy.deepcopy(self.config['potential'])
        parameters = potential.get('parameters')
        if isinstance(parameters, dict):
            self._quantities_to_base(parameters, POTENTIAL_QUANTITIES, 'potential.parameters')
        return potential

    def get_surfaces_config(self) -> Dict[str, Any]:
        """Dividing-surface section with its distances in base units."""
        surfaces = copy.deepcopy(self.config['surfaces'])
        for name, keys in SURFACE_QUANTITIES.items():
            if isinstance(surfaces.get(name), dict):
                self._quantities_to_base(surfaces[name], keys, f"surfaces.{name}")
        return surfaces

    def get_run_config(self) -> Dict[str, Any]:
        return copy.deepcopy(self.config['run'])

    def get_project_config(self) -> Dict[str, Any]:
        return copy.deepcopy(self.config['project'])

    def get_restart_config(self) -> Optional[Dict[str, Any]]:
        """Get restart configuration if present.

        Returns:
            Restart configuration dictionary or None if not configured
        """
        restart = self.config.get('restart')
        if restart is None:
            return None
        return copy.deepcopy(restart)

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self.config)

    @staticmethod
    def from_dict(config_dict: Dict[str, Any], config_path: Optional[Path] = None) -> 'ConfigHandler':
        """Create ConfigHandler from dictionary (e.g., from checkpoint).

        Args:
            config_dict: Configuration dictionary
            config_path: Optional path to associate with this config (for relative path resolution)
        """
        handler = ConfigHandler.__new__(ConfigHandler)
        handler.config = copy.deepcopy(config_dict)
        handler.config_path = Path(config_path).resolve() if config_path else None
        return handler

    def save_checkpoint(
        self,
        filepath: Union[str, Path],
        simulation_state: Dict[str, Any]
    ) -> None:
        """Save configuration and simulation state as JSON checkpoint.

        Args:
            filepath: Path to save checkpoint
            simulation_state: Dict with required keys:
                - completed_steps: Number of steps completed
                - timestamp: ISO 8601 timestamp
                - state: output of SimulationState.to_dict()

        Raises:
            IOError: If writing fails
            ValueError: If simulation_state missing required keys
        """
        filepath = Path(filepath)

        required_keys = {'completed_steps', 'timestamp', 'state'}
        missing = required_keys - set(simulation_state.keys())
        if missing:
            raise ValueError(f"simulation_state missing required keys: {missing}")

        checkpoint = copy.deepcopy(self.config)
        checkpoint['simulation_state'] = simulation_state

        try:
            with open(filepath, 'w') as f:
                json.dump(checkpoint, f, indent=2, default=_json_encoder)
            logger.info(f"Saved checkpoint to {filepath}")
        except (IOError, OSError, TypeError) as e:
            raise IOError(f"Failed to save checkpoint: {e}")

    @staticmethod
    def load_checkpoint(filepath: Union[str, Path]) -> Tuple['ConfigHandler', Dict[str, Any]]:
        """Load configuration and simulation state from JSON checkpoint.

        Returns:
            Tuple of (ConfigHandler, simulation_state_dict)

        Raises:
            IOError: If loading fails
            ConfigError: If the checkpoint has no simulation state
        """
        filepath = Path(filepath)

        if not filepath.exists():
            raise IOError(f"Checkpoint file not found: {filepath}")

        try:
            with open(filepath, 'r') as f:
                checkpoint = json.load(f)
        except (IOError, OSError, json.JSONDecodeError) as e:
            raise IOError(f"Failed to load checkpoint: {e}")

        if 'simulation_state' not in checkpoint:
            raise ConfigError("Checkpoint missing 'simulation_state' section")

        simulation_state = checkpoint.pop('simulation_state')
        handler = ConfigHandler.from_dict(checkpoint, config_path=filepath)
        logger.info(f"Loaded checkpoint from {filepath}")
        return handler, simulation_state


def _json_encoder(obj: Any) -> Any:
    """Custom JSON encoder for numpy types and other non-standard objects.

    Raises:
        TypeError: If object cannot be serialized
    """
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.bool_):
        return bool(obj)
    elif isinstance(obj, Path):
        return str(obj)
    else:
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
