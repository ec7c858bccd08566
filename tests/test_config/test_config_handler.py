#!/usr/bin/env python
# -*-coding:utf-8 -*-
"""Tests for configuration handler functionality."""

from __future__ import print_function, division, absolute_import
import pytest
import copy
import json
import numpy as np
from datetime import datetime
from pathlib import Path
from numpy.testing import assert_allclose
from rpmdcore.config.config_handler import ConfigHandler, ConfigError
from rpmdcore.errors import ConfigurationError
from rpmdcore.system import SimulationState, RECROSSING_FACTOR
from rpmdcore.units import hartAng


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def fixtures_dir():
    """Return path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def minimal_valid_config():
    """Return minimal valid configuration as dictionary."""
    return {
        'project': {
            'name': 'test_project',
            'output_dir': './output'
        },
        'system': {
            'dt': 10.0,
            'beta': 1000.0,
            'masses': [1837.0, 1837.0, 1837.0],
            'nbeads': 4,
            'mode': 'umbrella-integration'
        },
        'initial': {
            'position': {
                'source': 'inline',
                'values': [[-3.0, 0.0, 0.0], [0.0, 0.0, 0.0], [1.4, 0.0, 0.0]]
            }
        },
        'potential': {
            'type': 'harmonic',
            'parameters': {'k': 0.01}
        },
        'surfaces': {
            'reactants': {'fragments': [[0], [1, 2]], 'Rinf': 10.0},
            'transition_state': {
                'forming_bonds': [[0, 1]],
                'forming_distances': [1.8],
                'breaking_bonds': [[1, 2]],
                'breaking_distances': [1.8]
            }
        },
        'run': {
            'steps': 5
        }
    }


# ============================================================================
# GROUP 1: BASIC LOADING TESTS
# ============================================================================

class TestConfigLoading:
    """Test configuration file loading and parsing."""

    def test_load_yaml_file(self, fixtures_dir):
        """Load valid YAML configuration."""
        yaml_path = fixtures_dir / "minimal_valid.yaml"
        handler = ConfigHandler(yaml_path)
        assert handler.config is not None
        assert handler.config_path == yaml_path.resolve()
        assert handler.config['project']['name'] == 'test_project'

    def test_load_json_file(self, fixtures_dir):
        """Load valid JSON configuration (checkpoint format)."""
        json_path = fixtures_dir / "minimal_valid.json"
        handler = ConfigHandler(json_path)
        assert handler.config_path == json_path.resolve()
        assert handler.config['project']['name'] == 'test_project'

    def test_load_without_extension(self, fixtures_dir):
        """Load file without .yaml/.json extension (tries both parsers)."""
        handler = ConfigHandler(fixtures_dir / "no_extension")
        assert handler.config['system']['nbeads'] == 4

    def test_file_not_found(self):
        with pytest.raises(ConfigError, match="not found"):
            ConfigHandler('/nonexistent/path/config.yaml')

    def test_empty_file(self, fixtures_dir):
        with pytest.raises(ConfigError, match="empty"):
            ConfigHandler(fixtures_dir / "empty.yaml")

    def test_invalid_yaml_syntax(self, fixtures_dir):
        with pytest.raises(ConfigError, match="Failed to parse YAML"):
            ConfigHandler(fixtures_dir / "invalid_yaml.yaml")

    def test_invalid_json_syntax(self, fixtures_dir):
        with pytest.raises(ConfigError, match="Failed to parse JSON"):
            ConfigHandler(fixtures_dir / "invalid_json.json")

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigError, match="must be a mapping"):
            ConfigHandler(path)

    def test_config_error_hierarchy(self):
        assert issubclass(ConfigError, ConfigurationError)


# ============================================================================
# GROUP 2: PATH RESOLUTION TESTS
# ============================================================================

class TestPathResolution:
    """Test path resolution relative to config file directory."""

    def test_resolve_relative_output_dir(self, fixtures_dir):
        handler = ConfigHandler(fixtures_dir / "relative_paths.yaml")
        output_dir = Path(handler.config['project']['output_dir'])
        assert output_dir.is_absolute()
        assert output_dir == (fixtures_dir / "output").resolve()

    def test_preserve_absolute_output_dir(self, fixtures_dir):
        handler = ConfigHandler(fixtures_dir / "with_restart.yaml")
        assert handler.config['project']['output_dir'] == "/tmp/absolute_output"

    def test_resolve_relative_data_path(self, fixtures_dir):
        handler = ConfigHandler(fixtures_dir / "relative_paths.yaml")
        data_path = Path(handler.config['initial']['position']['path'])
        assert data_path == (fixtures_dir / "positions.csv").resolve()

    def test_resolve_logfile(self, fixtures_dir):
        handler = ConfigHandler(fixtures_dir / "relative_paths.yaml")
        assert Path(handler.config['run']['logfile']) == (fixtures_dir / "run.log").resolve()

    def test_stdout_logfile_untouched(self, fixtures_dir):
        handler = ConfigHandler(fixtures_dir / "with_restart.yaml")
        assert handler.config['run']['logfile'] == "-"

    def test_resolve_relative_restart_file(self, fixtures_dir):
        handler = ConfigHandler(fixtures_dir / "with_restart.yaml")
        restart_file = Path(handler.config['restart']['restart_file'])
        assert restart_file == (fixtures_dir / "minimal_valid.json").resolve()

    def test_inline_data_no_path_resolution(self, fixtures_dir):
        handler = ConfigHandler(fixtures_dir / "minimal_valid.yaml")
        assert 'path' not in handler.config['initial']['position']


# ============================================================================
# GROUP 3: VALIDATION TESTS
# ============================================================================

def _without(config, section, key=None):
    config = copy.deepcopy(config)
    if key is None:
        config.pop(section)
    else:
        config[section].pop(key)
    return config


def _with(config, section, key, value):
    config = copy.deepcopy(config)
    config[section][key] = value
    return config


class TestConfigValidation:
    """Test configuration validation logic."""

    @pytest.mark.parametrize("name", ["minimal_valid.yaml", "minimal_valid.json",
                                      "relative_paths.yaml", "with_restart.yaml"])
    def test_valid_fixtures(self, fixtures_dir, name):
        ConfigHandler(fixtures_dir / name).validate()

    @pytest.mark.parametrize("section", ['project', 'system', 'initial', 'potential', 'surfaces', 'run'])
    def test_missing_section(self, minimal_valid_config, section):
        handler = ConfigHandler.from_dict(_without(minimal_valid_config, section))
        with pytest.raises(ConfigError, match="missing required keys"):
            handler.validate()

    def test_invalid_section_type(self, minimal_valid_config):
        config = copy.deepcopy(minimal_valid_config)
        config['potential'] = 'harmonic'
        with pytest.raises(ConfigError, match="'potential' must be a dictionary"):
            ConfigHandler.from_dict(config).validate()

    @pytest.mark.parametrize("section, key", [
        ('project', 'name'),
        ('project', 'output_dir'),
        ('system', 'dt'),
        ('system', 'masses'),
        ('system', 'nbeads'),
        ('system', 'mode'),
        ('initial', 'position'),
        ('potential', 'type'),
    ])
    def test_missing_required_key(self, minimal_valid_config, section, key):
        handler = ConfigHandler.from_dict(_without(minimal_valid_config, section, key))
        with pytest.raises(ConfigError, match=f"'{section}.{key}' is required"):
            handler.validate()

    def test_beta_xor_temperature(self, minimal_valid_config):
        with pytest.raises(ConfigError, match="Exactly one"):
            ConfigHandler.from_dict(_without(minimal_valid_config, 'system', 'beta')).validate()
        with pytest.raises(ConfigError, match="Exactly one"):
            ConfigHandler.from_dict(_with(minimal_valid_config, 'system', 'temperature', '300 K')).validate()

    def test_unknown_unit_system(self, minimal_valid_config):
        with pytest.raises(ConfigError, match="Unknown unit system"):
            ConfigHandler.from_dict(_with(minimal_valid_config, 'system', 'units', 'cgs')).validate()

    @pytest.mark.parametrize("key, value", [
        ('dt', -1.0),
        ('dt', '1.0 parsec parsec'),
        ('dt', '1.0 blorp'),
        ('masses', [1837.0, 0.0, 1837.0]),
        ('nbeads', 0),
        ('mode', 'umbrella'),
    ])
    def test_invalid_system_values(self, minimal_valid_config, key, value):
        with pytest.raises(ConfigError):
            ConfigHandler.from_dict(_with(minimal_valid_config, 'system', key, value)).validate()

    def test_missing_data_source(self, minimal_valid_config):
        config = copy.deepcopy(minimal_valid_config)
        config['initial']['position'].pop('source')
        with pytest.raises(ConfigError, match="missing 'source' key"):
            ConfigHandler.from_dict(config).validate()

    def test_missing_surface(self, minimal_valid_config):
        config = copy.deepcopy(minimal_valid_config)
        config['surfaces'].pop('transition_state')
        with pytest.raises(ConfigError, match="'surfaces.transition_state' must be a dictionary"):
            ConfigHandler.from_dict(config).validate()

    @pytest.mark.parametrize("steps", [None, -1, 2.5, True])
    def test_invalid_steps(self, minimal_valid_config, steps):
        with pytest.raises(ConfigError, match="'run.steps' must be a non-negative integer"):
            ConfigHandler.from_dict(_with(minimal_valid_config, 'run', 'steps', steps)).validate()

    def test_invalid_restart_enabled(self, minimal_valid_config):
        config = copy.deepcopy(minimal_valid_config)
        config['restart'] = {'enabled': 'yes'}
        with pytest.raises(ConfigError, match="'restart.enabled' must be a boolean"):
            ConfigHandler.from_dict(config).validate()

    def test_restart_enabled_missing_file(self, minimal_valid_config):
        config = copy.deepcopy(minimal_valid_config)
        config['restart'] = {'enabled': True}
        with pytest.raises(ConfigError, match="'restart.restart_file' is required"):
            ConfigHandler.from_dict(config).validate()

    def test_restart_enabled_file_not_found(self, minimal_valid_config, tmp_path):
        config = copy.deepcopy(minimal_valid_config)
        config['restart'] = {'enabled': True, 'restart_file': str(tmp_path / "missing.json")}
        with pytest.raises(ConfigError, match="Restart file not found"):
            ConfigHandler.from_dict(config).validate()


# ============================================================================
# GROUP 4: UNIT CONVERSION AND INITIAL STATE
# ============================================================================

class TestSystemParameters:
    """Test conversion of the 'system' section to run parameters."""

    def test_atomic_defaults(self, minimal_valid_config):
        params = ConfigHandler.from_dict(minimal_valid_config).get_system_parameters()
        assert params.dt == 10.0
        assert params.beta == 1000.0
        assert params.natoms == 3
        assert params.nbeads == 4

    def test_quantities_with_units(self, fixtures_dir):
        handler = ConfigHandler(fixtures_dir / "relative_paths.yaml")
        params = handler.get_system_parameters()
        units = hartAng()
        assert params.mode == RECROSSING_FACTOR
        assert params.dt == pytest.approx(units.str2base("0.5 fs"))
        assert params.beta == pytest.approx(units.tempBeta(300.0))
        assert_allclose(params.mass, 3*[units.str2base("1.008 amu")])
        assert handler.get_xi_current() == 0.5

    def test_time_step_in_femtoseconds(self, minimal_valid_config):
        config = _with(minimal_valid_config, 'system', 'dt', '1.0 fs')
        params = ConfigHandler.from_dict(config).get_system_parameters()
        assert params.dt == pytest.approx(41.341373, rel=1e-6)

    def test_inline_centroid_positions(self, minimal_valid_config):
        handler = ConfigHandler.from_dict(minimal_valid_config)
        params = handler.get_system_parameters()
        state = handler.load_initial_state(params)
        assert isinstance(state, SimulationState)
        assert state.q.shape == (3, 3, 4)
        assert_allclose(state.q[0, :, 3], [-3.0, 0.0, 1.4])
        assert np.all(state.p == 0.0)
        assert state.time == 0.0

    def test_external_positions(self, fixtures_dir):
        handler = ConfigHandler(fixtures_dir / "relative_paths.yaml")
        state = handler.load_initial_state(handler.get_system_parameters())
        assert state.q.shape == (3, 3, 2)
        assert_allclose(state.q[0, :, 0], [-1.5, 0.0, 0.74])

    def test_load_failure_propagates(self, minimal_valid_config, tmp_path):
        config = copy.deepcopy(minimal_valid_config)
        config['initial']['momentum'] = {'source': 'external', 'path': str(tmp_path / "nonexistent.csv")}
        handler = ConfigHandler.from_dict(config)
        with pytest.raises(ConfigError, match="Failed to load initial momentum"):
            handler.load_initial_state(handler.get_system_parameters())


# ============================================================================
# GROUP 5: FROM_DICT AND TO_DICT TESTS
# ============================================================================

class TestConfigFromDict:
    """Test ConfigHandler.from_dict() and to_dict() methods."""

    def test_from_dict_config_path(self, minimal_valid_config, fixtures_dir):
        config_path = fixtures_dir / "minimal_valid.yaml"
        handler = ConfigHandler.from_dict(minimal_valid_config, config_path=config_path)
        assert handler.config_path == config_path.resolve()

    def test_to_dict_returns_deep_copy(self, minimal_valid_config):
        handler = ConfigHandler.from_dict(minimal_valid_config)
        config_copy = handler.to_dict()
        config_copy['project']['name'] = "changed"
        assert handler.config['project']['name'] != "changed"

    def test_getters_return_copies(self, minimal_valid_config):
        handler = ConfigHandler.from_dict(minimal_valid_config)
        handler.get_potential_config()['type'] = 'free'
        assert handler.config['potential']['type'] == 'harmonic'
        assert handler.get_restart_config() is None

    def test_quantities_converted_to_base_units(self, minimal_valid_config):
        config = copy.deepcopy(minimal_valid_config)
        config['potential']['parameters']['q0'] = [["1.0 angstrom", 0.0, 0.0], [0.0, "2.0 bohr", 0.0], [0.0, 0.0, 0.0]]
        config['surfaces']['reactants']['Rinf'] = "1.0 angstrom"
        config['surfaces']['transition_state']['breaking_distances'] = ["2.0 angstrom"]
        handler = ConfigHandler.from_dict(config)
        handler.validate()
        angstrom = 1.8897261246
        potential = handler.get_potential_config()
        assert potential['parameters']['k'] == 0.01
        assert_allclose(potential['parameters']['q0'],
                        [[angstrom, 0.0, 0.0], [0.0, 2.0, 0.0], [0.0, 0.0, 0.0]], rtol=1e-8)
        surfaces = handler.get_surfaces_config()
        assert surfaces['reactants']['Rinf'] == pytest.approx(angstrom, rel=1e-8)
        assert surfaces['transition_state']['breaking_distances'] == pytest.approx([2*angstrom], rel=1e-8)
        assert surfaces['transition_state']['forming_distances'] == [1.8]
        # the stored configuration keeps the original strings
        assert handler.config['surfaces']['reactants']['Rinf'] == "1.0 angstrom"

    def test_invalid_potential_quantity(self, minimal_valid_config):
        config = copy.deepcopy(minimal_valid_config)
        config['potential']['parameters']['k'] = "0.01 blorp"
        with pytest.raises(ConfigError, match="potential.parameters.k"):
            ConfigHandler.from_dict(config).validate()


# ============================================================================
# GROUP 6: CHECKPOINT SAVE/LOAD TESTS
# ============================================================================

class TestCheckpointIO:
    """Test checkpoint saving and loading functionality."""

    @pytest.fixture
    def simulation_state(self):
        state = SimulationState.zeros(3, 4)
        state.q[0] = np.arange(12.0).reshape(3, 4)
        state.time = 50.0
        return {
            'completed_steps': 5,
            'timestamp': datetime.now().isoformat(),
            'state': state.to_dict(),
        }

    def test_save_and_load_checkpoint_round_trip(self, tmp_path, fixtures_dir, simulation_state):
        handler = ConfigHandler(fixtures_dir / "minimal_valid.yaml")
        handler.validate()
        checkpoint_path = tmp_path / "checkpoint.json"
        handler.save_checkpoint(checkpoint_path, simulation_state)
        assert checkpoint_path.exists()

        loaded_handler, loaded_state = ConfigHandler.load_checkpoint(checkpoint_path)
        loaded_handler.validate()
        assert loaded_state == simulation_state
        assert loaded_handler.config['project']['name'] == handler.config['project']['name']
        state = SimulationState.from_dict(loaded_state['state'])
        assert state.time == 50.0
        assert_allclose(state.q[0], np.arange(12.0).reshape(3, 4))

    def test_save_numpy_values(self, tmp_path, minimal_valid_config):
        handler = ConfigHandler.from_dict(minimal_valid_config)
        checkpoint_path = tmp_path / "checkpoint.json"
        handler.save_checkpoint(checkpoint_path, {
            'completed_steps': np.int64(3),
            'timestamp': datetime.now().isoformat(),
            'state': {'xi': np.float64(0.25), 'q': np.zeros(2)},
        })
        with open(checkpoint_path) as f:
            checkpoint = json.load(f)
        assert checkpoint['simulation_state']['completed_steps'] == 3
        assert checkpoint['simulation_state']['state']['q'] == [0.0, 0.0]

    def test_save_requires_keys(self, tmp_path, minimal_valid_config):
        handler = ConfigHandler.from_dict(minimal_valid_config)
        with pytest.raises(ValueError, match="missing required keys"):
            handler.save_checkpoint(tmp_path / "checkpoint.json", {'completed_steps': 0})

    def test_checkpoint_requires_simulation_state(self, tmp_path, minimal_valid_config):
        checkpoint_path = tmp_path / "bad_checkpoint.json"
        with open(checkpoint_path, 'w') as f:
            json.dump(minimal_valid_config, f)
        with pytest.raises(ConfigError, match="missing 'simulation_state'"):
            ConfigHandler.load_checkpoint(checkpoint_path)

    def test_checkpoint_file_not_found(self, tmp_path):
        with pytest.raises(IOError, match="Checkpoint file not found"):
            ConfigHandler.load_checkpoint(tmp_path / "does_not_exist.json")

    def test_checkpoint_invalid_json(self, tmp_path):
        bad_path = tmp_path / "bad.json"
        with open(bad_path, 'w') as f:
            f.write("{invalid json")
        with pytest.raises(IOError, match="Failed to load checkpoint"):
            ConfigHandler.load_checkpoint(bad_path)

    def test_checkpoint_absolute_paths(self, tmp_path, fixtures_dir, simulation_state):
        """Checkpoint stores absolute paths for data files."""
        handler = ConfigHandler(fixtures_dir / "relative_paths.yaml")
        checkpoint_path = tmp_path / "checkpoint.json"
        handler.save_checkpoint(checkpoint_path, simulation_state)
        with open(checkpoint_path) as f:
            checkpoint = json.load(f)
        assert Path(checkpoint['project']['output_dir']).is_absolute()
        assert Path(checkpoint['initial']['position']['path']).is_absolute()


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
