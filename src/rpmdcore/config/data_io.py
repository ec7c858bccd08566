#!/usr/bin/env python
# -*-coding:utf-8 -*-
'''
@File    :   data_io.py
@Time    :   2026/01/12 11:38:01
@Author  :   George Trenins
@Desc    :   None

Loading of initial positions and momenta, either from external files (CSV or .npy)
or from inline (YAML-specified) arrays.

A CSV file holds one atom per row and the x, y, z coordinates in its columns. For
bead-resolved data the rows run over beads within atoms, i.e. natoms*nbeads rows.
'''

from __future__ import print_function, division, absolute_import
from pathlib import Path
from typing import Dict
import logging
import warnings
import numpy as np
import numpy.typing as npt
from rpmdcore.errors import ConfigurationError


logger = logging.getLogger(__name__)

class DataLoadError(ConfigurationError):
    """Raised when data loading fails."""
    pass


def load_array(
    config_dict: Dict,
    data_name: str,
    natoms: int,
    nbeads: int
) -> npt.NDArray[np.floating]:
    """Load a positions or momenta array from its config block.

    Args:
        config_dict: Data configuration block from YAML
        data_name: Name of the array (for logging)
        natoms: number of atoms in the system
        nbeads: number of beads per atom

    Returns:
        Array of shape (3, natoms, nbeads). Centroid-level data of shape
        (3, natoms) is replicated onto every bead.

    Raises:
        DataLoadError: If configuration is invalid or loading fails
    """
    source = config_dict.get('source')

    if source == 'external':
        data = _load_external(config_dict, data_name)
    elif source == 'inline':
        data = _load_inline(config_dict, data_name)
    else:
        raise DataLoadError(
            f"Unknown data source: {source}. Must be 'external' or 'inline'"
        )
    return _reshape(data, data_name, natoms, nbeads, config_dict.get('layout', 'atoms_xyz'))


def _reshape(
    data: npt.NDArray[np.floating],
    data_name: str,
    natoms: int,
    nbeads: int,
    layout: str
) -> npt.NDArray[np.floating]:
    """Bring rows of (x, y, z) or an array in (3, natoms[, nbeads]) layout to shape (3, natoms, nbeads)."""
    if layout == 'atoms_xyz':
        if data.ndim != 2 or data.shape[1] != 3:
            raise DataLoadError(
                f"Data '{data_name}': expecting rows of x, y, z coordinates, got shape {data.shape}")
        if data.shape[0] == natoms:
            arr = data.T
        elif data.shape[0] == natoms * nbeads:
            arr = data.reshape(natoms, nbeads, 3).transpose(2, 0, 1)
        else:
            raise DataLoadError(
                f"Data '{data_name}': expecting {natoms} or {natoms*nbeads} rows, got {data.shape[0]}")
    elif layout == 'xyz_atoms':
        arr = data
    else:
        raise DataLoadError(
            f"Data '{data_name}': unknown layout '{layout}'. Must be 'atoms_xyz' or 'xyz_atoms'")
    if arr.shape == (3, natoms):
        arr = np.repeat(arr[..., None], nbeads, axis=-1)
    if arr.shape != (3, natoms, nbeads):
        raise DataLoadError(
            f"Data '{data_name}': expecting shape {(3, natoms)} or {(3, natoms, nbeads)}, got {arr.shape}")
    return np.ascontiguousarray(arr, dtype=float)


def _load_external(
    config_dict: Dict,
    data_name: str
) -> npt.NDArray[np.floating]:
    """Load data from an external CSV or .npy file.

    Raises:
        DataLoadError: If path missing, file not found, or parsing fails
    """
    path = config_dict.get('path')
    if not path:
        raise DataLoadError(f"Data '{data_name}': 'path' required for external source")

    path = Path(path)
    if not path.exists():
        raise DataLoadError(f"Data '{data_name}': File not found at {path}")

    fmt = config_dict.get('format', path.suffix.lstrip('.') or 'csv').lower()
    try:
        if fmt == 'npy':
            data = np.load(path, allow_pickle=False)
        elif fmt == 'csv':
            delimiter = config_dict.get('delimiter', ',')
            # Suppress the "input contained no data" warning from numpy.loadtxt
            with warnings.catch_warnings():
                warnings.filterwarnings("ignore", message=".*loadtxt: input contained no data.*")
                data = np.loadtxt(path, delimiter=delimiter, dtype=float, ndmin=2)
        else:
            raise DataLoadError(f"Data '{data_name}': Only CSV and npy formats supported, got {fmt}")
    except (OSError, IOError) as e:
        raise DataLoadError(f"Data '{data_name}': I/O error reading {path}: {e}")
    except ValueError as e:
        # numpy.loadtxt raises ValueError for non-numeric data
        raise DataLoadError(
            f"Data '{data_name}': Failed to parse {path} (non-numeric data?): {e}"
        )
    if data.size == 0:
        raise DataLoadError(f"Data '{data_name}': {path} contains no data")
    data = np.asarray(data, dtype=float)
    logger.info(f"Loaded array of shape {data.shape} for '{data_name}' from {path}")
    return data


def _load_inline(
    config_dict: Dict,
    data_name: str
) -> npt.NDArray[np.floating]:
    """Load an inline (YAML-specified) array.

    Raises:
        DataLoadError: If 'values' is missing or not numeric
    """
    values = config_dict.get('values')
    if values is None:
        raise DataLoadError(f"Data '{data_name}': 'values' required for inline source")
    try:
        data = np.asarray(values, dtype=float)
    except (TypeError, ValueError) as e:
        raise DataLoadError(f"Data '{data_name}': Failed to convert to array: {e}")
    logger.info(f"Loaded inline array of shape {data.shape} for '{data_name}'")
    return data
