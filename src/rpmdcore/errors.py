#!/usr/bin/env python
# -*-coding:utf-8 -*-
'''
@File    :   errors.py
@Time    :   2026/02/02 09:14:21
@Author  :   George Trenins
@Desc    :   Exceptions raised by the ring-polymer propagation engine
'''


from __future__ import print_function, division, absolute_import


class ConfigurationError(Exception):
    """Raised when the run parameters are invalid (unknown reaction-coordinate mode,
    non-positive masses, bead counts, time step or inverse temperature)."""
    pass


class ShapeMismatch(ValueError):
    """Raised when arrays passed into a single call have inconsistent dimensions."""
    pass


class InvalidInput(ValueError):
    """Raised when a bead sequence does not match the length expected by a transform."""
    pass


class NumericalSingularity(FloatingPointError):
    """Raised when the reaction coordinate is evaluated where its denominator vanishes."""
    pass
