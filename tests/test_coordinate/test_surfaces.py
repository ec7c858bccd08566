#!/usr/bin/env python
# -*-coding:utf-8 -*-
'''
@File    :   test_surfaces.py
@Time    :   2026/02/03 17:25:51
@Author  :   George Trenins
@Desc    :   Test the reactants and transition-state dividing surfaces
'''


from __future__ import print_function, division, absolute_import
import pytest
import numpy as np
import sympy as sp
from numpy.testing import assert_allclose
from rpmdcore.coordinate import DividingSurface, ReactantsSurface, TransitionStateSurface, SURFACE_MAP
from rpmdcore.errors import ConfigurationError, NumericalSingularity, ShapeMismatch

# A + BC -> AB + C
NATOMS = 3
MASS = np.array([1.0, 2.0, 3.0])
X = sp.Matrix(3, NATOMS, sp.symbols(f'x0:{3*NATOMS}', real=True))
FLAT = list(X)  # row-major, same order as centroid.ravel()


def distance(u, v):
    return sp.sqrt(sum((u[i] - v[i])**2 for i in range(3)))


def symbolic_derivatives(expr, centroid):
    grad = [sp.diff(expr, xi) for xi in FLAT]
    hess = [[sp.diff(g, xj) for xj in FLAT] for g in grad]
    args = centroid.ravel()
    value = float(sp.lambdify(FLAT, expr, 'numpy')(*args))
    grad = np.asarray(sp.lambdify(FLAT, grad, 'numpy')(*args), dtype=float).reshape(3, NATOMS)
    hess = np.asarray(sp.lambdify(FLAT, hess, 'numpy')(*args), dtype=float).reshape(3, NATOMS, 3, NATOMS)
    return value, grad, hess


@pytest.fixture
def centroid():
    return np.array([[0.0, 1.4, 2.9], [0.2, -0.1, 0.3], [0.1, 0.4, -0.2]])


def test_reactants_surface(centroid):
    Rinf = 10.0
    surf = ReactantsSurface(MASS, [[0], [1, 2]], Rinf)
    com_A = X[:, 0]
    m1, m2 = float(MASS[1]), float(MASS[2])
    com_B = (m1*X[:, 1] + m2*X[:, 2]) / (m1 + m2)
    expr = Rinf - distance(com_A, com_B)
    value, grad, hess = symbolic_derivatives(expr, centroid)
    assert surf.value(centroid) == pytest.approx(value, rel=1e-12)
    assert_allclose(surf.gradient(centroid), grad, rtol=1e-10, atol=1e-12)
    assert_allclose(surf.hessian(centroid), hess, rtol=1e-10, atol=1e-12)


def test_transition_state_surface(centroid):
    r_form, r_break = 1.2, 1.6
    surf = TransitionStateSurface(NATOMS, [[0, 1]], [r_form], [[1, 2]], [r_break])
    expr = (distance(X[:, 1], X[:, 2]) - r_break) - (distance(X[:, 0], X[:, 1]) - r_form)
    value, grad, hess = symbolic_derivatives(expr, centroid)
    assert surf.value(centroid) == pytest.approx(value, rel=1e-12)
    assert_allclose(surf.gradient(centroid), grad, rtol=1e-10, atol=1e-12)
    assert_allclose(surf.hessian(centroid), hess, rtol=1e-10, atol=1e-12)


def test_transition_state_zero_at_saddle():
    """s1 vanishes when the forming and breaking bonds have their transition-state lengths."""
    surf = TransitionStateSurface(NATOMS, [[0, 1]], [1.2], [[1, 2]], [1.6])
    x = np.array([[0.0, 1.2, 2.8], [0.0, 0.0, 0.0], [0.0, 0.0, 0.0]])
    assert surf.value(x) == pytest.approx(0.0, abs=1e-14)


def test_protocol():
    assert isinstance(ReactantsSurface(MASS, [[0], [1, 2]], 5.0), DividingSurface)
    assert isinstance(TransitionStateSurface(NATOMS, [[0, 1]], [1.0], [], []), DividingSurface)


def test_from_dict():
    reac = SURFACE_MAP["reactants"].from_dict({"fragments": [[0], [1, 2]], "Rinf": 8.0}, MASS)
    assert reac.Rinf == 8.0
    ts = SURFACE_MAP["transition_state"].from_dict(
        {"forming_bonds": [[0, 1]], "forming_distances": [1.2],
         "breaking_bonds": [[1, 2]], "breaking_distances": [1.6]}, MASS)
    assert ts.natoms == NATOMS


def test_invalid_surfaces():
    with pytest.raises(ConfigurationError, match="two reactant fragments"):
        ReactantsSurface(MASS, [[0], [1], [2]], 5.0)
    with pytest.raises(ConfigurationError, match="share atoms"):
        ReactantsSurface(MASS, [[0, 1], [1, 2]], 5.0)
    with pytest.raises(ConfigurationError, match="out of range"):
        ReactantsSurface(MASS, [[0], [3]], 5.0)
    with pytest.raises(ConfigurationError, match="distinct atoms"):
        TransitionStateSurface(NATOMS, [[1, 1]], [1.0], [], [])
    with pytest.raises(ConfigurationError, match="exactly one"):
        TransitionStateSurface(NATOMS, [[0, 1]], [], [], [])
    with pytest.raises(ConfigurationError, match="At least one"):
        TransitionStateSurface(NATOMS, [], [], [], [])


def test_surface_errors():
    surf = TransitionStateSurface(NATOMS, [[0, 1]], [1.0], [], [])
    with pytest.raises(ShapeMismatch):
        surf.value(np.zeros((3, 2)))
    with pytest.raises(NumericalSingularity):
        surf.gradient(np.zeros((3, NATOMS)))


def test_from_dict_missing_key():
    with pytest.raises(ConfigurationError, match="Rinf"):
        SURFACE_MAP["reactants"].from_dict({"fragments": [[0], [1, 2]]}, MASS)


def test_incomplete_surface_cannot_be_instantiated():
    from rpmdcore.coordinate.surfaces import _DistanceSurface

    class NoEvaluation(_DistanceSurface):
        pass

    with pytest.raises(TypeError):
        NoEvaluation(NATOMS)
