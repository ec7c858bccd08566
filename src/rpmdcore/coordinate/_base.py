#!/usr/bin/env python
# -*-coding:utf-8 -*-
'''
@File    :   _base.py
@Time    :   2026/02/03 09:02:10
@Author  :   George Trenins
@Desc    :   Interface of a dividing surface, a scalar field over centroid positions
'''


from __future__ import print_function, division, absolute_import
from typing import Protocol, runtime_checkable
import numpy as np
import numpy.typing as npt


@runtime_checkable
class DividingSurface(Protocol):
    """Any object exposing the value, gradient and Hessian of a scalar function of the
    centroid positions, shape (3, natoms), can act as a dividing surface.
    """

    def value(self, centroid: npt.NDArray[np.floating]) -> float:
        ...

    def gradient(self, centroid: npt.NDArray[np.floating]) -> npt.NDArray[np.floating]:
        """Returns an array of shape (3, natoms)"""
        ...

    def hessian(self, centroid: npt.NDArray[np.floating]) -> npt.NDArray[np.floating]:
        """Returns an array of shape (3, natoms, 3, natoms)"""
        ...
