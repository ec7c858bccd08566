#!/usr/bin/env python
# -*-coding:utf-8 -*-
'''
@File    :   nmtransform.py
@Time    :   2026/02/02 09:40:57
@Author  :   George Trenins
@Desc    :   Real-space <-> normal-mode transformation of ring-polymer bead sequences
'''


from __future__ import print_function, division, absolute_import
import numpy as np
import numpy.typing as npt
from scipy import fft
from rpmdcore.errors import InvalidInput


class NormalModeTransform(object):
    """Real discrete Fourier transform over a ring of `nbeads` points.

    The forward transform is unnormalised and its coefficients are packed
    in half-complex order,

        [Re c_0, Re c_1, ..., Re c_{N//2}, Im c_{(N-1)//2}, ..., Im c_1]

    so that entries k and N-k hold the two real components of normal mode k.
    The inverse divides by N, making `inverse(forward(x)) == x`. Both act
    along the last axis of the input array, which must have length `nbeads`.
    """

    def __init__(self, nbeads: int) -> None:
        nbeads = int(nbeads)
        if nbeads < 1:
            raise InvalidInput(f"The number of beads must be positive, instead got {nbeads}")
        self.nbeads = nbeads
        # number of complex coefficients returned by rfft
        self._ncomplex = nbeads//2 + 1
        # number of modes that carry an imaginary component
        self._nimag = (nbeads - 1)//2

    def _check(self, x: npt.ArrayLike) -> npt.NDArray[np.floating]:
        arr = np.asarray(x, dtype=float)
        if arr.ndim == 0 or arr.shape[-1] != self.nbeads:
            raise InvalidInput(
                f"Expecting a sequence of {self.nbeads} bead values along the last axis, "
                f"instead got an array of shape {arr.shape}")
        return arr

    def forward(self, x: npt.ArrayLike) -> npt.NDArray[np.floating]:
        """Transform bead values to half-complex normal-mode coefficients."""
        x = self._check(x)
        c = fft.rfft(x, axis=-1)
        ans = np.empty_like(x)
        ans[..., :self._ncomplex] = c.real
        ans[..., self._ncomplex:] = c.imag[..., self._nimag:0:-1]
        return ans

    def inverse(self, coeffs: npt.ArrayLike) -> npt.NDArray[np.floating]:
        """Transform half-complex normal-mode coefficients back to bead values."""
        coeffs = self._check(coeffs)
        N = self.nbeads
        c = np.zeros(coeffs.shape[:-1] + (self._ncomplex,), dtype=complex)
        c.real = coeffs[..., :self._ncomplex]
        c.imag[..., 1:self._nimag+1] = coeffs[..., N-1:N//2:-1]
        return fft.irfft(c, n=N, axis=-1)


def forward(x: npt.ArrayLike) -> npt.NDArray[np.floating]:
    """Forward transform along the last axis, ring size taken from the input."""
    x = np.asarray(x, dtype=float)
    return NormalModeTransform(x.shape[-1]).forward(x)


def inverse(coeffs: npt.ArrayLike) -> npt.NDArray[np.floating]:
    """Inverse transform along the last axis, ring size taken from the input."""
    coeffs = np.asarray(coeffs, dtype=float)
    return NormalModeTransform(coeffs.shape[-1]).inverse(coeffs)
