"""Radix-2 complex FFT with cached twiddle and bit-reversal tables."""

from __future__ import annotations

import math
from array import array
from typing import Sequence

MAX_LOGM = 9
MAX_LOGR = 8


class FFT:
    """Forward, real-input and inverse FFTs of sizes ``2 ** logm``.

    Twiddle factors are kept in single precision and built once per size.
    The transforms work on the first ``2 ** logm`` values of the inputs and
    return new lists of the same length as the inputs; values past the
    transform size are passed through unchanged.
    """

    def __init__(self) -> None:
        self._cos: dict[int, array] = {}
        self._negsin: dict[int, array] = {}
        self._reorder: dict[int, tuple[int, ...]] = {}

    def _twiddles(self, logm: int) -> tuple[array, array]:
        if logm not in self._cos:
            size = 1 << logm
            angles = [2.0 * math.pi * i / size for i in range(size >> 1)]
            self._cos[logm] = array("f", (math.cos(theta) for theta in angles))
            self._negsin[logm] = array("f", (-math.sin(theta) for theta in angles))
        return self._cos[logm], self._negsin[logm]

    def _bit_reversal(self, logm: int) -> tuple[int, ...]:
        table = self._reorder.get(logm)
        if table is None:
            table = tuple(
                int(format(i, f"0{logm}b")[::-1], 2) for i in range(1 << logm)
            )
            self._reorder[logm] = table
        return table

    @staticmethod
    def _validate(logm: int, limit: int, *inputs: Sequence[float]) -> int:
        if logm < 0:
            raise ValueError("logm must not be negative")
        if logm > limit:
            raise ValueError("fft size too big")
        size = 1 << logm
        if any(len(values) < size for values in inputs):
            raise ValueError(f"input shorter than the transform size {size}")
        return size

    def _transform(
        self, xr: Sequence[float], xi: Sequence[float], logm: int
    ) -> tuple[list[float], list[float]]:
        re = [float(v) for v in xr]
        im = [float(v) for v in xi]
        if logm < 1:
            return re, im

        size = 1 << logm
        refac, imfac = self._twiddles(logm)
        for i, j in enumerate(self._bit_reversal(logm)):
            if j > i:
                re[i], re[j] = re[j], re[i]
                im[i], im[j] = im[j], im[i]

        estep = size
        step = 1
        while step < size:
            estep >>= 1
            for pos in range(0, size, 2 * step):
                for shift in range(step):
                    x1 = pos + shift
                    x2 = x1 + step
                    exp = shift * estep
                    c = refac[exp]
                    s = imfac[exp]
                    v2r = re[x2] * c - im[x2] * s
                    v2i = re[x2] * s + im[x2] * c
                    re[x2] = re[x1] - v2r
                    re[x1] += v2r
                    im[x2] = im[x1] - v2i
                    im[x1] += v2i
            step *= 2
        return re, im

    def fft(
        self, xr: Sequence[float], xi: Sequence[float], logm: int
    ) -> tuple[list[float], list[float]]:
        """Forward transform (kernel ``exp(-2j*pi*k*n/N)``); return real and imaginary parts."""
        self._validate(logm, MAX_LOGM, xr, xi)
        return self._transform(xr, xi, logm)

    def rfft(self, x: Sequence[float], logm: int) -> list[float]:
        """Transform real input.

        The first half of the result holds the real parts of bins
        ``0 .. N/2 - 1``, the second half their imaginary parts.
        """
        if logm < 1 and logm >= 0:
            raise ValueError("rfft needs logm of at least 1")
        size = self._validate(logm, MAX_LOGR, x)
        re, im = self._transform(x, [0.0] * size, logm)
        half = size >> 1
        re[half:size] = im[:half]
        return re

    def ffti(
        self, xr: Sequence[float], xi: Sequence[float], logm: int
    ) -> tuple[list[float], list[float]]:
        """Inverse transform scaled by ``1/N``; return real and imaginary parts."""
        size = self._validate(logm, MAX_LOGM, xr, xi)
        swapped_re, swapped_im = self._transform(xi, xr, logm)
        fac = 1.0 / size
        re = [v * fac for v in swapped_im[:size]] + swapped_im[size:]
        im = [v * fac for v in swapped_re[:size]] + swapped_re[size:]
        return re, im