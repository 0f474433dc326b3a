"""Windowed MDCT filter bank with long, short and transition blocks."""

from __future__ import annotations

import math
from enum import IntEnum
from itertools import accumulate
from typing import Sequence

from aacenc.blockswitch import BLOCK_LEN_LONG, BLOCK_LEN_SHORT
from aacenc.fft import FFT
from aacenc.ics import MAX_SHORT_WINDOWS, BlockType

FRAME_LEN = 1024
NFLAT_LS = 448
KBD_ALPHA_LONG = 4
KBD_ALPHA_SHORT = 6

_IZERO_EPSILON = 1e-41
_LOGM = {BLOCK_LEN_SHORT * 2: 6, BLOCK_LEN_LONG * 2: 9}


class WindowShape(IntEnum):
    """Shape of the transform window."""

    SINE = 0
    KBD = 1


def sine_window(length: int) -> list[float]:
    """Rising half of a sine window for blocks of ``2 * length`` samples."""
    if length < 0:
        raise ValueError("window length must not be negative")
    return [math.sin(math.pi / (2 * length) * (i + 0.5)) for i in range(length)]


def bessel_i0(x: float) -> float:
    """Modified Bessel function of the first kind, order zero, by its power series."""
    total = 1.0
    term = 1.0
    n = 1
    half = x / 2.0
    while True:
        factor = half / n
        n += 1
        term *= factor * factor
        total += term
        if term < _IZERO_EPSILON * total:
            return total


def kbd_window(alpha: float, length: int) -> list[float]:
    """Rising half (``length // 2`` values) of a Kaiser-Bessel-derived window."""
    if length < 2:
        raise ValueError("window length must be at least 2")
    alpha *= math.pi
    inv_beta = 1.0 / bessel_i0(alpha)
    kaiser = []
    for i in range(length >> 1):
        t = 4.0 * i / length - 1.0
        kaiser.append(bessel_i0(alpha * math.sqrt(max(0.0, 1.0 - t * t))) * inv_beta)
    scale = 1.0 / sum(kaiser)
    return [math.sqrt(acc * scale) for acc in accumulate(kaiser)]


def _logm_for(n: int) -> int:
    logm = _LOGM.get(n)
    if logm is None:
        raise ValueError(f"unsupported transform length {n}")
    return logm


def mdct(fft: FFT, data: Sequence[float]) -> list[float]:
    """MDCT of ``len(data)`` windowed samples (256 or 2048); returns ``len(data) // 2`` coefficients."""
    n = len(data)
    logm = _logm_for(n)
    q, h, e = n >> 2, n >> 1, n >> 3

    freq = 2.0 * math.pi / n
    cfreq = math.cos(freq)
    sfreq = math.sin(freq)
    cosfreq8 = math.cos(freq * 0.125)
    sinfreq8 = math.sin(freq * 0.125)

    xr = [0.0] * q
    xi = [0.0] * q
    c, s = cosfreq8, sinfreq8
    for i in range(q):
        k = h - 1 - 2 * i
        if i < e:
            tempr = data[q + k] + data[n + q - 1 - k]
        else:
            tempr = data[q + k] - data[q - 1 - k]
        k = 2 * i
        if i < e:
            tempi = data[q + k] - data[q - 1 - k]
        else:
            tempi = data[q + k] + data[n + q - 1 - k]
        xr[i] = tempr * c + tempi * s
        xi[i] = tempi * c - tempr * s
        c, s = c * cfreq - s * sfreq, s * cfreq + c * sfreq

    xr, xi = fft.fft(xr, xi, logm)

    out = [0.0] * n
    c, s = cosfreq8, sinfreq8
    for i in range(q):
        tempr = 2.0 * (xr[i] * c + xi[i] * s)
        tempi = 2.0 * (xi[i] * c - xr[i] * s)
        out[2 * i] = -tempr
        out[h - 1 - 2 * i] = tempi
        out[h + 2 * i] = -tempi
        out[n - 1 - 2 * i] = tempr
        c, s = c * cfreq - s * sfreq, s * cfreq + c * sfreq
    return out[:h]


def imdct(fft: FFT, data: Sequence[float]) -> list[float]:
    """Inverse MDCT of ``len(data)`` coefficients (128 or 1024); returns ``2 * len(data)`` samples."""
    h = len(data)
    n = 2 * h
    logm = _logm_for(n)
    q, e = n >> 2, n >> 3
    fac = 2.0 / n

    freq = 2.0 * math.pi / n
    cfreq = math.cos(freq)
    sfreq = math.sin(freq)
    cosfreq8 = math.cos(freq * 0.125)
    sinfreq8 = math.sin(freq * 0.125)

    xr = [0.0] * q
    xi = [0.0] * q
    c, s = cosfreq8, sinfreq8
    for i in range(q):
        tempr = -data[2 * i]
        tempi = data[h - 1 - 2 * i]
        xr[i] = tempr * c - tempi * s
        xi[i] = tempi * c + tempr * s
        c, s = c * cfreq - s * sfreq, s * cfreq + c * sfreq

    xr, xi = fft.ffti(xr, xi, logm)

    out = [0.0] * n
    c, s = cosfreq8, sinfreq8
    for i in range(q):
        tempr = fac * (xr[i] * c - xi[i] * s)
        tempi = fac * (xi[i] * c + xr[i] * s)
        out[h + q - 1 - 2 * i] = tempr
        if i < e:
            out[h + q + 2 * i] = tempr
        else:
            out[2 * i - q] = -tempr
        out[q + 2 * i] = tempi
        if i < e:
            out[q - 1 - 2 * i] = -tempi
        else:
            out[q + n - 1 - 2 * i] = tempi
        c, s = c * cfreq - s * sfreq, s * cfreq + c * sfreq
    return out


def _truncating_div(num: int, den: int) -> int:
    quotient = abs(num) // abs(den)
    return quotient if (num >= 0) == (den > 0) else -quotient


def spec_filter(
    spectrum: Sequence[float], sample_rate: int, lowpass_freq: int, spec_len: int
) -> list[float]:
    """Zero the spectral lines of the first ``spec_len`` above ``lowpass_freq``."""
    if spec_len < 0 or spec_len > len(spectrum):
        raise ValueError("spectrum length out of range")
    nyquist = int(sample_rate) >> 1
    if nyquist == 0:
        raise ValueError("sample rate too low")
    lowpass = _truncating_div(int(lowpass_freq) * spec_len, nyquist) + 1
    keep = max(0, min(lowpass, spec_len))
    return (
        [float(v) for v in spectrum[:keep]]
        + [0.0] * (spec_len - keep)
        + [float(v) for v in spectrum[spec_len:]]
    )


class FilterBank:
    """Analysis and synthesis filter bank with sine and KBD windows."""

    def __init__(self, fft: FFT | None = None) -> None:
        self.fft = fft if fft is not None else FFT()
        self.sin_window_long = sine_window(BLOCK_LEN_LONG)
        self.sin_window_short = sine_window(BLOCK_LEN_SHORT)
        self.kbd_window_long = kbd_window(KBD_ALPHA_LONG, BLOCK_LEN_LONG * 2)
        self.kbd_window_short = kbd_window(KBD_ALPHA_SHORT, BLOCK_LEN_SHORT * 2)

    def _analysis_windows(
        self, block_type: BlockType, prev_shape: int, shape: int, overlapped: bool
    ) -> tuple[list[float], list[float]]:
        if not overlapped:
            return self.sin_window_long, self.sin_window_long
        first_long = block_type in (BlockType.ONLY_LONG_WINDOW, BlockType.LONG_SHORT_WINDOW)
        second_long = block_type in (BlockType.ONLY_LONG_WINDOW, BlockType.SHORT_LONG_WINDOW)
        if prev_shape == WindowShape.SINE:
            first = self.sin_window_long if first_long else self.sin_window_short
        else:
            first = self.kbd_window_long if first_long else self.kbd_window_short
        if shape == WindowShape.KBD:
            second = self.kbd_window_long if second_long else self.kbd_window_short
        else:
            second = self.sin_window_long if second_long else self.sin_window_short
        return first, second

    def _synthesis_windows(
        self, block_type: BlockType, overlapped: bool
    ) -> tuple[list[float], list[float]]:
        if not overlapped:
            return self.sin_window_long, self.sin_window_long
        if block_type in (BlockType.ONLY_LONG_WINDOW, BlockType.LONG_SHORT_WINDOW):
            first = self.sin_window_long
        else:
            first = self.sin_window_short
        if block_type in (BlockType.ONLY_LONG_WINDOW, BlockType.SHORT_LONG_WINDOW):
            second = self.sin_window_long
        else:
            second = self.sin_window_short
        return first, second

    def forward(
        self,
        block_type: int,
        prev_shape: int,
        shape: int,
        samples: Sequence[float],
        overlap: Sequence[float] | None,
        overlapped: bool,
    ) -> tuple[list[float], list[float] | None]:
        """Transform one frame to 1024 spectral coefficients.

        With ``overlapped`` set, ``samples`` is the new frame of 1024 samples
        and ``overlap`` the previous one; the returned overlap is the new
        frame. Otherwise ``samples`` holds all 2048 samples and ``overlap``
        is returned unchanged.
        """
        block_type = BlockType(block_type)
        if overlapped:
            if len(samples) != FRAME_LEN:
                raise ValueError(f"expected {FRAME_LEN} samples, got {len(samples)}")
            if overlap is None or len(overlap) != FRAME_LEN:
                raise ValueError(f"overlap buffer must hold {FRAME_LEN} samples")
            buf = [float(v) for v in overlap] + [float(v) for v in samples]
            new_overlap: list[float] | None = [float(v) for v in samples]
        else:
            if len(samples) != 2 * FRAME_LEN:
                raise ValueError(f"expected {2 * FRAME_LEN} samples, got {len(samples)}")
            buf = [float(v) for v in samples]
            new_overlap = None if overlap is None else [float(v) for v in overlap]

        first, second = self._analysis_windows(block_type, prev_shape, shape, overlapped)
        long_len, short_len = BLOCK_LEN_LONG, BLOCK_LEN_SHORT
        flat_end = long_len + NFLAT_LS

        if block_type == BlockType.ONLY_SHORT_WINDOW:
            spectrum: list[float] = []
            for k in range(MAX_SHORT_WINDOWS):
                start = NFLAT_LS + k * short_len
                segment = buf[start : start + 2 * short_len]
                windowed = [v * w for v, w in zip(segment[:short_len], first[:short_len])]
                windowed += [
                    v * w
                    for v, w in zip(segment[short_len:], reversed(second[:short_len]))
                ]
                spectrum.extend(mdct(self.fft, windowed))
                first = second
            return spectrum, new_overlap

        if block_type == BlockType.ONLY_LONG_WINDOW:
            frame = [v * w for v, w in zip(buf[:long_len], first[:long_len])]
            frame += [v * w for v, w in zip(buf[long_len:], reversed(second[:long_len]))]
        elif block_type == BlockType.LONG_SHORT_WINDOW:
            frame = [v * w for v, w in zip(buf[:long_len], first[:long_len])]
            frame += buf[long_len:flat_end]
            frame += [
                v * w
                for v, w in zip(buf[flat_end : flat_end + short_len], reversed(second[:short_len]))
            ]
            frame += [0.0] * NFLAT_LS
        else:
            frame = [0.0] * NFLAT_LS
            frame += [
                v * w for v, w in zip(buf[NFLAT_LS : NFLAT_LS + short_len], first[:short_len])
            ]
            frame += buf[NFLAT_LS + short_len : long_len]
            frame += [v * w for v, w in zip(buf[long_len:], reversed(second[:long_len]))]
        return mdct(self.fft, frame), new_overlap

    def inverse(
        self,
        block_type: int,
        spectrum: Sequence[float],
        overlap: Sequence[float],
        overlapped: bool,
    ) -> tuple[list[float], list[float]]:
        """Transform 1024 coefficients back to time samples.

        Returns the output samples (1024 with overlap-add, 2048 without) and
        the new overlap buffer of 1024 samples.
        """
        block_type = BlockType(block_type)
        if len(spectrum) != FRAME_LEN:
            raise ValueError(f"expected {FRAME_LEN} coefficients, got {len(spectrum)}")
        if len(overlap) != BLOCK_LEN_LONG:
            raise ValueError(f"overlap buffer must hold {BLOCK_LEN_LONG} samples")

        first, second = self._synthesis_windows(block_type, overlapped)
        long_len, short_len = BLOCK_LEN_LONG, BLOCK_LEN_SHORT
        flat_end = long_len + NFLAT_LS
        o = [float(v) for v in overlap] + [0.0] * long_len
        transf = [0.0] * (2 * long_len)

        if block_type == BlockType.ONLY_SHORT_WINDOW:
            pos = NFLAT_LS if overlapped else 0
            for k in range(MAX_SHORT_WINDOWS):
                block = imdct(self.fft, spectrum[k * short_len : (k + 1) * short_len])
                transf[: 2 * short_len] = block
                if overlapped:
                    for i in range(short_len):
                        transf[i] *= first[i]
                        o[pos + i] += transf[i]
                        o[pos + short_len + i] = (
                            transf[short_len + i] * second[short_len - 1 - i]
                        )
                    pos += short_len
                else:
                    for i in range(short_len):
                        transf[pos + i] *= first[i]
                        transf[pos + short_len + i] *= second[short_len - 1 - i]
                    pos += 2 * short_len
                first = second
            o[flat_end + short_len :] = [0.0] * NFLAT_LS
        else:
            transf = imdct(self.fft, spectrum)
            if block_type == BlockType.SHORT_LONG_WINDOW:
                for i in range(short_len):
                    transf[NFLAT_LS + i] *= first[i]
            else:
                for i in range(long_len):
                    transf[i] *= first[i]

            if block_type == BlockType.ONLY_LONG_WINDOW:
                if overlapped:
                    for i in range(long_len):
                        o[i] += transf[i]
                        o[long_len + i] = transf[long_len + i] * second[long_len - 1 - i]
                else:
                    for i in range(long_len):
                        transf[long_len + i] *= second[long_len - 1 - i]
            elif block_type == BlockType.LONG_SHORT_WINDOW:
                if overlapped:
                    for i in range(long_len):
                        o[i] += transf[i]
                    o[long_len:flat_end] = transf[long_len:flat_end]
                    for i in range(short_len):
                        o[flat_end + i] = transf[flat_end + i] * second[short_len - 1 - i]
                    o[flat_end + short_len :] = [0.0] * NFLAT_LS
                else:
                    for i in range(short_len):
                        transf[flat_end + i] *= second[short_len - 1 - i]
                    transf[flat_end + short_len :] = [0.0] * NFLAT_LS
            else:
                if overlapped:
                    for i in range(short_len):
                        o[NFLAT_LS + i] += transf[NFLAT_LS + i]
                    o[NFLAT_LS + short_len : long_len] = transf[NFLAT_LS + short_len : long_len]
                    for i in range(long_len):
                        o[long_len + i] = transf[long_len + i] * second[long_len - 1 - i]
                else:
                    transf[:NFLAT_LS] = [0.0] * NFLAT_LS
                    for i in range(long_len):
                        transf[long_len + i] *= second[long_len - 1 - i]

        output = o[:long_len] if overlapped else list(transf)
        return output, o[long_len:]