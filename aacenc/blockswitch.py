"""Transient detection and window switching between long and short blocks."""

from __future__ import annotations

import math
from array import array
from dataclasses import dataclass, field
from typing import Sequence

from aacenc.channels import ChannelInfo
from aacenc.fft import FFT
from aacenc.ics import BlockType

BLOCK_LEN_LONG = 1024
BLOCK_LEN_SHORT = 128
NSFB_SHORT = 15
NUM_SHORT_WINDOWS = 8

MIN_QUALITY = 0.4
SWITCH_THRESHOLD = 3.0
FIRST_BAND = 2
PREV_WINDOWS = 2
NEXT_WINDOWS = 2

_MDCT_LOGM = {BLOCK_LEN_SHORT * 2: 6, BLOCK_LEN_LONG * 2: 9}


def hann_window(size: int) -> list[float]:
    """Periodic-offset Hann window of ``size`` points."""
    if size < 0:
        raise ValueError("window size must not be negative")
    return [0.5 * (1.0 - math.cos(2.0 * math.pi * (i + 0.5) / size)) for i in range(size)]


def mdct(fft: FFT, data: Sequence[float]) -> list[float]:
    """MDCT of ``len(data)`` samples (256 or 2048).

    The ``len(data) // 2`` coefficients are in the first half of the result.
    """
    n = len(data)
    logm = _MDCT_LOGM.get(n)
    if logm is None:
        raise ValueError(f"unsupported MDCT length {n}")
    q = n >> 2
    h = n >> 1

    freq = 2.0 * math.pi / n
    cfreq = math.cos(freq)
    sfreq = math.sin(freq)
    cosfreq8 = math.cos(freq * 0.125)
    sinfreq8 = math.sin(freq * 0.125)

    xr = [0.0] * q
    xi = [0.0] * q
    c, s = cosfreq8, sinfreq8
    for i in range(q):
        k = 2 * i
        if k < q:
            tempr = data[q + h - 1 - k] + data[n - q + k]
            tempi = data[q + k] - data[q - 1 - k]
        else:
            tempr = data[q + h - 1 - k] - data[k - q]
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
    return out


def _energy_windows() -> list[array]:
    return [array("f", [0.0] * NSFB_SHORT) for _ in range(NUM_SHORT_WINDOWS)]


@dataclass
class BlockState:
    """Window sequence of a channel and the type asked for in the previous frame."""

    block_type: BlockType = BlockType.ONLY_LONG_WINDOW
    desired_block_type: BlockType = BlockType.ONLY_LONG_WINDOW


@dataclass
class PsyChannel:
    """Per-channel analysis state: previous samples and short-window band energies."""

    size: int = BLOCK_LEN_LONG
    size_short: int = BLOCK_LEN_SHORT
    prev_samples: list[float] = field(default_factory=lambda: [0.0] * BLOCK_LEN_LONG)
    block_type: BlockType = BlockType.ONLY_LONG_WINDOW
    band_s: int = 0
    last_band: int = 0
    eng_prev: list[array] = field(default_factory=_energy_windows)
    eng: list[array] = field(default_factory=_energy_windows)
    eng_next: list[array] = field(default_factory=_energy_windows)
    eng_next2: list[array] = field(default_factory=_energy_windows)


class PsyModel:
    """Energy-change based detector deciding when a frame needs short blocks."""

    def __init__(self, num_channels: int, sample_rate: float, fft: FFT | None = None) -> None:
        if num_channels < 0:
            raise ValueError("number of channels must not be negative")
        if sample_rate <= 0:
            raise ValueError("sample rate must be positive")
        self.sample_rate = float(sample_rate)
        self.fft = fft if fft is not None else FFT()
        self.hann_long = hann_window(BLOCK_LEN_LONG * 2)
        self.hann_short = hann_window(BLOCK_LEN_SHORT * 2)
        self.channels = [PsyChannel() for _ in range(num_channels)]

    def buffer_update(
        self,
        channel: int,
        samples: Sequence[float],
        bandwidth: float,
        cb_width_short: Sequence[int],
    ) -> None:
        """Analyse a new frame of ``channel`` and shift its energy history."""
        psy = self.channels[channel]
        if len(samples) != psy.size:
            raise ValueError(f"expected {psy.size} samples, got {len(samples)}")
        if len(cb_width_short) > NSFB_SHORT:
            raise ValueError(f"at most {NSFB_SHORT} short scalefactor bands are supported")

        psy.band_s = int(psy.size_short * bandwidth * 2 / self.sample_rate)
        trans = list(psy.prev_samples) + [float(v) for v in samples]
        offset = (BLOCK_LEN_LONG - BLOCK_LEN_SHORT) // 2
        span = 2 * psy.size_short

        for win in range(NUM_SHORT_WINDOWS):
            start = win * BLOCK_LEN_SHORT + offset
            windowed = [
                v * w for v, w in zip(trans[start : start + span], self.hann_short)
            ]
            spectrum = mdct(self.fft, windowed)

            recycled = psy.eng_prev[win]
            psy.eng_prev[win] = psy.eng[win]
            psy.eng[win] = psy.eng_next[win]
            psy.eng_next[win] = psy.eng_next2[win]
            psy.eng_next2[win] = recycled

            target = psy.eng_next2[win]
            last = 0
            band = 0
            for band, width in enumerate(cb_width_short):
                first = last
                last = first + width
                first = max(first, 1)
                if first >= psy.band_s:
                    break
                target[band] = sum(v * v for v in spectrum[first:last])
            else:
                band = len(cb_width_short)
            psy.last_band = band
            for rest in range(band, NSFB_SHORT):
                target[rest] = 0.0

        psy.prev_samples = [float(v) for v in samples]

    def check_short(self, channel: int, quality: float) -> BlockType:
        """Decide the block type of ``channel`` from its energy history."""
        psy = self.channels[channel]
        sequence = (
            psy.eng_prev[NUM_SHORT_WINDOWS - PREV_WINDOWS :]
            + psy.eng
            + psy.eng_next[:NEXT_WINDOWS]
        )
        psy.block_type = BlockType.ONLY_LONG_WINDOW
        for previous, current in zip(sequence, sequence[1:]):
            total = 0.0
            change = 0.0
            for band in range(FIRST_BAND, psy.last_band):
                a = current[band]
                b = previous[band]
                total += min(a, b)
                change += abs(a - b)
            if total > 0.0:
                score = change / total * quality
            elif change > 0.0 and quality > 0.0:
                score = math.inf
            else:
                continue
            if score > SWITCH_THRESHOLD:
                psy.block_type = BlockType.ONLY_SHORT_WINDOW
                break
        return psy.block_type

    def calculate(self, channel_infos: Sequence[ChannelInfo], quality: float) -> None:
        """Run the detector on every present channel according to its element."""
        quality = max(quality, MIN_QUALITY)
        for index, info in zip(range(len(self.channels)), channel_infos):
            if not info.present:
                continue
            if info.cpe and info.ch_is_left:
                self.check_short(index, quality)
                self.check_short(info.paired_ch, quality)
            elif not info.cpe and info.lfe:
                self.channels[index].block_type = BlockType.ONLY_LONG_WINDOW
            elif not info.cpe:
                self.check_short(index, quality)

    def block_switch(self, states: Sequence[BlockState]) -> list[BlockType]:
        """Give all channels the same window decision, inserting transition blocks.

        Updates ``states`` in place and returns the new block types.
        """
        if len(states) < len(self.channels):
            raise ValueError("one block state per channel is required")
        wants_short = any(
            psy.block_type == BlockType.ONLY_SHORT_WINDOW for psy in self.channels
        )
        desire = BlockType.ONLY_SHORT_WINDOW if wants_short else BlockType.ONLY_LONG_WINDOW

        result = []
        for state in states[: len(self.channels)]:
            last = state.block_type
            if desire == BlockType.ONLY_SHORT_WINDOW or (
                state.desired_block_type == BlockType.ONLY_SHORT_WINDOW
            ):
                if last in (BlockType.ONLY_LONG_WINDOW, BlockType.SHORT_LONG_WINDOW):
                    state.block_type = BlockType.LONG_SHORT_WINDOW
                else:
                    state.block_type = BlockType.ONLY_SHORT_WINDOW
            else:
                if last in (BlockType.ONLY_SHORT_WINDOW, BlockType.LONG_SHORT_WINDOW):
                    state.block_type = BlockType.SHORT_LONG_WINDOW
                else:
                    state.block_type = BlockType.ONLY_LONG_WINDOW
            state.desired_block_type = desire
            result.append(state.block_type)
        return result