"""Writers for the parts of an individual channel stream."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, Sequence

from aacenc.bitwriter import (
    LEN_GAIN_PRES,
    LEN_MASK,
    LEN_MASK_PRES,
    LEN_MAX_SFBL,
    LEN_MAX_SFBS,
    LEN_ICS_RESERV,
    LEN_PRED_PRES,
    LEN_PULSE_PRES,
    LEN_SE_ID,
    LEN_TAG,
    LEN_TNS_COEFF_RES,
    LEN_TNS_COMPRESS,
    LEN_TNS_DIRECTION,
    LEN_TNS_LENGTHL,
    LEN_TNS_LENGTHS,
    LEN_TNS_NFILTL,
    LEN_TNS_NFILTS,
    LEN_TNS_ORDERL,
    LEN_TNS_ORDERS,
    LEN_TNS_PRES,
    LEN_WIN_SEQ,
    LEN_WIN_SH,
    BitStream,
)
from aacenc.channels import MSInfo

MAX_SHORT_WINDOWS = 8
DEF_TNS_RES_OFFSET = 3


class BlockType(IntEnum):
    """Window sequence of a frame."""

    ONLY_LONG_WINDOW = 0
    LONG_SHORT_WINDOW = 1
    ONLY_SHORT_WINDOW = 2
    SHORT_LONG_WINDOW = 3


@dataclass
class Codeword:
    """A Huffman codeword: ``length`` low bits of ``data``."""

    data: int
    length: int


@dataclass
class TnsFilter:
    """One TNS filter; ``coefficients`` holds the ``order`` quantised indices."""

    length: int = 0
    order: int = 0
    direction: int = 0
    coef_compress: int = 0
    coefficients: list[int] = field(default_factory=list)


@dataclass
class TnsWindow:
    """TNS filters of one window."""

    coef_resolution: int = 4
    filters: list[TnsFilter] = field(default_factory=list)


@dataclass
class TnsInfo:
    """TNS data of a channel for one frame."""

    present: bool = False
    windows: list[TnsWindow] = field(default_factory=list)


def _put(stream: BitStream | None, data: int, num_bits: int) -> None:
    if stream is not None:
        stream.put_bits(data, num_bits)


def find_grouping_bits(group_lengths: Sequence[int]) -> int:
    """Seven-bit scale_factor_grouping field for the given window groups."""
    owners = [group for group, length in enumerate(group_lengths) for _ in range(length)]
    if len(owners) != MAX_SHORT_WINDOWS:
        raise ValueError("window groups must cover exactly eight short windows")
    bits = 0
    for previous, current in zip(owners, owners[1:]):
        bits = (bits << 1) | (1 if previous == current else 0)
    return bits


def write_element_header(stream: BitStream | None, element_id: int, tag: int) -> int:
    """Write an element identifier and its instance tag; return the bits used.

    With ``stream`` None nothing is written and only the size is returned;
    the other writers here follow the same rule.
    """
    _put(stream, element_id, LEN_SE_ID)
    _put(stream, tag, LEN_TAG)
    return LEN_SE_ID + LEN_TAG


def write_ics_info(
    stream: BitStream | None,
    block_type: int,
    window_shape: int,
    max_sfb: int,
    group_lengths: Sequence[int],
) -> int:
    """Write ics_info(); return the bits used."""
    _put(stream, 0, LEN_ICS_RESERV)
    _put(stream, block_type, LEN_WIN_SEQ)
    _put(stream, window_shape, LEN_WIN_SH)
    bits = LEN_ICS_RESERV + LEN_WIN_SEQ + LEN_WIN_SH
    if block_type == BlockType.ONLY_SHORT_WINDOW:
        grouping = find_grouping_bits(group_lengths)
        _put(stream, max_sfb, LEN_MAX_SFBS)
        _put(stream, grouping, MAX_SHORT_WINDOWS - 1)
        bits += LEN_MAX_SFBS + MAX_SHORT_WINDOWS - 1
    else:
        _put(stream, max_sfb, LEN_MAX_SFBL)
        _put(stream, 0, LEN_PRED_PRES)  # predictor_data_present
        bits += LEN_MAX_SFBL + LEN_PRED_PRES
    return bits


def write_ms_info(
    stream: BitStream | None, ms_info: MSInfo, num_windows: int, max_sfb: int
) -> int:
    """Write the mid/side mask of a common-window pair; return the bits used."""
    _put(stream, ms_info.is_present, LEN_MASK_PRES)
    bits = LEN_MASK_PRES
    if ms_info.is_present == 1:
        needed = num_windows * max_sfb
        if len(ms_info.ms_used) < needed:
            raise ValueError("mid/side mask shorter than windows times bands")
        for flag in ms_info.ms_used[:needed]:
            _put(stream, flag, LEN_MASK)
        bits += needed * LEN_MASK
    return bits


def write_pulse_data(stream: BitStream | None) -> int:
    """Write an absent pulse_data flag; return the bits used."""
    _put(stream, 0, LEN_PULSE_PRES)
    return LEN_PULSE_PRES


def write_gain_control_data(stream: BitStream | None) -> int:
    """Write an absent gain_control_data flag; return the bits used."""
    _put(stream, 0, LEN_GAIN_PRES)
    return LEN_GAIN_PRES


def write_tns_data(stream: BitStream | None, block_type: int, tns: TnsInfo) -> int:
    """Write the TNS presence flag and, if present, tns_data(); return the bits used."""
    _put(stream, 1 if tns.present else 0, LEN_TNS_PRES)
    bits = LEN_TNS_PRES
    if not tns.present:
        return bits

    if block_type == BlockType.ONLY_SHORT_WINDOW:
        num_windows = MAX_SHORT_WINDOWS
        len_nfilt, len_length, len_order = LEN_TNS_NFILTS, LEN_TNS_LENGTHS, LEN_TNS_ORDERS
    else:
        num_windows = 1
        len_nfilt, len_length, len_order = LEN_TNS_NFILTL, LEN_TNS_LENGTHL, LEN_TNS_ORDERL

    if len(tns.windows) < num_windows:
        raise ValueError("TNS data needs one entry per window")

    bits += num_windows * len_nfilt
    for window in tns.windows[:num_windows]:
        _put(stream, len(window.filters), len_nfilt)
        if not window.filters:
            continue
        resolution = window.coef_resolution
        _put(stream, resolution - DEF_TNS_RES_OFFSET, LEN_TNS_COEFF_RES)
        bits += LEN_TNS_COEFF_RES
        bits += len(window.filters) * (len_length + len_order)
        for tns_filter in window.filters:
            _put(stream, tns_filter.length, len_length)
            _put(stream, tns_filter.order, len_order)
            if not tns_filter.order:
                continue
            if len(tns_filter.coefficients) < tns_filter.order:
                raise ValueError("TNS filter has fewer coefficients than its order")
            _put(stream, tns_filter.direction, LEN_TNS_DIRECTION)
            _put(stream, tns_filter.coef_compress, LEN_TNS_COMPRESS)
            bits += LEN_TNS_DIRECTION + LEN_TNS_COMPRESS
            width = resolution - tns_filter.coef_compress
            bits += tns_filter.order * width
            mask = (1 << width) - 1
            for index in tns_filter.coefficients[: tns_filter.order]:
                _put(stream, index & mask, width)
    return bits


def write_spectral_data(stream: BitStream, codewords: Iterable[Codeword]) -> int:
    """Write the Huffman codewords in order; return the bits written."""
    bits = 0
    for codeword in codewords:
        if codeword.length > 0:
            stream.put_bits(codeword.data, codeword.length)
            bits += codeword.length
    return bits


def count_spectral_bits(codewords: Iterable[Codeword]) -> int:
    """Total length of the codewords in bits."""
    return sum(codeword.length for codeword in codewords)