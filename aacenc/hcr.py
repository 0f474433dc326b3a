"""Huffman codeword reordering of spectral data and the CRC-8 of the frame header part."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

from aacenc.bitwriter import FIRST_PAIR_HCB, PAIR_LEN, QUAD_LEN, BitStream
from aacenc.ics import Codeword

HCB_ESC = 11

PRESORTED_CODEBOOKS = (
    11, 31, 30, 29, 28, 27, 26, 25, 24, 23, 22, 21, 20, 19, 18, 17, 16, 9, 7, 5, 3, 1,
)

MAX_CODEWORD_LENGTH = (
    0, 11, 9, 20, 16, 13, 11, 14, 12, 17, 14, 49,
    0, 0, 0, 0, 14, 17, 21, 21, 25, 25, 29, 29, 29, 29, 33, 33, 33, 37, 37, 41,
)

CRC_POLYNOMIAL = 0x1D


def _make_crc_table() -> tuple[int, ...]:
    table = []
    for value in range(256):
        crc = value
        for _ in range(8):
            if crc & 0x80:
                crc = ((crc << 1) ^ CRC_POLYNOMIAL) & 0xFF
            else:
                crc = (crc << 1) & 0xFF
        table.append(crc)
    return tuple(table)


_CRC_TABLE = _make_crc_table()


@dataclass
class Segment:
    """Free space of one segment, as inclusive bit positions ``left``..``right``."""

    left: int
    right: int
    length: int


@dataclass
class CodewordInfo:
    """Placement data of one (possibly multi-part) spectral codeword."""

    offset: int
    num_data: int
    length: int
    book: int = 0
    num_lines: int = QUAD_LEN
    window: int = 0
    number: int = 0


def rewind_word(word: int, length: int) -> int:
    """Reverse the order of the low ``length`` bits of ``word``."""
    if length < 0:
        raise ValueError("length must not be negative")
    result = 0
    for bit in range(length):
        result = (result << 1) | ((word >> bit) & 1)
    return result


def crc8(data: bytes, num_bits: int) -> int:
    """Inverted CRC-8 (x^8 + x^4 + x^3 + x^2 + 1, all-ones start) of the first ``num_bits`` bits."""
    if num_bits < 0:
        raise ValueError("number of bits must not be negative")
    whole, tail = divmod(num_bits, 8)
    if whole + (1 if tail else 0) > len(data):
        raise ValueError("data shorter than the requested number of bits")
    crc = 0xFF
    for byte in data[:whole]:
        crc = _CRC_TABLE[crc ^ byte]
    if tail:
        current = data[whole]
        for _ in range(tail):
            if (current ^ crc) & 0x80:
                crc = ((crc << 1) ^ CRC_POLYNOMIAL) & 0xFF
            else:
                crc = (crc << 1) & 0xFF
            current = (current << 1) & 0xFF
    return ~crc & 0xFF


def classify_codewords(
    codewords: Sequence[Codeword],
    num_data: Sequence[int],
    books: Sequence[int],
    sfb_offset: Sequence[int],
    group_lengths: Sequence[int],
    all_sfb: int,
) -> list[CodewordInfo]:
    """Attach codebook, window and per-window number to every spectral codeword.

    ``num_data[i]`` tells how many entries of ``codewords`` make up codeword ``i``.
    """
    if sum(num_data) > len(codewords):
        raise ValueError("fewer codeword parts than num_data requires")
    if not books or not group_lengths or len(sfb_offset) < 2:
        raise ValueError("codebooks, window groups and band offsets are required")
    if group_lengths[0] <= 0:
        raise ValueError("window group lengths must be positive")

    infos: list[CodewordInfo] = []
    offset = 0
    for count in num_data:
        length = sum(part.length for part in codewords[offset : offset + count])
        infos.append(CodewordInfo(offset=offset, num_data=count, length=length))
        offset += count

    sfb_cnt = win_cnt = win_grp_cnt = coeff_cnt = last_sfb = acc_win_cnt = 0
    cur_sfb_len = sfb_offset[1] // group_lengths[0]
    cur_book = books[0]
    window_counts: dict[int, int] = {}

    for info in infos:
        info.book = cur_book
        info.num_lines = QUAD_LEN if cur_book < FIRST_PAIR_HCB else PAIR_LEN
        info.window = acc_win_cnt + win_cnt
        info.number = window_counts.get(info.window, 0)
        window_counts[info.window] = info.number + 1

        coeff_cnt += info.num_lines
        if coeff_cnt - last_sfb < cur_sfb_len:
            continue
        last_sfb += cur_sfb_len
        win_cnt += 1
        if win_grp_cnt >= len(group_lengths):
            raise ValueError("more codewords than the window groups hold")
        if win_cnt != group_lengths[win_grp_cnt]:
            continue
        win_cnt = 0
        sfb_cnt += 1
        if sfb_cnt == all_sfb:
            sfb_cnt = 0
            acc_win_cnt += group_lengths[win_grp_cnt]
            win_grp_cnt += 1
        if sfb_cnt >= len(books):
            raise ValueError("codebook list shorter than the number of bands")
        cur_book = books[sfb_cnt]
        if sfb_cnt + 1 < len(sfb_offset) and win_grp_cnt < len(group_lengths):
            cur_sfb_len = (sfb_offset[sfb_cnt + 1] - sfb_offset[sfb_cnt]) // group_lengths[
                win_grp_cnt
            ]
    return infos


def presort_codewords(infos: Sequence[CodewordInfo]) -> list[CodewordInfo]:
    """Order codewords by codebook priority, keeping their order within a codebook pair."""
    ordered: list[CodewordInfo] = []
    for book in PRESORTED_CODEBOOKS:
        for info in infos:
            if info.book == book or (book < HCB_ESC and info.book == book + 1):
                ordered.append(info)
    return ordered


def build_segments(
    codeword_infos: Sequence[CodewordInfo], longest_codeword: int, reordered_length: int
) -> list[Segment]:
    """Split the reordered spectral data area into one segment per priority codeword."""
    segments: list[Segment] = []
    accumulated = 0
    for info in codeword_infos:
        size = min(MAX_CODEWORD_LENGTH[info.book], longest_codeword)
        if accumulated + size > reordered_length:
            if not segments:
                raise ValueError("reordered data area too small for the first segment")
            last = segments[-1]
            last.right = reordered_length - 1
            last.length = reordered_length - last.left
            break
        segments.append(Segment(accumulated, accumulated + size - 1, size))
        accumulated += size
    return segments


def _place(
    stream: BitStream, start: int, segment: Segment, data: int, length: int, backwards: bool
) -> None:
    if backwards:
        stream.put_bits_at(
            start + segment.right - length + 1, rewind_word(data, length), length
        )
        segment.right -= length
    else:
        stream.put_bits_at(start + segment.left, data, length)
        segment.left += length


def write_reordered_spectral_data(
    stream: BitStream | None,
    codewords: Sequence[Codeword],
    num_data: Sequence[int],
    books: Sequence[int],
    sfb_offset: Sequence[int],
    group_lengths: Sequence[int],
    all_sfb: int,
    reordered_length: int,
    longest_codeword: int,
) -> int:
    """Write spectral codewords with Huffman codeword reordering; return the bits used.

    The data occupies exactly ``reordered_length`` bits from the current stream
    position. With ``stream`` None only the size is returned. The given
    codewords are left unchanged.
    """
    if stream is None:
        return reordered_length

    parts = [
        Codeword(part.data & ((1 << part.length) - 1) if part.length > 0 else 0, part.length)
        for part in codewords
    ]
    classified = classify_codewords(parts, num_data, books, sfb_offset, group_lengths, all_sfb)
    infos = [replace(info) for info in presort_codewords(classified)]
    num_cw = len(infos)
    segments = build_segments(infos, longest_codeword, reordered_length)
    segment_count = len(segments)
    start = stream.position

    num_sets = num_cw // segment_count if segment_count else 0
    for set_index in range(num_sets + 1):
        backwards = set_index % 2 == 1
        for trial in range(segment_count):
            unencoded = segment_count
            if set_index == num_sets:
                unencoded = num_cw - set_index * segment_count
            for base in range(segment_count):
                codeword_index = base + set_index * segment_count
                if codeword_index >= num_cw:
                    break
                info = infos[codeword_index]
                segment = segments[(trial + base) % segment_count]
                if info.length <= 0 or segment.length <= 0:
                    continue
                if segment.length >= info.length:
                    room = info.length
                    unencoded -= 1
                else:
                    room = segment.length
                info.length -= room
                segment.length -= room

                for part in parts[info.offset : info.offset + info.num_data]:
                    if part.length <= room:
                        _place(stream, start, segment, part.data, part.length, backwards)
                        room -= part.length
                        part.length = 0
                    else:
                        diff = part.length - room
                        head = part.data >> diff
                        part.data &= (1 << diff) - 1
                        part.length = diff
                        _place(stream, start, segment, head, room, backwards)
                        room = 0
                    if room == 0:
                        break
            if unencoded == 0:
                break

    end = start + reordered_length
    if reordered_length > 0:
        stream.put_bits_at(end - 1, 0, 1)
    stream.position = end
    stream.bit_length = end
    return reordered_length