"""Bit-level writer for raw AAC and ADTS frames, plus fill and header elements."""

from __future__ import annotations

from enum import IntEnum

LEN_SE_ID = 3
LEN_TAG = 4
LEN_GLOB_GAIN = 8
LEN_COM_WIN = 1
LEN_ICS_RESERV = 1
LEN_WIN_SEQ = 2
LEN_WIN_SH = 1
LEN_MAX_SFBL = 6
LEN_MAX_SFBS = 4
LEN_CB = 4
LEN_SCL_PCM = 8
LEN_PRED_PRES = 1
LEN_PRED_RST = 1
LEN_PRED_RSTGRP = 5
LEN_PRED_ENAB = 1
LEN_MASK_PRES = 2
LEN_MASK = 1
LEN_PULSE_PRES = 1

LEN_TNS_PRES = 1
LEN_TNS_NFILTL = 2
LEN_TNS_NFILTS = 1
LEN_TNS_COEFF_RES = 1
LEN_TNS_LENGTHL = 6
LEN_TNS_LENGTHS = 4
LEN_TNS_ORDERL = 5
LEN_TNS_ORDERS = 3
LEN_TNS_DIRECTION = 1
LEN_TNS_COMPRESS = 1
LEN_GAIN_PRES = 1

LEN_F_CNT = 4
LEN_F_ESC = 8
LEN_BYTE = 8
LEN_PAD_DATA = 8

LEN_HCR_REORDSD = 14
LEN_HCR_LONGCW = 6
FIRST_PAIR_HCB = 5
QUAD_LEN = 4
PAIR_LEN = 2

MPEG2 = 1
MPEG4 = 0

MAIN = 1
LOW = 2
SSR = 3
LTP = 4

BYTE_NUMBIT = 8
LONG_NUMBIT = 32
ADTS_FRAMESIZE = 1 << 13
ADTS_HEADER_BITS = 56

ENCODER_TAG = "aacenc"


class ElementId(IntEnum):
    """Syntactic element identifiers of a raw data block."""

    SCE = 0
    CPE = 1
    CCE = 2
    LFE = 3
    DSE = 4
    PCE = 5
    FIL = 6
    END = 7


def bit2byte(bits: int) -> int:
    """Number of bytes needed to hold ``bits`` bits."""
    return (bits + BYTE_NUMBIT - 1) // BYTE_NUMBIT


def alignment_bits(bit_count: int) -> int:
    """Number of zero bits that bring ``bit_count`` up to a byte boundary."""
    return (8 - bit_count % 8) % 8


class BitStream:
    """An MSB-first bit writer over a byte buffer.

    With ``size`` given the buffer is fixed to that many bytes and writing
    past its end raises ``OverflowError``; without it the buffer grows.
    """

    def __init__(self, size: int | None = None, start_bit: int = 0) -> None:
        if size is not None and size < 0:
            raise ValueError("buffer size must not be negative")
        if start_bit < 0:
            raise ValueError("start bit must not be negative")
        self.size = size
        self._data = bytearray(size if size is not None else 0)
        self.position = start_bit
        self.bit_length = start_bit

    @property
    def byte_length(self) -> int:
        """Bytes occupied by the written bits."""
        return bit2byte(self.bit_length)

    def _ensure(self, index: int) -> None:
        if index < len(self._data):
            return
        if self.size is not None:
            raise OverflowError("bit stream buffer overrun")
        self._data.extend(bytes(index + 1 - len(self._data)))

    def _write(self, data: int, num_bits: int, clear: bool) -> None:
        if num_bits < 0:
            raise ValueError("number of bits must not be negative")
        if num_bits == 0:
            return
        value = data & ((1 << num_bits) - 1)
        remaining = num_bits
        while remaining:
            used = self.position % BYTE_NUMBIT
            chunk = min(remaining, BYTE_NUMBIT - used)
            index = self.position // BYTE_NUMBIT
            self._ensure(index)
            part = (value >> (remaining - chunk)) & ((1 << chunk) - 1)
            if used == 0 and clear:
                self._data[index] = 0
            self._data[index] |= part << (BYTE_NUMBIT - used - chunk)
            self.position += chunk
            remaining -= chunk
        self.bit_length = self.position

    def put_bits(self, data: int, num_bits: int) -> None:
        """Append the low ``num_bits`` bits of ``data``, most significant first."""
        self._write(data, num_bits, clear=True)

    def put_bits_at(self, position: int, data: int, num_bits: int) -> None:
        """OR the low ``num_bits`` bits of ``data`` into the buffer at ``position``.

        The write position then stays just after the written bits.
        """
        if position < 0:
            raise ValueError("position must not be negative")
        self.position = position
        self._write(data, num_bits, clear=False)

    def byte_align(self) -> int:
        """Pad with zero bits to the next byte boundary; return the bits added."""
        count = alignment_bits(self.bit_length)
        self.put_bits(0, count)
        return count

    def getvalue(self) -> bytes:
        """The bytes written so far."""
        return bytes(self._data[: self.byte_length])


def _fill(stream: BitStream | None, num_bits: int) -> int:
    left = num_bits
    min_bits = LEN_SE_ID + LEN_F_CNT
    max_count = (1 << LEN_F_CNT) - 1
    max_escape = (1 << LEN_BYTE) - 1
    while left >= min_bits:
        if stream is not None:
            stream.put_bits(ElementId.FIL, LEN_SE_ID)
        left -= min_bits
        num_bytes = left // LEN_BYTE
        if num_bytes < max_count:
            if stream is not None:
                stream.put_bits(num_bytes, LEN_F_CNT)
                stream.put_bits(0, LEN_BYTE * num_bytes)
        else:
            num_bytes = min(num_bytes, max_count + max_escape)
            if stream is not None:
                stream.put_bits(max_count, LEN_F_CNT)
                stream.put_bits(num_bytes - max_count, LEN_BYTE)
                stream.put_bits(0, LEN_BYTE * (num_bytes - 1))
        left -= LEN_BYTE * num_bytes
    return left


def write_fill_bits(stream: BitStream, num_bits: int) -> int:
    """Write fill elements covering up to ``num_bits``; return the bits left over."""
    return _fill(stream, num_bits)


def count_fill_bits(num_bits: int) -> int:
    """Bits that fill elements would leave over from ``num_bits``."""
    return _fill(None, num_bits)


def write_adts_header(
    stream: BitStream,
    mpeg_version: int,
    object_type: int,
    sample_rate_index: int,
    num_channels: int,
    frame_bytes: int,
) -> int:
    """Write a 56-bit ADTS header without CRC; return its length in bits."""
    stream.put_bits(0xFFFF, 12)  # syncword
    stream.put_bits(mpeg_version, 1)
    stream.put_bits(0, 2)  # layer
    stream.put_bits(1, 1)  # protection absent
    stream.put_bits(object_type - 1, 2)
    stream.put_bits(sample_rate_index, 4)
    stream.put_bits(0, 1)  # private bit
    stream.put_bits(num_channels, 3)
    stream.put_bits(0, 1)  # original/copy
    stream.put_bits(0, 1)  # home
    stream.put_bits(0, 1)  # copyright id bit
    stream.put_bits(0, 1)  # copyright id start
    stream.put_bits(frame_bytes, 13)
    stream.put_bits(0x7FF, 11)  # buffer fullness: VBR
    stream.put_bits(0, 2)  # one raw data block
    return ADTS_HEADER_BITS


def _encoder_string(version: str) -> bytes:
    return f"{ENCODER_TAG} {version}".encode("utf-8") + b"\x00"


def _faac_string_layout(version: str) -> tuple[bytes, int, int]:
    text = _encoder_string(version)
    count = len(text) + 3
    if count - 14 > 0xFF:
        raise ValueError("version string too long for a fill element")
    bits = LEN_SE_ID + 4 + (0 if count < 15 else 8) + count * 8
    return text, count, bits


def faac_string_bits(version: str) -> int:
    """Bits taken by the fill element carrying the encoder identification."""
    return _faac_string_layout(version)[2]


def write_faac_string(stream: BitStream, version: str) -> int:
    """Write the encoder identification fill element; return its length in bits."""
    text, count, bits = _faac_string_layout(version)
    padbits = (8 - ((stream.bit_length + 7) % 8)) % 8
    stream.put_bits(ElementId.FIL, LEN_SE_ID)
    if count < 15:
        stream.put_bits(count, 4)
    else:
        stream.put_bits(15, 4)
        stream.put_bits(count - 14, 8)
    stream.put_bits(0, padbits)
    stream.put_bits(0, 8)
    stream.put_bits(0, 8)
    for byte in text:
        stream.put_bits(byte, 8)
    stream.put_bits(0, 8 - padbits)
    return bits


def write_terminator(stream: BitStream) -> int:
    """Write the END element identifier; return its length in bits."""
    stream.put_bits(ElementId.END, LEN_SE_ID)
    return LEN_SE_ID