# aacenc

Pure-Python building blocks for an AAC (Advanced Audio Coding) encoder.
The package uses only the standard library.

## Modules

- `aacenc.bitwriter`: `BitStream` is an MSB-first bit writer. Its methods
  are `put_bits`, `put_bits_at`, `byte_align` and `getvalue`, and it has the
  `position`, `bit_length` and `byte_length` attributes. Given a `size`, the
  buffer is fixed and writing past its end raises `OverflowError`. Without
  one the buffer grows as needed. The module also has helpers:
  - `write_adts_header` writes the 56-bit ADTS header without CRC.
  - `write_fill_bits` and `count_fill_bits` handle fill elements.
  - `write_faac_string` and `faac_string_bits` handle the encoder
    identification fill element.
  - `write_terminator` writes the `END` element.
  - `bit2byte` and `alignment_bits` do bit-count arithmetic.

  `ElementId` lists the syntax element identifiers.
- `aacenc.channels`: `get_channel_info(num_channels, use_lfe)` sets out the
  channels as SCE, CPE and LFE elements. It returns a list of `ChannelInfo`
  records, each carrying an `MSInfo`.
- `aacenc.ics`: writers for the parts of an individual channel stream.
  These are `write_element_header`, `write_ics_info`, `write_ms_info`,
  `write_pulse_data`, `write_gain_control_data`, `write_tns_data`,
  `write_spectral_data` and `count_spectral_bits`, plus `find_grouping_bits`.
  The writers that accept a stream also accept `None`. They then only return
  the number of bits. The data types are `BlockType`, `Codeword`,
  `TnsFilter`, `TnsWindow` and `TnsInfo`.
- `aacenc.hcr`: Huffman codeword reordering of spectral data.
  - `classify_codewords` and `presort_codewords` order the codewords.
  - `build_segments` builds `Segment` objects.
  - `write_reordered_spectral_data` writes the data. It leaves the given
    codewords unchanged.
  - `rewind_word` reverses bits.
  - `crc8` computes an inverted CRC-8 over a given number of bits, with
    polynomial x^8 + x^4 + x^3 + x^2 + 1.
- `aacenc.fft`: `FFT` is a radix-2 complex FFT whose twiddle and
  bit-reversal tables are built once per size. Its methods are `fft`,
  `rfft` and `ffti`, which is scaled by 1/N. They return new lists and
  raise `ValueError` for sizes that are too large or too small.
- `aacenc.blockswitch`: `PsyModel` decides when a frame needs short blocks,
  from the changes in band energy over short windows.
  - `buffer_update` analyses a new frame.
  - `check_short` and `calculate` make the decision.
  - `block_switch` gives all channels the same decision and inserts the
    transition blocks. It updates the `BlockState` objects it is given.

  The module also has `hann_window` and `mdct`.
- `aacenc.filtbank`: `FilterBank` is the MDCT filter bank.
  `forward(block_type, prev_shape, shape, samples, overlap, overlapped)`
  and `inverse(block_type, spectrum, overlap, overlapped)` handle long,
  short and transition blocks. Both use sine or Kaiser-Bessel-derived
  windows (`WindowShape`). The module also has these helpers:
  - `sine_window`, `kbd_window` and `bessel_i0` build the windows.
  - `mdct` and `imdct` are the transforms.
  - `spec_filter` returns a copy of a spectrum with the lines above a
    low-pass frequency set to zero.

## Example

```python
from aacenc.bitwriter import BitStream, write_adts_header, write_terminator

stream = BitStream(64)
write_adts_header(stream, mpeg_version=0, object_type=2,
                  sample_rate_index=4, num_channels=2, frame_bytes=8)
write_terminator(stream)
stream.byte_align()
data = stream.getvalue()
```

```python
from aacenc.filtbank import FilterBank
from aacenc.ics import BlockType

bank = FilterBank()
overlap = [0.0] * 1024
spectrum, overlap = bank.forward(BlockType.ONLY_LONG_WINDOW, 0, 0,
                                 [0.0] * 1024, overlap, True)
```

## What it does not do

This package is not a complete encoder. It has no quantisation, scalefactor
or Huffman coding of spectra, no stereo or TNS analysis, and no rate
control. Nothing in it turns PCM input into AAC frames end to end, and it
provides no command-line program. The pieces above are meant to be combined
by code that supplies those parts.

## Tests

```
pip install -e .[test]
pytest
```