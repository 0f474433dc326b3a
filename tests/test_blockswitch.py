import math
import random

import pytest

from aacenc.blockswitch import (
    BLOCK_LEN_LONG,
    BlockState,
    PsyModel,
    hann_window,
    mdct,
)
from aacenc.channels import get_channel_info
from aacenc.fft import FFT
from aacenc.ics import BlockType

SAMPLE_RATE = 44100
BANDWIDTH = 16000
CB_WIDTH_SHORT = [4, 4, 4, 4, 4, 8, 8, 8, 12, 12, 12, 16, 16, 16]


def _noise(rng, amplitude):
    return [rng.uniform(-amplitude, amplitude) for _ in range(BLOCK_LEN_LONG)]


def _feed_burst(model, channel, rng):
    for _ in range(3):
        model.buffer_update(channel, _noise(rng, 1.0), BANDWIDTH, CB_WIDTH_SHORT)
    model.buffer_update(channel, _noise(rng, 10000.0), BANDWIDTH, CB_WIDTH_SHORT)
    for _ in range(2):
        model.buffer_update(channel, _noise(rng, 1.0), BANDWIDTH, CB_WIDTH_SHORT)


def _feed_silence(model, channel, frames=4):
    for _ in range(frames):
        model.buffer_update(channel, [0.0] * BLOCK_LEN_LONG, BANDWIDTH, CB_WIDTH_SHORT)


def test_hann_window_symmetric_and_complementary():
    size = 256
    window = hann_window(size)
    assert len(window) == size
    for i in range(size):
        assert window[i] == pytest.approx(window[size - 1 - i])
    for i in range(size // 2):
        assert window[i] + window[i + size // 2] == pytest.approx(1.0)
    assert all(0.0 < w < 1.0 for w in window)


def test_hann_window_negative_size():
    with pytest.raises(ValueError):
        hann_window(-1)


def test_mdct_rejects_unsupported_length():
    with pytest.raises(ValueError):
        mdct(FFT(), [0.0] * 100)


def test_mdct_of_zeros_is_zero():
    out = mdct(FFT(), [0.0] * 256)
    assert len(out) == 256
    assert all(v == 0.0 for v in out)


def test_mdct_is_linear():
    rng = random.Random(3)
    fft = FFT()
    a = [rng.uniform(-1, 1) for _ in range(256)]
    b = [rng.uniform(-1, 1) for _ in range(256)]
    combined = mdct(fft, [x + 2.0 * y for x, y in zip(a, b)])
    ma = mdct(fft, a)
    mb = mdct(fft, b)
    for value, x, y in zip(combined, ma, mb):
        assert value == pytest.approx(x + 2.0 * y, abs=1e-6)


def test_mdct_tone_peaks_at_its_bin():
    n = 256
    k0 = 20
    window = hann_window(n)
    signal = [
        window[i] * math.cos(2.0 * math.pi * (k0 + 0.5) * i / n) for i in range(n)
    ]
    coefficients = mdct(FFT(), signal)[: n // 2]
    magnitudes = [abs(v) for v in coefficients]
    peak = max(range(len(magnitudes)), key=magnitudes.__getitem__)
    assert abs(peak - k0) <= 1


def test_model_rejects_bad_sample_rate():
    with pytest.raises(ValueError):
        PsyModel(1, 0)


def test_buffer_update_rejects_wrong_length():
    model = PsyModel(1, SAMPLE_RATE)
    with pytest.raises(ValueError):
        model.buffer_update(0, [0.0] * 10, BANDWIDTH, CB_WIDTH_SHORT)


def test_buffer_update_rejects_too_many_bands():
    model = PsyModel(1, SAMPLE_RATE)
    with pytest.raises(ValueError):
        model.buffer_update(0, [0.0] * BLOCK_LEN_LONG, BANDWIDTH, [4] * 16)


def test_fresh_channel_stays_long():
    model = PsyModel(1, SAMPLE_RATE)
    assert model.check_short(0, 1.0) == BlockType.ONLY_LONG_WINDOW


def test_silence_stays_long():
    model = PsyModel(1, SAMPLE_RATE)
    _feed_silence(model, 0)
    assert model.check_short(0, 1.0) == BlockType.ONLY_LONG_WINDOW
    assert model.channels[0].block_type == BlockType.ONLY_LONG_WINDOW


def test_prev_samples_keep_last_frame():
    model = PsyModel(1, SAMPLE_RATE)
    rng = random.Random(7)
    frame = _noise(rng, 1.0)
    model.buffer_update(0, frame, BANDWIDTH, CB_WIDTH_SHORT)
    assert model.channels[0].prev_samples == frame


def test_burst_switches_to_short():
    model = PsyModel(1, SAMPLE_RATE)
    _feed_burst(model, 0, random.Random(11))
    assert model.check_short(0, 1.0) == BlockType.ONLY_SHORT_WINDOW


def test_calculate_pair_checks_both_channels():
    model = PsyModel(2, SAMPLE_RATE)
    rng = random.Random(13)
    _feed_silence(model, 0, frames=6)
    _feed_burst(model, 1, rng)
    infos = get_channel_info(2, True)
    model.calculate(infos, 1.0)
    assert model.channels[0].block_type == BlockType.ONLY_LONG_WINDOW
    assert model.channels[1].block_type == BlockType.ONLY_SHORT_WINDOW


def test_calculate_forces_lfe_long():
    model = PsyModel(4, SAMPLE_RATE)
    infos = get_channel_info(4, True)
    assert infos[3].lfe
    model.channels[3].block_type = BlockType.ONLY_SHORT_WINDOW
    model.calculate(infos, 1.0)
    assert model.channels[3].block_type == BlockType.ONLY_LONG_WINDOW


def test_block_switch_transition_sequence():
    model = PsyModel(2, SAMPLE_RATE)
    states = [BlockState(), BlockState()]

    model.channels[1].block_type = BlockType.ONLY_SHORT_WINDOW
    assert model.block_switch(states) == [BlockType.LONG_SHORT_WINDOW] * 2
    assert model.block_switch(states) == [BlockType.ONLY_SHORT_WINDOW] * 2

    model.channels[1].block_type = BlockType.ONLY_LONG_WINDOW
    assert model.block_switch(states) == [BlockType.ONLY_SHORT_WINDOW] * 2
    assert model.block_switch(states) == [BlockType.SHORT_LONG_WINDOW] * 2
    assert model.block_switch(states) == [BlockType.ONLY_LONG_WINDOW] * 2
    assert all(s.desired_block_type == BlockType.ONLY_LONG_WINDOW for s in states)


def test_block_switch_requires_state_per_channel():
    model = PsyModel(2, SAMPLE_RATE)
    with pytest.raises(ValueError):
        model.block_switch([BlockState()])