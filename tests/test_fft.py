import math

import pytest

from aacenc.fft import FFT

TOL = 1e-4


def _tone(size, k):
    re = [math.cos(2 * math.pi * k * n / size) for n in range(size)]
    im = [math.sin(2 * math.pi * k * n / size) for n in range(size)]
    return re, im


@pytest.mark.parametrize("logm", [1, 3, 6, 9])
def test_impulse_gives_flat_spectrum(logm):
    size = 1 << logm
    xr = [1.0] + [0.0] * (size - 1)
    re, im = FFT().fft(xr, [0.0] * size, logm)
    assert re == pytest.approx([1.0] * size, abs=TOL)
    assert im == pytest.approx([0.0] * size, abs=TOL)


@pytest.mark.parametrize("logm", [2, 5, 9])
def test_constant_gives_dc_bin(logm):
    size = 1 << logm
    re, im = FFT().fft([1.0] * size, [0.0] * size, logm)
    assert re[0] == pytest.approx(size, abs=TOL * size)
    assert max(abs(v) for v in re[1:]) < TOL * size
    assert max(abs(v) for v in im) < TOL * size


@pytest.mark.parametrize("k", [0, 1, 5, 31])
def test_complex_tone_lands_in_its_bin(k):
    logm = 6
    size = 1 << logm
    xr, xi = _tone(size, k)
    re, im = FFT().fft(xr, xi, logm)
    for bin_index in range(size):
        expected = size if bin_index == k else 0.0
        assert re[bin_index] == pytest.approx(expected, abs=1e-3)
        assert im[bin_index] == pytest.approx(0.0, abs=1e-3)


@pytest.mark.parametrize("logm", [1, 4, 7, 9])
def test_inverse_round_trip(logm):
    size = 1 << logm
    xr = [math.sin(0.3 * n) + 0.1 * n for n in range(size)]
    xi = [math.cos(1.7 * n) for n in range(size)]
    engine = FFT()
    re, im = engine.fft(xr, xi, logm)
    back_re, back_im = engine.ffti(re, im, logm)
    assert back_re == pytest.approx(xr, abs=1e-3)
    assert back_im == pytest.approx(xi, abs=1e-3)


def test_parseval_holds():
    logm = 8
    size = 1 << logm
    xr = [math.sin(0.11 * n * n) for n in range(size)]
    xi = [math.cos(0.07 * n) for n in range(size)]
    re, im = FFT().fft(xr, xi, logm)
    time_energy = sum(a * a + b * b for a, b in zip(xr, xi))
    freq_energy = sum(a * a + b * b for a, b in zip(re, im)) / size
    assert freq_energy == pytest.approx(time_energy, rel=1e-4)


def test_linearity():
    logm = 5
    size = 1 << logm
    a = [math.sin(n) for n in range(size)]
    b = [math.cos(2 * n) for n in range(size)]
    zeros = [0.0] * size
    engine = FFT()
    ra, ia = engine.fft(a, zeros, logm)
    rb, ib = engine.fft(b, zeros, logm)
    rs, is_ = engine.fft([x + 2 * y for x, y in zip(a, b)], zeros, logm)
    assert rs == pytest.approx([x + 2 * y for x, y in zip(ra, rb)], abs=1e-3)
    assert is_ == pytest.approx([x + 2 * y for x, y in zip(ia, ib)], abs=1e-3)


def test_inputs_are_not_modified():
    logm = 3
    xr = [float(n) for n in range(8)]
    xi = [0.0] * 8
    FFT().fft(xr, xi, logm)
    assert xr == [float(n) for n in range(8)]
    assert xi == [0.0] * 8


def test_values_past_transform_size_pass_through():
    xr = [1.0, 0.0, 0.0, 0.0, 42.0]
    xi = [0.0, 0.0, 0.0, 0.0, -7.0]
    re, im = FFT().fft(xr, xi, 2)
    assert len(re) == 5
    assert re[4] == 42.0
    assert im[4] == -7.0


def test_logm_zero_is_identity():
    re, im = FFT().fft([3.5], [-1.25], 0)
    assert re == [3.5]
    assert im == [-1.25]


def test_rfft_layout_for_cosine():
    logm = 6
    size = 1 << logm
    k = 3
    x = [math.cos(2 * math.pi * k * n / size) for n in range(size)]
    out = FFT().rfft(x, logm)
    half = size // 2
    assert len(out) == size
    assert out[k] == pytest.approx(size / 2, abs=1e-3)
    others = [v for i, v in enumerate(out[:half]) if i != k]
    assert max(abs(v) for v in others) < 1e-3
    assert max(abs(v) for v in out[half:]) < 1e-3


def test_rfft_layout_for_sine_imaginary_half():
    logm = 4
    size = 1 << logm
    k = 2
    x = [math.sin(2 * math.pi * k * n / size) for n in range(size)]
    out = FFT().rfft(x, logm)
    half = size // 2
    assert out[half + k] == pytest.approx(-size / 2, abs=1e-3)
    assert max(abs(v) for v in out[:half]) < 1e-3


def test_fft_too_big_raises():
    size = 1 << 10
    with pytest.raises(ValueError):
        FFT().fft([0.0] * size, [0.0] * size, 10)


def test_rfft_too_big_raises():
    with pytest.raises(ValueError):
        FFT().rfft([0.0] * 512, 9)


def test_rfft_needs_two_points():
    with pytest.raises(ValueError):
        FFT().rfft([1.0], 0)


def test_short_input_raises():
    with pytest.raises(ValueError):
        FFT().fft([0.0] * 7, [0.0] * 8, 3)


def test_negative_logm_raises():
    with pytest.raises(ValueError):
        FFT().ffti([0.0], [0.0], -1)


def test_repeated_calls_reuse_tables_consistently():
    engine = FFT()
    xr = [math.sin(n) for n in range(64)]
    xi = [0.0] * 64
    first = engine.fft(xr, xi, 6)
    second = engine.fft(xr, xi, 6)
    assert first == second