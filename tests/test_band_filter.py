from __future__ import annotations

import numpy as np
import pytest

from gccphat_delay.core.band_filter import FrequencyAxis, band_limit, compute_band_mask
from gccphat_delay.core.context import SpectralContext
from gccphat_delay.errors import ConfigurationError


def test_frequency_axis_layout() -> None:
    axis = FrequencyAxis.compute(8, 8000)
    np.testing.assert_allclose(axis.freqs, [0, 1000, 2000, 3000, 4000, -3000, -2000, -1000])


def test_frequency_axis_rejects_bad_length() -> None:
    with pytest.raises(ConfigurationError):
        FrequencyAxis.compute(12, 8000)
    with pytest.raises(ConfigurationError):
        FrequencyAxis.compute(1, 8000)


def test_context_caches_axis_per_length_and_rate() -> None:
    ctx = SpectralContext()
    a = ctx.frequency_axis(8, 8000)
    assert ctx.frequency_axis(8, 8000) is a

    b = ctx.frequency_axis(8, 16000)
    assert b is not a
    assert b.freqs[1] == pytest.approx(2000.0)
    c = ctx.frequency_axis(16, 8000)
    assert c.freqs[1] == pytest.approx(500.0)
    # interleaving does not disturb earlier entries
    assert ctx.frequency_axis(8, 8000).freqs[1] == pytest.approx(1000.0)
    assert ctx.engine(16) is ctx.engine(16)


def test_mask_edges_are_in_band() -> None:
    axis = FrequencyAxis.compute(8, 8000)
    mask = compute_band_mask(axis, 1000, 3000)
    assert list(mask.in_band) == [1, 2, 3, 5, 6, 7]
    assert list(mask.out_of_band) == [0, 4]
    assert mask.neither.size == 0


@pytest.mark.parametrize("fmin,fmax", [(0, 8000), (300, 3400), (1000, 1000), (7999, 8000), (0, 0)])
def test_mask_partitions_every_bin(fmin: float, fmax: float) -> None:
    axis = FrequencyAxis.compute(1024, 16000)
    mask = compute_band_mask(axis, fmin, fmax)
    assert np.intersect1d(mask.in_band, mask.out_of_band).size == 0
    assert mask.neither.size == 0
    assert mask.in_band.size + mask.out_of_band.size == 1024


def test_inverted_band_is_all_out_of_band() -> None:
    axis = FrequencyAxis.compute(64, 16000)
    mask = compute_band_mask(axis, 5000, 1000)
    assert mask.in_band.size == 0
    assert mask.out_of_band.size == 64


def test_full_band_keeps_real_part_envelope(rng, context) -> None:
    x = rng.standard_normal(256)
    out = band_limit(x, 16000, 0, 8000, context=context)
    np.testing.assert_allclose(np.abs(out), np.abs(np.fft.fft(x).real), rtol=1e-9, atol=1e-9)


def test_phase_is_quantized_to_table(rng, context) -> None:
    x = rng.standard_normal(512)
    X = np.fft.fft(x)
    out = band_limit(x, 16000, 0, 8000, context=context)
    keep = np.abs(out) > 1e-9
    err = np.abs(np.angle(out[keep] * np.conj(X[keep])))
    assert np.max(err) <= context.lookup.resolution / 2 + 1e-9


def test_pass_and_reject_are_complementary(rng, context) -> None:
    x = rng.standard_normal(1024)
    kept = band_limit(x, 16000, 500, 2000, mode="pass", context=context)
    rejected = band_limit(x, 16000, 500, 2000, mode="reject", context=context)
    np.testing.assert_allclose(np.abs(kept) + np.abs(rejected), np.abs(np.fft.fft(x).real), atol=1e-9)

    mask = compute_band_mask(context.frequency_axis(1024, 16000), 500, 2000)
    assert np.all(kept[mask.out_of_band] == 0)
    assert np.all(rejected[mask.in_band] == 0)


def test_tone_survives_only_inside_band(context) -> None:
    fs, n = 16000, 1024
    t = np.arange(n) / fs
    tone = np.cos(2 * np.pi * 1000.0 * t)  # exactly bin 64

    inside = band_limit(tone, fs, 500, 1500, context=context)
    outside = band_limit(tone, fs, 3000, 4000, context=context)
    assert np.abs(inside[64]) == pytest.approx(n / 2, rel=1e-6)
    assert np.max(np.abs(outside)) < 1e-6


def test_inverted_band_gives_silent_spectrum(rng, context) -> None:
    out = band_limit(rng.standard_normal(256), 16000, 4000, 1000, context=context)
    assert np.all(out == 0)


def test_input_is_not_modified(rng, context) -> None:
    x = rng.standard_normal(64)
    before = x.copy()
    band_limit(x, 8000, 0, 4000, context=context)
    np.testing.assert_array_equal(x, before)


def test_bad_inputs(context) -> None:
    with pytest.raises(ValueError):
        band_limit(np.zeros(64), 8000, 0, 4000, mode="notch", context=context)
    with pytest.raises(ValueError):
        band_limit(np.full(64, np.nan), 8000, 0, 4000, context=context)
    with pytest.raises(ConfigurationError):
        band_limit(np.zeros(100), 8000, 0, 4000, context=context)


def test_works_without_explicit_context(rng) -> None:
    out = band_limit(rng.standard_normal(32), 8000, 0, 4000)
    assert out.shape == (32,)


def test_context_fills_caches_once_under_threads() -> None:
    from concurrent.futures import ThreadPoolExecutor

    ctx = SpectralContext()
    with ThreadPoolExecutor(max_workers=8) as pool:
        engines = list(pool.map(lambda _: ctx.engine(256), range(32)))
        axes = list(pool.map(lambda _: ctx.frequency_axis(256, 16000), range(32)))
    assert all(e is engines[0] for e in engines)
    assert all(a is axes[0] for a in axes)
