"""Frequency-band reduction for the live audio spectrum readout."""

from __future__ import annotations

import numpy as np
from scipy.signal import windows

_BAND_COUNTS = (8, 64)
_BAND64_STEPS = (16, 32, 40, 48, 56)


def magnitude_spectrum(samples: np.ndarray, bins: int = 512) -> np.ndarray:
    """Blackman-Harris windowed magnitude spectrum with ``bins`` bins."""
    size = bins * 2
    frame = np.asarray(samples, dtype=np.float32).reshape(-1)[:size]
    if frame.size < size:
        frame = np.pad(frame, (0, size - frame.size))
    window = windows.blackmanharris(size, sym=False)
    spectrum = np.abs(np.fft.rfft(frame * window))[:bins]
    return (spectrum * 2.0 / window.sum()).astype(np.float32)


class SpectrumAnalyzer:
    """Smoothed 8- and 64-band spectrum levels.

    Levels jump up immediately and fall back towards quieter input at
    ``smooth_down_rate`` per second.
    """

    def __init__(self, *, frequency_bins: int = 512, bands: int = 64, smooth_down_rate: float = 10.0) -> None:
        if bands not in _BAND_COUNTS:
            raise ValueError(f"bands must be one of {_BAND_COUNTS}, got {bands}")
        self.frequency_bins = frequency_bins
        self.bands = bands
        self.smooth_down_rate = smooth_down_rate
        self.samples = np.zeros(frequency_bins, dtype=np.float32)
        self.bands8 = np.zeros(8, dtype=np.float32)
        self.bands64 = np.zeros(64, dtype=np.float32)

    @property
    def levels(self) -> np.ndarray:
        return self.bands8 if self.bands == 8 else self.bands64

    def update(self, spectrum: np.ndarray, dt: float) -> np.ndarray:
        """Fold one spectrum frame into the smoothed state and return the active bands."""
        incoming = np.asarray(spectrum, dtype=np.float32)[: self.frequency_bins]
        t = min(max(dt * self.smooth_down_rate, 0.0), 1.0)
        decayed = self.samples[: incoming.size] + (incoming - self.samples[: incoming.size]) * t
        self.samples[: incoming.size] = np.where(incoming > self.samples[: incoming.size], incoming, decayed)
        self.bands8 = self._bands8()
        self.bands64 = self._bands64()
        return self.levels

    def update_from_audio(self, window: np.ndarray, dt: float) -> np.ndarray:
        return self.update(magnitude_spectrum(window, self.frequency_bins), dt)

    def points(self, *, width: float = 10.0, y_base: float = 2.0, scalar: float = 100.0) -> list[tuple[float, float]]:
        """Line positions for the active bands, spread evenly across ``width``."""
        levels = self.levels
        count = len(levels)
        return [(i / (count - 1) * width, y_base + float(level) * scalar) for i, level in enumerate(levels)]

    def _bands8(self) -> np.ndarray:
        result = np.zeros(8, dtype=np.float32)
        count = 0
        for i in range(8):
            total = 0.0
            sample_count = 2**i * 2
            if i == 7:
                sample_count += 2
            for _ in range(sample_count):
                if count >= self.samples.size:
                    break
                total += float(self.samples[count]) * (count + 1)
                count += 1
            result[i] = total / (count if count > 0 else 1)
        return result

    def _bands64(self) -> np.ndarray:
        result = np.zeros(64, dtype=np.float32)
        count = 0
        sample_count = 1
        power = 0
        for i in range(64):
            total = 0.0
            if i in _BAND64_STEPS:
                power += 1
                sample_count = 2**power
                if power == 3:
                    sample_count -= 2
            for _ in range(sample_count):
                if count >= self.samples.size:
                    break
                total += float(self.samples[count]) * (count + 1)
                count += 1
            result[i] = total / (count if count > 0 else 1)
        return result
