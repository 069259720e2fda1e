"""Audio preparation and log-mel features for the Whisper encoder."""

from __future__ import annotations

from functools import lru_cache
from math import gcd

import numpy as np
from scipy import signal

SAMPLE_RATE = 16_000
N_FFT = 400
HOP_LENGTH = 160
CHUNK_LENGTH = 30
N_SAMPLES = CHUNK_LENGTH * SAMPLE_RATE
N_FRAMES = N_SAMPLES // HOP_LENGTH


def to_mono(samples: np.ndarray) -> np.ndarray:
    samples = np.asarray(samples, dtype=np.float32)
    if samples.ndim > 1:
        samples = samples.mean(axis=1)
    return samples


def resample(samples: np.ndarray, source_rate: int, target_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Polyphase resampling to ``target_rate``."""
    if source_rate == target_rate:
        return np.asarray(samples, dtype=np.float32)
    divisor = gcd(source_rate, target_rate)
    resampled = signal.resample_poly(samples, target_rate // divisor, source_rate // divisor)
    return resampled.astype(np.float32)


def pad_or_trim(audio: np.ndarray, length: int = N_SAMPLES) -> np.ndarray:
    """Zero-pad or truncate a 1-D waveform to exactly ``length`` samples."""
    if audio.shape[-1] > length:
        return audio[:length]
    if audio.shape[-1] < length:
        return np.pad(audio, (0, length - audio.shape[-1]), mode="constant")
    return audio


@lru_cache(maxsize=4)
def hanning_window(size: int = N_FFT) -> np.ndarray:
    return np.hanning(size + 1)[:-1].astype(np.float32)


def _hz_to_mel(freqs: np.ndarray) -> np.ndarray:
    # Slaney scale: linear below 1 kHz, logarithmic above.
    f_sp = 200.0 / 3
    min_log_hz = 1000.0
    min_log_mel = min_log_hz / f_sp
    logstep = np.log(6.4) / 27.0
    freqs = np.asarray(freqs, dtype=np.float64)
    mels = freqs / f_sp
    log_region = freqs >= min_log_hz
    mels[log_region] = min_log_mel + np.log(freqs[log_region] / min_log_hz) / logstep
    return mels


def _mel_to_hz(mels: np.ndarray) -> np.ndarray:
    f_sp = 200.0 / 3
    min_log_hz = 1000.0
    min_log_mel = min_log_hz / f_sp
    logstep = np.log(6.4) / 27.0
    mels = np.asarray(mels, dtype=np.float64)
    freqs = f_sp * mels
    log_region = mels >= min_log_mel
    freqs[log_region] = min_log_hz * np.exp(logstep * (mels[log_region] - min_log_mel))
    return freqs


@lru_cache(maxsize=4)
def mel_filters(n_mels: int = 80, sample_rate: int = SAMPLE_RATE, n_fft: int = N_FFT) -> np.ndarray:
    """Slaney-normalized mel filterbank, shape ``(n_mels, n_fft // 2 + 1)``."""
    n_freqs = n_fft // 2 + 1
    fft_freqs = np.linspace(0, sample_rate / 2, n_freqs)
    mel_points = np.linspace(_hz_to_mel(np.array([0.0]))[0], _hz_to_mel(np.array([sample_rate / 2]))[0], n_mels + 2)
    hz_points = _mel_to_hz(mel_points)

    filters = np.zeros((n_mels, n_freqs))
    for i in range(n_mels):
        left, center, right = hz_points[i], hz_points[i + 1], hz_points[i + 2]
        rising = (fft_freqs - left) / (center - left)
        falling = (right - fft_freqs) / (right - center)
        filters[i] = np.maximum(0, np.minimum(rising, falling))

    enorm = 2.0 / (hz_points[2 : n_mels + 2] - hz_points[:n_mels])
    filters *= enorm[:, np.newaxis]
    return filters.astype(np.float32)


def log_mel_spectrogram(audio: np.ndarray, n_mels: int = 80) -> np.ndarray:
    """Whisper log-mel features, shape ``(n_mels, n_frames)``.

    A 30 s input yields exactly ``N_FRAMES`` frames.
    """
    audio = np.asarray(audio, dtype=np.float32)
    padded = np.pad(audio, (N_FFT // 2, N_FFT // 2), mode="reflect")

    n_frames = 1 + (padded.size - N_FFT) // HOP_LENGTH
    frames = np.lib.stride_tricks.as_strided(
        padded,
        shape=(n_frames, N_FFT),
        strides=(padded.strides[0] * HOP_LENGTH, padded.strides[0]),
    )
    stft = np.fft.rfft(frames * hanning_window(N_FFT), n=N_FFT)
    magnitudes = np.abs(stft[:-1]) ** 2

    mel_spec = mel_filters(n_mels) @ magnitudes.T
    log_spec = np.log10(np.clip(mel_spec, a_min=1e-10, a_max=None))
    log_spec = np.maximum(log_spec, log_spec.max() - 8.0)
    log_spec = (log_spec + 4.0) / 4.0
    return log_spec.astype(np.float32)


def prepare_whisper_input(samples: np.ndarray, sample_rate: int, n_mels: int = 80) -> np.ndarray:
    """Mono, 16 kHz, fixed 30 s window, log-mel; returns ``(1, n_mels, N_FRAMES)``."""
    audio = pad_or_trim(resample(to_mono(samples), sample_rate))
    return log_mel_spectrogram(audio, n_mels)[np.newaxis, :, :]
