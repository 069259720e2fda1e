"""Audio features, playback and spectrum analysis."""

from .features import N_FRAMES, N_SAMPLES, SAMPLE_RATE, log_mel_spectrogram, pad_or_trim, prepare_whisper_input
from .spectrum import SpectrumAnalyzer, magnitude_spectrum

__all__ = [
    "N_FRAMES",
    "N_SAMPLES",
    "SAMPLE_RATE",
    "SpectrumAnalyzer",
    "log_mel_spectrogram",
    "magnitude_spectrum",
    "pad_or_trim",
    "prepare_whisper_input",
]
