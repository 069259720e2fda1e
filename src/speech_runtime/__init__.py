"""On-device Piper speech synthesis and Whisper speech recognition."""

__version__ = "0.1.0"
