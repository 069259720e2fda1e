"""Error taxonomy shared by the synthesis and recognition pipelines."""


class SpeechRuntimeError(RuntimeError):
    """Base class for speech runtime failures."""


class InitializationError(SpeechRuntimeError):
    """Raised when an engine, voice or native library cannot be set up."""


class ChunkSynthesisError(SpeechRuntimeError):
    """Raised when a single text chunk cannot be turned into audio.

    The scheduler skips the chunk and continues with the remaining segments.
    """


class PhonemizationError(ChunkSynthesisError):
    """Raised when the phonemizer returns no result for a chunk."""


class EmptyWaveformError(ChunkSynthesisError):
    """Raised when the vocoder produces no samples for a chunk."""


class SessionError(SpeechRuntimeError):
    """Raised when an encode or decode step fails and the session is aborted."""
