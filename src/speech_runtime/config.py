"""Runtime configuration for the speech runtime."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="SPEECH_RUNTIME_", env_file=".env", extra="ignore")

    app_name: str = "speech-runtime"
    log_level: str = "INFO"
    execution_provider: str = Field(
        default="auto",
        description="ONNX Runtime backend preference: auto, cpu or cuda.",
    )

    espeak_data_path: str | None = Field(
        default=None,
        description="Directory containing espeak-ng-data; None uses the library default.",
    )
    voice_models: list[str] = Field(
        default_factory=list,
        description="Piper .onnx voice models, indexed by language voice slot (english, german, french).",
    )
    comma_delay: float = Field(default=0.1, ge=0.0, le=1.0)
    period_delay: float = Field(default=0.5, ge=0.0, le=1.0)
    question_exclamation_delay: float = Field(default=0.6, ge=0.0, le=1.0)
    playback_poll_seconds: float = 0.02

    whisper_encoder_path: str | None = None
    whisper_decoder1_path: str | None = None
    whisper_decoder2_path: str | None = None
    whisper_vocab_path: str | None = None
    whisper_max_tokens: int = Field(default=100, ge=4)
    whisper_n_mels: int = 80

    language: str = "english"
    recording_seconds: float = 10.0
    recording_sample_rate: int = 16_000
    microphone_device: str | None = None
    input_sensitivity: float = Field(default=0.0, ge=0.0, le=1.0)
    visualization_bands: int = 64

    voice_enabled: bool = True
    telemetry_enabled: bool = True


settings = Settings()
