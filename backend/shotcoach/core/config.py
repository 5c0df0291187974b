import os
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    log_level: str = "INFO"
    openai_api_key: str = ""  # OpenAI API key for shot analysis
    openai_model: str = "gpt-4o-mini"  # Must accept image input
    openai_timeout: float = 30.0
    analysis_max_tokens: int = 150
    analysis_temperature: float = 0.5
    perfect_shot_score: int = 90  # Scores at or above this short-circuit to "take the picture"
    max_instructions: int = 3
    min_instruction_length: int = 6  # Shorter feedback fragments are dropped
    visual_cue_ttl_seconds: float = 5.0
    analysis_image_width: int = 480  # Frames are downsized to this width before upload
    analysis_jpeg_quality: int = 50
    reference_max_tokens: int = 250
    reference_temperature: float = 0.3
    max_image_size: int = 10 * 1024 * 1024  # 10MB

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Pick up the conventional variable name when the prefixed one is unset
        if not self.openai_api_key:
            self.openai_api_key = os.getenv("OPENAI_API_KEY", "")


settings = Settings()
