from enum import Enum
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding='utf-8',
        case_sensitive=True,
        use_enum_values=True,
        extra='ignore',
    )

    # Application
    APP_NAME: str = Field(default="voxrouter", description="Application name")
    APP_VERSION: str = Field(default="0.1.0", description="Application version")

    # Server
    HOST: str = Field(default="0.0.0.0", description="Server host")
    PORT: int = Field(default=3000, description="Server port", ge=1, le=65535)
    CORS_ORIGINS: str = Field(default="*", description="CORS origins (comma separated)")

    # Hosted completion API
    OPENAI_API_KEY: Optional[str] = Field(default=None, description="OpenAI API key")
    HOSTED_DEFAULT_MODEL: str = Field(default="gpt-3.5-turbo", description="Model used for the gpt identifier")
    HOSTED_UPGRADED_MODEL: str = Field(default="gpt-4", description="Model used for the gpt4 identifier")

    # Local inference server
    OLLAMA_BASE_URL: str = Field(default="http://localhost:11434", description="Ollama base URL")

    # Aggregator API
    PERPLEXITY_API_KEY: Optional[str] = Field(default=None, description="Aggregator bearer token")
    PERPLEXITY_ENDPOINT: str = Field(
        default="https://api.perplexity.ai/chat/completions",
        description="Aggregator chat completions URL",
    )

    BACKEND_TIMEOUT_SECONDS: float = Field(default=30.0, description="Timeout for backend calls", gt=0)

    # Speech synthesis
    TTS_MODEL: str = Field(default="tts-1", description="OpenAI speech model")
    TTS_LOCAL_VOICE: str = Field(default="fable", description="Voice for locally hosted models")
    TTS_REMOTE_VOICE: str = Field(default="echo", description="Voice for every other model")

    # Client
    CHAT_ENDPOINT_URL: str = Field(default="http://localhost:3000/api/chat", description="Turn endpoint used by the client")
    SILENCE_DELAY_SECONDS: float = Field(default=2.0, description="Quiet interval marking end of utterance", gt=0)

    # Logging
    LOG_LEVEL: LogLevel = Field(default=LogLevel.INFO, description="Log level")
    LOG_FORMAT: str = Field(default="text", description="Log format (json|text)")

    @field_validator('LOG_FORMAT')
    @classmethod
    def validate_log_format(cls, v):
        normalized = v.lower()
        if normalized not in ('json', 'text'):
            raise ValueError('LOG_FORMAT must be json or text')
        return normalized

    @property
    def log_level_name(self) -> str:
        return getattr(self.LOG_LEVEL, "value", self.LOG_LEVEL)

    @property
    def cors_origins_list(self) -> List[str]:
        origins = [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]
        return origins or ["*"]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Lazily create and cache Settings instance for DI."""
    return Settings()
