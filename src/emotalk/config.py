"""Configuration management for emotalk."""
import os
from pathlib import Path
from typing import List, Literal, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_PERSONA = (
    "You are a friendly, expressive virtual companion with an animated 3D avatar. "
    "Keep answers short and conversational, like talking to a friend. "
    "Remember what the user told you earlier in the conversation and stay consistent."
)


class ApiConfig(BaseModel):
    """API configuration."""
    openai_api_key: str = ""


class RealtimeConfig(BaseModel):
    """Realtime service connection configuration."""
    url: str = "wss://api.openai.com/v1/realtime"
    model: str = "gpt-4o-realtime-preview-2024-10-01"
    beta_header: str = "realtime=v1"
    connect_timeout_s: float = 10.0

    @property
    def endpoint(self) -> str:
        """Full WebSocket URL including the model query parameter."""
        return f"{self.url}?model={self.model}"


class PromptConfig(BaseModel):
    """Session and turn prompt configuration."""
    persona: str = DEFAULT_PERSONA
    temperature: float = Field(default=0.8, ge=0.6, le=1.2)
    modalities: List[str] = Field(default_factory=lambda: ["text"])
    max_response_output_tokens: Union[int, Literal["inf"]] = "inf"
    max_words_per_segment: int = Field(default=30, ge=1)
    # "session": contract sent once in session.update
    # "turn": contract sent with every response.create
    instructions_placement: Literal["session", "turn"] = "session"


class RetrievalConfig(BaseModel):
    """Vector store configuration. Retrieval is enabled when index_name is set."""
    index_name: str = ""
    chroma_host: str = ""
    chroma_port: int = 8000
    chroma_path: str = "./chroma"
    timeout_s: float = Field(default=5.0, gt=0)

    @property
    def enabled(self) -> bool:
        return bool(self.index_name)


class OrchestrationConfig(BaseModel):
    """Conversation loop configuration."""
    greeting: str = "Hello"
    input_prompt: str = "Your message: "
    exit_commands: List[str] = Field(default_factory=lambda: ["exit", "quit"])


class Config(BaseSettings):
    """Main configuration."""
    model_config = SettingsConfigDict(env_prefix="EMOTALK_")

    api: ApiConfig = ApiConfig()
    realtime: RealtimeConfig = RealtimeConfig()
    prompt: PromptConfig = PromptConfig()
    retrieval: RetrievalConfig = RetrievalConfig()
    orchestration: OrchestrationConfig = OrchestrationConfig()
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @classmethod
    def load(cls, env_path: Optional[Path] = None) -> "Config":
        """Load configuration from environment variables.

        Raises:
            ConfigError: If a variable holds a value of the wrong type
        """
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        try:
            return cls(
                api=ApiConfig(
                    openai_api_key=os.getenv("OPEN_AI_KEY") or os.getenv("OPENAI_API_KEY", ""),
                ),
                realtime=RealtimeConfig(
                    model=os.getenv("REALTIME_MODEL") or RealtimeConfig().model,
                ),
                retrieval=RetrievalConfig(
                    index_name=os.getenv("INDEX_NAME", ""),
                    chroma_host=os.getenv("CHROMA_HOST", ""),
                    chroma_port=int(os.getenv("CHROMA_PORT", "8000")),
                    chroma_path=os.getenv("CHROMA_PATH", "./chroma"),
                ),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() reloads it."""
    global _config
    _config = None
