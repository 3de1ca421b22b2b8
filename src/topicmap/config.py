"""Configuration management using Pydantic Settings."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


LayoutDirection = Literal["LR", "RL", "TB", "BT"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # LLM Configuration (remote OpenAI-compatible endpoint)
    llm_base_url: str = "http://localhost:11434/v1"
    llm_model: str = "gpt-oss:120b-cloud"
    llm_api_key: str = "ollama"
    llm_timeout: float = 120.0
    llm_temperature: float = Field(
        default=0.4,
        description="Lower values keep generated JSON well-formed"
    )
    llm_max_tokens: int = 8192
    llm_max_retries: int = 2

    # Persistence
    store_backend: Literal["memory", "json"] = Field(
        default="json",
        description="Where the forest is saved between sessions"
    )
    store_path: str = "topicmap_memory.json"

    # Layered layout policy
    layout_direction: LayoutDirection = "LR"
    layout_rank_sep: float = Field(
        default=200.0,
        description="Gap between consecutive ranks (parent -> child)"
    )
    layout_node_sep: float = Field(
        default=100.0,
        description="Gap between siblings inside one rank"
    )
    layout_margin_x: float = 50.0
    layout_margin_y: float = 50.0

    # Node box size tiers (level 0, level 1, level >= 2)
    root_node_width: float = 280.0
    root_node_height: float = 120.0
    category_node_width: float = 220.0
    category_node_height: float = 100.0
    default_node_width: float = 180.0
    default_node_height: float = 80.0

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False


def get_test_settings() -> Settings:
    """Get test environment settings."""
    return Settings(
        llm_model="test-model",
        store_backend="memory",
        llm_timeout=5.0,
        llm_max_retries=0,
    )


# Global settings instance
settings = Settings()
