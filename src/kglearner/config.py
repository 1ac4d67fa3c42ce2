"""Configuration management using Pydantic Settings."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment presets."""

    DEV = "dev"
    TEST = "test"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # LLM Configuration (remote OpenAI-compatible endpoint)
    llm_base_url: str = "http://localhost:11434/v1"
    llm_model: str = "qwen3:8b"
    llm_api_key: str = "ollama"
    llm_max_concurrent: int = 4
    llm_timeout: float = 120.0

    graph_temperature: float = Field(
        default=0.4,
        description="Temperature for graph and expansion generation"
    )
    plan_temperature: float = Field(
        default=0.7,
        description="Temperature for per-concept learning plans"
    )

    # Force layout
    layout_width: float = 800.0
    layout_height: float = 600.0
    link_distance: float = 120.0
    charge_strength: float = -400.0
    collide_radius: float = Field(
        default=50.0,
        description="Collision radius; nodes keep 2x this between centers"
    )
    node_radius: float = 20.0
    selected_node_radius: float = 24.0

    alpha_min: float = 0.001
    alpha_decay_iterations: int = Field(
        default=300,
        description="Ticks for alpha to decay from 1 to alpha_min"
    )
    velocity_decay: float = 0.4
    drag_alpha_target: float = Field(
        default=0.3,
        description="Energy target held while a node is dragged"
    )
    click_threshold: float = Field(
        default=3.0,
        description="Pointer travel (px) above which a press becomes a drag"
    )
    frame_interval: float = 1.0 / 60.0

    # Viewport
    zoom_min: float = 0.1
    zoom_max: float = 4.0

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False


def get_dev_settings() -> Settings:
    """Get development environment settings."""
    return Settings(
        llm_max_concurrent=2,
        api_debug=True,
    )


def get_test_settings() -> Settings:
    """Get test environment settings."""
    return Settings(
        llm_base_url="http://localhost:11434/v1",
        llm_model="test-model",
        llm_timeout=5.0,
        frame_interval=0.0,
    )


def get_settings(environment: Environment | str = Environment.DEV) -> Settings:
    """Get settings for a named environment preset."""
    if Environment(environment) == Environment.TEST:
        return get_test_settings()
    return get_dev_settings()


# Global settings instance
settings = Settings()
