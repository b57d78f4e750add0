"""
Fath-AI Server Settings Configuration
Configuration management for the research assistant backend
"""

from typing import List
from pydantic_settings import BaseSettings
from pydantic import field_validator


class FathAISettings(BaseSettings):
    """Configuration settings for the Fath-AI server"""

    # Server Configuration
    host: str = "localhost"
    port: int = 8001
    debug: bool = False
    environment: str = "development"

    # Ollama Integration
    ollama_host: str = "localhost"
    ollama_port: int = 11434
    ollama_model: str = "llama3.1:8b"
    ollama_timeout: float = 60.0

    # SearXNG meta search backend
    searxng_url: str = "http://localhost:8888"
    search_primary_timeout: float = 6.0    # caller-supplied engine set
    search_fallback_timeout: float = 15.0  # brave / duckduckgo / backend default

    # Content fetching
    fetch_timeout: float = 10.0

    # Research pipeline bounds
    search_max_iterations: int = 2
    high_quality_score: float = 15.0
    summarize_fetched_content: bool = False

    # CORS Configuration
    enable_cors: bool = True
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Logging
    log_level: str = "INFO"
    log_path: str = "./logs"
    structured_logging: bool = False

    @property
    def ollama_base_url(self) -> str:
        """Construct Ollama base URL"""
        return f"http://{self.ollama_host}:{self.ollama_port}"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Normalize and check the log level name"""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator(
        "ollama_timeout",
        "search_primary_timeout",
        "search_fallback_timeout",
        "fetch_timeout",
    )
    @classmethod
    def validate_timeout(cls, v):
        """Every network call must carry a finite, positive timeout"""
        if v <= 0:
            raise ValueError("Timeouts must be positive")
        return v

    @field_validator("search_max_iterations")
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("Must be at least 1")
        return v

    model_config = {
        "env_file": ".env",
        "env_prefix": "FATHAI_",
        "case_sensitive": False,
        "extra": "ignore",
    }


# Global settings instance
settings = FathAISettings()


def get_settings() -> FathAISettings:
    """Get settings instance (for dependency injection)"""
    return settings


if __name__ == "__main__":
    print("Fath-AI Configuration:")
    print(f"Ollama URL: {settings.ollama_base_url} (model: {settings.ollama_model})")
    print(f"SearXNG URL: {settings.searxng_url}")
    print(f"Iterations: {settings.search_max_iterations}")
    print(f"Log path: {settings.log_path}")
