"""
Configuration settings for Railguard.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
    
    # === Application ===
    APP_NAME: str = "Railguard"
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"
    
    # === Retry & Backoff ===
    MAX_ATTEMPTS: int = 3  # Includes the initial attempt
    INITIAL_DELAY_SECONDS: float = 0.1
    MAX_DELAY_SECONDS: float = 5.0
    BACKOFF_MULTIPLIER: float = 2.0
    JITTER_FRACTION: float = 0.1  # 0.1 = +/-10%
    
    # === Run Limits ===
    RUN_TIMEOUT_SECONDS: float = 0.0  # 0 disables the overall run timeout
    
    # === Structured Output ===
    STRICT_SCHEMA: bool = True  # Reject fields the schema does not declare
    
    # === Ollama Configuration ===
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "qwen2.5:7b"
    OLLAMA_TIMEOUT: int = 60  # seconds
    OLLAMA_JSON_MODE: bool = True  # Ask Ollama for JSON-only output
    
    # === LLM Generation Parameters ===
    LLM_TEMPERATURE: float = 0.1
    LLM_MAX_TOKENS: int = 2048


# Global settings instance
settings = Settings()
