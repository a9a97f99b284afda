"""
Application configuration management.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # Database
    database_url: str
    
    # Redis
    redis_url: str
    
    # OpenAI
    openai_api_key: str
    openai_model: str = "gpt-4o-mini"
    azure_openai_endpoint: Optional[str] = None
    azure_openai_api_key: Optional[str] = None
    azure_openai_deployment: Optional[str] = None
    
    # GitHub
    github_token: Optional[str] = None
    github_api_url: str = "https://api.github.com"
    webhook_secret: Optional[str] = None  # Signature check is skipped when unset
    diff_fetch_timeout_seconds: float = 10.0
    diff_fetch_concurrency: int = 4
    
    # Correlation
    minor_change_threshold: int = 5
    commit_analysis_min_diff_chars: int = 100
    pr_analysis_min_diff_chars: int = 200
    
    # Application
    log_level: str = "INFO"
    analysis_timeout_seconds: int = 600
    max_workers: int = 3
    
    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
