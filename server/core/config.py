"""Environment-driven configuration with Pydantic v2."""

from typing import Literal, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine settings driven entirely by environment variables."""

    # Logging
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    log_format: Literal["json", "console"] = Field(default="json", env="LOG_FORMAT")
    log_file: Optional[str] = Field(default=None, env="LOG_FILE")

    # Retry policy for remote write operations (transfers, swaps, staking)
    retry_max_attempts: int = Field(default=3, env="RETRY_MAX_ATTEMPTS", ge=0, le=10)
    retry_delay_seconds: float = Field(default=2.0, env="RETRY_DELAY_SECONDS", ge=0.0, le=60.0)

    # Execution store
    redis_url: Optional[str] = Field(default=None, env="REDIS_URL")
    redis_enabled: bool = Field(default=False, env="REDIS_ENABLED")
    execution_ttl: int = Field(default=86400, env="EXECUTION_TTL", ge=60)

    # Graph source
    workflows_dir: str = Field(default="workflows", env="WORKFLOWS_DIR")

    # Chat completion endpoint (OpenAI-compatible) used by AI nodes
    ai_base_url: str = Field(default="https://api.asi1.ai/v1", env="AI_BASE_URL")
    ai_api_key: Optional[str] = Field(default=None, env="AI_API_KEY")
    ai_model: str = Field(default="asi1-mini", env="AI_MODEL")
    ai_timeout: int = Field(default=30, env="AI_TIMEOUT", ge=5, le=300)

    # External tools
    agent_base_url: str = Field(default="https://agentverse.ai/v1/agents", env="AGENT_BASE_URL")
    agent_api_key: Optional[str] = Field(default=None, env="AGENT_API_KEY")
    blockscout_api_url: str = Field(default="https://mcp.blockscout.com/api", env="BLOCKSCOUT_API_URL")
    tool_timeout: int = Field(default=30, env="TOOL_TIMEOUT", ge=5, le=300)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Normalize and check the log level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("ai_base_url", "agent_base_url", "blockscout_api_url")
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    @property
    def use_redis(self) -> bool:
        """Whether runs should be persisted to Redis."""
        return self.redis_enabled and bool(self.redis_url)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
        "env_parse_none_str": "none",
    }
