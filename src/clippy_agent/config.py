"""
Clippy Agent Configuration
==========================

This module handles configuration loading for the assistant agent.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    OPENROUTER_API_KEY             -> model.openrouter_api_key
    ANTHROPIC_API_KEY              -> model.anthropic_api_key
    CLIPPY_MODEL_BACKEND           -> model.backend
    CLIPPY_FRAME_BATCH_SIZE        -> capture.frame_batch_size
    CLIPPY_FRAME_INTERVAL_MS       -> capture.frame_interval_ms
    CLIPPY_IDLE_THRESHOLD_MS       -> agents.idle_threshold_ms
    CLIPPY_SUGGESTION_COOLDOWN_MS  -> gate.suggestion_cooldown_ms
    CLIPPY_DISMISS_SUPPRESSION_MS  -> gate.dismiss_suppression_ms
    CLIPPY_SEARCH_ENABLED          -> search.enabled
    CLIPPY_AGENT_PORT              -> server.port
    CLIPPY_LOG_LEVEL               -> logging.level
    PORT                           -> server.port

Example:
    from clippy_agent.config import settings

    print(settings.capture.frame_batch_size)
    print(settings.gate.suggestion_cooldown_ms)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when the configuration cannot support the requested feature."""
    pass


# =============================================================================
# Configuration Models
# =============================================================================

class AgentConfig(BaseModel):
    """Agent identification configuration."""

    name: str = Field(default="clippy-agent", description="Agent name")
    version: str = Field(default="v0.1.0", description="Service version")


class CaptureConfig(BaseModel):
    """Screen capture and batching configuration."""

    frame_interval_ms: int = Field(
        default=1000,
        gt=0,
        description="Interval between captured frames",
    )
    frame_batch_size: int = Field(
        default=15,
        ge=1,
        description="Frames per classification batch",
    )
    scale: float = Field(
        default=0.75,
        gt=0,
        le=1.0,
        description="Downscale factor applied to captured frames",
    )
    monitor_index: int = Field(
        default=1,
        ge=0,
        description="mss monitor index (0 = all monitors, 1 = primary)",
    )
    save_latest_frame_dir: Optional[str] = Field(
        default=None,
        description="If set, the latest frame of each batch is written here as PNG",
    )


class ModelConfig(BaseModel):
    """Remote vision-language model configuration."""

    backend: str = Field(
        default="auto",
        description="Model backend: 'auto', 'openrouter', 'anthropic' or 'mock'",
    )
    openrouter_api_key: Optional[str] = Field(default=None, description="OpenRouter API key")
    anthropic_api_key: Optional[str] = Field(default=None, description="Anthropic API key")
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single remote model call",
    )
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenAI-compatible endpoint of OpenRouter",
    )
    openrouter_classify_model: str = Field(default="openai/gpt-4o-mini")
    openrouter_analyze_model: str = Field(default="anthropic/claude-3.5-sonnet")
    anthropic_classify_model: str = Field(default="claude-3-haiku-20240307")
    anthropic_analyze_model: str = Field(default="claude-3-5-sonnet-20240620")
    classify_max_tokens: int = Field(default=100, ge=1)
    analyze_max_tokens: int = Field(default=1000, ge=1)


class AgentsConfig(BaseModel):
    """Specialized agent configuration."""

    idle_threshold_ms: int = Field(
        default=180_000,
        gt=0,
        description="Idle time required before the learning agent calls the model",
    )


class GateConfig(BaseModel):
    """Suggestion deduplication and suppression configuration."""

    suggestion_cooldown_ms: int = Field(
        default=60_000,
        gt=0,
        description="Minimum time before an identical suggestion is re-emitted",
    )
    dismiss_suppression_ms: int = Field(
        default=300_000,
        gt=0,
        description="How long a dismissed suggestion stays suppressed",
    )


class SearchConfig(BaseModel):
    """Secondary search enrichment configuration (research agent)."""

    enabled: bool = Field(default=True, description="Enable related-resource lookup")
    endpoint: str = Field(
        default="https://api.duckduckgo.com/",
        description="Instant-answer search endpoint",
    )
    timeout_seconds: float = Field(default=5.0, gt=0)
    max_results: int = Field(default=3, ge=1, le=10)


class PipelineConfig(BaseModel):
    """Pipeline behavior configuration."""

    strict_invariants: bool = Field(
        default=False,
        description="Raise on invariant violations instead of degrading to no-assist",
    )
    max_recent_events: int = Field(
        default=10,
        ge=1,
        description="Number of recent events kept in the rolling context",
    )


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="127.0.0.1", description="Bind host")
    port: int = Field(default=8765, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for Clippy Agent.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    agent: AgentConfig = Field(default_factory=AgentConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    model: ModelConfig = Field(default_factory=ModelConfig)
    agents: AgentsConfig = Field(default_factory=AgentsConfig)
    gate: GateConfig = Field(default_factory=GateConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def has_model_credentials(self) -> bool:
        """Whether any remote model backend can be constructed."""
        return bool(self.model.openrouter_api_key or self.model.anthropic_api_key)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Model credentials and backend
    if env_key := os.environ.get("OPENROUTER_API_KEY"):
        config_data.setdefault("model", {})["openrouter_api_key"] = env_key
    if env_key := os.environ.get("ANTHROPIC_API_KEY"):
        config_data.setdefault("model", {})["anthropic_api_key"] = env_key
    if env_backend := os.environ.get("CLIPPY_MODEL_BACKEND"):
        config_data.setdefault("model", {})["backend"] = env_backend

    # Capture settings
    if env_batch := os.environ.get("CLIPPY_FRAME_BATCH_SIZE"):
        config_data.setdefault("capture", {})["frame_batch_size"] = int(env_batch)
    if env_interval := os.environ.get("CLIPPY_FRAME_INTERVAL_MS"):
        config_data.setdefault("capture", {})["frame_interval_ms"] = int(env_interval)

    # Agent and gate timing
    if env_idle := os.environ.get("CLIPPY_IDLE_THRESHOLD_MS"):
        config_data.setdefault("agents", {})["idle_threshold_ms"] = int(env_idle)
    if env_cooldown := os.environ.get("CLIPPY_SUGGESTION_COOLDOWN_MS"):
        config_data.setdefault("gate", {})["suggestion_cooldown_ms"] = int(env_cooldown)
    if env_dismiss := os.environ.get("CLIPPY_DISMISS_SUPPRESSION_MS"):
        config_data.setdefault("gate", {})["dismiss_suppression_ms"] = int(env_dismiss)

    # Search
    if env_search := os.environ.get("CLIPPY_SEARCH_ENABLED"):
        config_data.setdefault("search", {})["enabled"] = _env_flag(env_search)

    # Server settings
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("CLIPPY_AGENT_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("CLIPPY_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
