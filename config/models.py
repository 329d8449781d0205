"""Pydantic configuration models for the computer-use agent."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from exceptions import ConfigFileNotFoundError, ConfigurationError
from tools.collection import DEFAULT_TOOL_VERSION, ToolVersion


# Load .env file if present
load_dotenv()


class AgentConfig(BaseModel):
    """Reasoning-service and loop configuration."""

    model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Model name to use for the LLM",
    )
    api_key: Optional[str] = Field(
        default=None,
        description="API key for the reasoning service",
    )
    max_tokens: int = Field(
        default=4096,
        ge=1,
        le=128000,
        description="Maximum tokens for a model response",
    )
    tool_version: ToolVersion = Field(
        default=DEFAULT_TOOL_VERSION,
        description="Computer-use tool version; selects the tool set and beta flag",
    )
    thinking_budget: Optional[int] = Field(
        default=1024,
        ge=1024,
        description="Token budget for extended thinking (None disables it)",
    )
    token_efficient_tools_beta: bool = Field(
        default=False,
        description="Send the token-efficient tools beta flag",
    )
    enable_prompt_caching: bool = Field(
        default=True,
        description="Place cache breakpoints on recent user turns and the system prompt",
    )
    only_n_most_recent_images: Optional[int] = Field(
        default=None,
        ge=1,
        description="Keep at most this many screenshots in context (ignored while caching)",
    )
    image_truncation_threshold: Optional[int] = Field(
        default=None,
        ge=1,
        description="Remove screenshots in multiples of this many; defaults to the keep budget",
    )
    max_iterations: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Maximum number of model calls per task",
    )
    max_stalled_turns: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Consecutive tool-use stops without a tool call before giving up",
    )
    max_retries: int = Field(
        default=4,
        ge=0,
        le=10,
        description="Retries performed by the SDK client",
    )
    system_prompt_suffix: Optional[str] = Field(
        default=None,
        description="Extra instructions appended to the system prompt",
    )

    @field_validator("model")
    @classmethod
    def validate_model(cls, v: str) -> str:
        """Reject blank model names."""
        if not v.strip():
            raise ValueError("model must not be empty")
        return v.strip()

    @model_validator(mode="before")
    @classmethod
    def load_from_env(cls, data: Any) -> Any:
        """Load values from environment variables if not explicitly set."""
        if not isinstance(data, dict):
            return data
        env_mapping = {
            "api_key": "ANTHROPIC_API_KEY",
            "model": "COMPUTER_USE_MODEL",
        }
        for field_name, env_var in env_mapping.items():
            if field_name not in data or data[field_name] is None:
                env_value = os.getenv(env_var)
                if env_value:
                    data[field_name] = env_value
        return data


class ToolConfig(BaseModel):
    """Browser tool timing configuration."""

    screenshot_delay: float = Field(
        default=2.0,
        ge=0.0,
        le=30.0,
        description="Seconds to wait before each screenshot",
    )
    typing_delay_ms: int = Field(
        default=12,
        ge=0,
        le=1000,
        description="Delay between typed characters",
    )
    navigation_timeout_ms: int = Field(
        default=30000,
        ge=1000,
        le=300000,
        description="Timeout for page navigation",
    )

    def tool_options(self) -> dict[str, dict[str, Any]]:
        """Constructor keyword arguments per tool name."""
        return {
            "computer": {
                "screenshot_delay": self.screenshot_delay,
                "typing_delay_ms": self.typing_delay_ms,
            },
            "playwright": {"navigation_timeout_ms": self.navigation_timeout_ms},
        }


class ComputerUseConfig(BaseModel):
    """Root configuration model combining all config sections."""

    agent: AgentConfig = Field(default_factory=AgentConfig)
    tools: ToolConfig = Field(default_factory=ToolConfig)

    @classmethod
    def from_flat_dict(cls, data: dict[str, Any]) -> "ComputerUseConfig":
        """Create config from a flat dictionary."""
        agent_keys = set(AgentConfig.model_fields)
        tool_keys = set(ToolConfig.model_fields)

        nested: dict[str, dict[str, Any]] = {"agent": {}, "tools": {}}
        for key, value in data.items():
            if key in agent_keys:
                nested["agent"][key] = value
            elif key in tool_keys:
                nested["tools"][key] = value

        return cls.model_validate(nested)


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> ComputerUseConfig:
    """
    Load configuration from file with overrides.

    Priority (highest to lowest):
    1. Explicit overrides
    2. Config file
    3. Environment variables
    4. Defaults

    A missing ``config_path`` is an error when given explicitly; the default
    ``computer_use.json`` is optional.
    """
    config_data: dict[str, Any] = {}

    if config_path is None:
        config_path = Path("computer_use.json")
        if not config_path.exists():
            config_path = None
    else:
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigFileNotFoundError(str(config_path))

    if config_path is not None:
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                if config_path.suffix in {".yaml", ".yml"}:
                    config_data = yaml.safe_load(f) or {}
                else:
                    config_data = json.load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Could not read config file {config_path}: {e}") from e

    is_flat = not any(key in config_data for key in ("agent", "tools"))
    if is_flat:
        config = ComputerUseConfig.from_flat_dict(config_data)
    else:
        config = ComputerUseConfig.model_validate(config_data)

    if overrides:
        config_dict = config.model_dump()
        _apply_overrides(config_dict, overrides)
        config = ComputerUseConfig.model_validate(config_dict)

    return config


def _apply_overrides(config_dict: dict[str, Any], overrides: dict[str, Any]) -> None:
    """Apply flat overrides to the nested config dictionary."""
    for key, value in overrides.items():
        if value is None:
            continue
        if key in AgentConfig.model_fields:
            config_dict["agent"][key] = value
        elif key in ToolConfig.model_fields:
            config_dict["tools"][key] = value
        else:
            raise ConfigurationError(f"Unknown configuration key: {key}")
