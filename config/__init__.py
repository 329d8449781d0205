"""Configuration module for the computer-use agent."""
from config.models import (
    AgentConfig,
    ComputerUseConfig,
    ToolConfig,
    load_config,
)

__all__ = [
    "AgentConfig",
    "ComputerUseConfig",
    "ToolConfig",
    "load_config",
]
