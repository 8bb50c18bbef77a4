"""
Configuration system for sockscope with strict validation.
"""

import os
from pathlib import Path
from typing import Any, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator


class CorrelationConfig(BaseModel):
    """Cross-thread expansion parameters."""
    metric: Literal["jaccard", "uniform"] = Field(default="jaccard", description="Distance metric over suspected IDs")
    pace_seconds: float = Field(default=0.2, description="Delay between successive external lookups")
    anchor_index: int = Field(default=0, description="Position of the seed ID whose history is expanded")
    uniform_value: float = Field(default=1.0, description="Off-diagonal value of the uniform metric")

    @field_validator("pace_seconds")
    @classmethod
    def validate_pace(cls, v):
        if v < 0:
            raise ValueError("pace_seconds must be non-negative")
        return v

    @field_validator("anchor_index")
    @classmethod
    def validate_anchor(cls, v):
        if v < 0:
            raise ValueError("anchor_index must be non-negative")
        return v


class ArchiveConfig(BaseModel):
    """Offline lookup sources."""
    dat_dir: Optional[Path] = Field(default=None, description="Directory of <key>.dat thread files")
    posts_index: Optional[Path] = Field(default=None, description="JSON/YAML map of ID -> thread keys")


class SockscopeConfig(BaseModel):
    """Complete sockscope configuration."""
    correlation: CorrelationConfig = Field(default_factory=CorrelationConfig)
    archive: ArchiveConfig = Field(default_factory=ArchiveConfig)


def load_config(config_path: Union[str, Path]) -> SockscopeConfig:
    """Load and validate configuration from YAML file."""
    config_path = Path(config_path).expanduser()

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return SockscopeConfig(**_expand_env_vars(data))


def create_default_config(output_path: Union[str, Path]) -> SockscopeConfig:
    """Create a default configuration file."""
    config = SockscopeConfig()
    output_path = Path(output_path)

    with open(output_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config.model_dump(mode="json"), f, default_flow_style=False, indent=2, sort_keys=False)

    return config


def _expand_env_vars(node: Any) -> Any:
    """Recursively expand environment variables in config values."""

    if isinstance(node, dict):
        return {key: _expand_env_vars(value) for key, value in node.items()}
    if isinstance(node, list):
        return [_expand_env_vars(value) for value in node]
    if isinstance(node, str):
        return os.path.expandvars(node)
    return node
