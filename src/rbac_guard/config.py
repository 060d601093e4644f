"""Evaluator configuration loader with Pydantic v2 validation.

Loads an ``rbac.yaml`` file into a typed :class:`EvaluatorConfig`.  Unknown
keys are allowed to support future schema additions without breakage.

Example
-------
>>> config = ConfigLoader().load_string("cache_enabled: false")
>>> config.cache_enabled
False
"""
from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator


class EvaluatorConfig(BaseModel):
    """Top-level evaluator configuration schema.

    All fields are optional and fall back to defaults.
    """

    model_config = {"extra": "allow"}

    cache_enabled: bool = Field(default=True)
    key_separator: str = Field(default="$")
    role_files: list[Path] = Field(default_factory=list)
    default_role: str | None = Field(default=None)

    @field_validator("key_separator")
    @classmethod
    def validate_key_separator(cls, value: str) -> str:
        if not value:
            raise ValueError("key_separator must not be empty")
        return value


class ConfigLoader:
    """Loads and validates evaluator YAML configuration."""

    def load(self, config_path: Path) -> EvaluatorConfig:
        """Load and validate a YAML configuration file.

        Raises
        ------
        FileNotFoundError:
            When the config file does not exist.
        ValueError:
            When the YAML cannot be parsed or fails Pydantic validation.
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Evaluator config not found: {config_path}")

        with config_path.open("r", encoding="utf-8") as fh:
            return self.load_string(fh.read())

    def load_string(self, yaml_content: str) -> EvaluatorConfig:
        """Load and validate a YAML string directly.

        Raises
        ------
        ValueError:
            When the YAML cannot be parsed or fails Pydantic validation.
        """
        try:
            raw: dict[str, object] = yaml.safe_load(yaml_content) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Failed to parse evaluator config YAML: {exc}") from exc
        return EvaluatorConfig.model_validate(raw)

    def defaults(self) -> EvaluatorConfig:
        """Return a configuration with all defaults applied."""
        return EvaluatorConfig()
