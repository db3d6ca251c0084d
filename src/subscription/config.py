"""Configuration management for log group auto-subscription.

This module provides a centralized configuration loader that:
1. Reads optional YAML configuration files (config/{environment}.yml)
2. Applies environment variable overrides (the Lambda functions are
   configured purely through environment variables)
3. Produces an immutable, validated configuration object

The configuration is built once per process and passed explicitly into the
selector, subscriber, reconciler and new log group handler.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from subscription.schemas import TagRequirement, parse_tag_requirements

DEFAULT_CONFIG_DIR = Path(__file__).parent.parent.parent / "config"
DEFAULT_CONFIRM_PHRASE = "I_ACCEPT_CHANGES"


class AWSConfig(BaseModel):
    """AWS client configuration."""
    model_config = ConfigDict(frozen=True)

    region: Optional[str] = None
    profile: Optional[str] = None
    max_attempts: int = Field(default=10, ge=1)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    structured: bool = False


class SubscribeConfig(BaseModel):
    """Immutable selection and destination parameters."""
    model_config = ConfigDict(frozen=True)

    environment: str = "dev"
    destination_arn: str = Field(..., min_length=1)
    prefix: Optional[str] = None
    exclude_prefix: Optional[str] = None
    tags: Tuple[TagRequirement, ...] = ()
    filter_name: str = Field(default="ship-logs", min_length=1)
    filter_pattern: str = ""
    role_arn: Optional[str] = None
    metrics_namespace: Optional[str] = None
    apply_confirm_phrase: str = Field(default=DEFAULT_CONFIRM_PHRASE, min_length=1)
    aws: AWSConfig = Field(default_factory=AWSConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("prefix", "exclude_prefix", "role_arn", "metrics_namespace", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treat empty strings (unset CloudFormation parameters) as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, v: Any) -> Any:
        """Accept the comma-separated form used in environment variables."""
        if v is None:
            return ()
        if isinstance(v, str):
            return parse_tag_requirements(v)
        if isinstance(v, (list, tuple)):
            # YAML may list "name=value" strings or {name, value} mappings
            parsed = []
            for item in v:
                if isinstance(item, str):
                    parsed.extend(parse_tag_requirements(item))
                else:
                    parsed.append(item)
            return tuple(parsed)
        return v

    @property
    def destination_is_lambda(self) -> bool:
        return ":lambda:" in self.destination_arn


def load_config(environment: Optional[str] = None, config_dir: Optional[Path] = None) -> SubscribeConfig:
    """Load configuration from YAML files and environment variables.

    Args:
        environment: Environment name (dev/prod). If None, uses ENVIRONMENT env var.
        config_dir: Directory holding {environment}.yml. Defaults to ./config
            at the repository root.

    Returns:
        Loaded configuration object.

    Raises:
        pydantic.ValidationError: If the configuration is invalid, for example
            when no destination ARN is configured.
    """
    env = environment or os.getenv("ENVIRONMENT", "dev")
    config_file = Path(config_dir or DEFAULT_CONFIG_DIR) / f"{env}.yml"

    config_data: Dict[str, Any] = {}
    if config_file.exists():
        with open(config_file, "r") as f:
            config_data = yaml.safe_load(f) or {}
    config_data.setdefault("environment", env)

    config_data = _apply_env_overrides(config_data)

    return SubscribeConfig(**config_data)


def _apply_env_overrides(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides to configuration data."""
    simple = {
        "DESTINATION_ARN": "destination_arn",
        "PREFIX": "prefix",
        "EXCLUDE_PREFIX": "exclude_prefix",
        "TAGS": "tags",
        "FILTER_NAME": "filter_name",
        "ROLE_ARN": "role_arn",
        "METRICS_NAMESPACE": "metrics_namespace",
    }
    for env_name, key in simple.items():
        value = os.getenv(env_name)
        if value:
            config_data[key] = value

    # An empty pattern is meaningful (match everything), so presence is enough
    if "FILTER_PATTERN" in os.environ:
        config_data["filter_pattern"] = os.environ["FILTER_PATTERN"]

    # AWS overrides
    if os.getenv("AWS_REGION"):
        config_data.setdefault("aws", {})["region"] = os.getenv("AWS_REGION")
    if os.getenv("AWS_PROFILE"):
        config_data.setdefault("aws", {})["profile"] = os.getenv("AWS_PROFILE")
    max_attempts = os.getenv("AWS_MAX_ATTEMPTS")
    if max_attempts:
        config_data.setdefault("aws", {})["max_attempts"] = max_attempts

    # Logging overrides
    if os.getenv("LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = os.getenv("LOG_LEVEL", "").upper()
    structured = os.getenv("STRUCTURED_LOGGING")
    if structured:
        config_data.setdefault("logging", {})["structured"] = (
            structured.lower() in ("1", "true", "yes")
        )

    return config_data
