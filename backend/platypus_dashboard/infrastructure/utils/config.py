"""Configuration management for the dashboard backend.

Rules:
- YAML provides defaults for non-secret config.
- The MongoDB connection string comes from .env / environment variables and overrides YAML.
- We do NOT inject YAML into os.environ.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CollectionNames(BaseModel):
    open_trades: str = Field(default="open_trades")
    historical_trades: str = Field(default="historical_trades")
    trade_datapoints: str = Field(default="trade_datapoints")
    long_positions: str = Field(default="long_positions")
    configuration: str = Field(default="configuration")
    long_term_performance: str = Field(default="long_term_performance")


class MongoDBConfig(BaseModel):
    """Document store connection. All reads go through one cached client."""

    uri: str = Field(default="mongodb://localhost:27017", description="MongoDB connection string")
    database: str = Field(default="platypus_dashboard_db")
    timeout_ms: int = Field(default=5000, ge=100, le=60000, description="Server selection / connect / socket timeout")
    collections: CollectionNames = Field(default_factory=CollectionNames)

    @field_validator("uri")
    @classmethod
    def validate_uri(cls, v: str) -> str:
        v = str(v).strip()
        if not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError("uri must start with 'mongodb://' or 'mongodb+srv://'")
        return v


class APIConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1024, le=65535)
    cors_origins: List[str] = Field(default=["http://localhost:3000", "http://localhost:5173"])


class PaginationConfig(BaseModel):
    default_page_size: int = Field(default=25, ge=1, le=1000, description="History list view page size")
    summary_page_size: int = Field(default=20, ge=1, le=1000, description="Hard cap for the main aggregate view")


class ReportingConfig(BaseModel):
    timezone: str = Field(default="America/Chicago", description="Business-day boundary for today's realized P/L")
    weight_cost_basis_by_quantity: bool = Field(
        default=False,
        description="Long book total cost basis: sum(costBasis) when false, sum(costBasis * quantity) when true",
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(str(v))
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return str(v)


class ClientConfig(BaseModel):
    base_url: str = Field(default="http://localhost:8000")
    timeout_seconds: float = Field(default=5.0, gt=0, le=120)


class DashboardConfig(BaseSettings):
    """Main configuration class for the dashboard backend."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    environment: str = Field(default="DEV")
    log_level: str = Field(default="INFO")

    mongodb: MongoDBConfig = Field(default_factory=MongoDBConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    reporting: ReportingConfig = Field(default_factory=ReportingConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if str(v).upper() not in {"DEV", "PROD"}:
            raise ValueError("Environment must be 'DEV' or 'PROD'")
        return str(v).upper()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if str(v).upper() not in valid:
            raise ValueError(f"Log level must be one of: {sorted(valid)}")
        return str(v).upper()

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "DashboardConfig":
        """Load configuration from YAML without polluting environment.

        Steps:
        1) Parse YAML -> base config dict
        2) Validate into model
        3) Apply env overrides (MONGODB_URI, etc.) on top
        """
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        try:
            base = cls.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Configuration validation error: {e}")

        return apply_env_overrides(base)


def apply_env_overrides(base: DashboardConfig) -> DashboardConfig:
    """Re-apply the environment on top of a YAML-validated config (env wins)."""
    overrides = {
        "MONGODB_URI": ("mongodb", "uri"),
        "MONGODB__URI": ("mongodb", "uri"),
        "MONGODB__DATABASE": ("mongodb", "database"),
        "DASHBOARD__BASE_URL": ("client", "base_url"),
    }
    data = base.model_dump()
    for env_name, (section, key) in overrides.items():
        value = os.getenv(env_name)
        if value:
            data[section][key] = value

    if os.getenv("ENVIRONMENT"):
        data["environment"] = os.getenv("ENVIRONMENT")

    if os.getenv("LOG_LEVEL"):
        data["log_level"] = os.getenv("LOG_LEVEL")

    try:
        return DashboardConfig.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Configuration validation error: {e}")


def load_config(config_path: Optional[Path] = None) -> DashboardConfig:
    """Load configuration from YAML + .env (env wins for the connection string)."""

    load_dotenv(dotenv_path=Path(".env"))

    if config_path is None:
        possible_paths = [Path("config/default.yaml"), Path("config/config.yaml"), Path("config.yaml")]
        for path in possible_paths:
            if path.exists():
                config_path = path
                break
        else:
            raise FileNotFoundError("No configuration file found. Create config/default.yaml or specify config path.")

    return DashboardConfig.from_yaml(config_path)


# Global config instance
_config: Optional[DashboardConfig] = None


def get_config() -> DashboardConfig:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_path: Optional[Path] = None) -> DashboardConfig:
    global _config
    _config = load_config(config_path)
    return _config
