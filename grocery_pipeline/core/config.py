"""
Pipeline configuration.

Loads settings from a YAML file and applies environment overrides for the
values that differ between machines (database credentials, log level,
metrics port).

Expected YAML format:
```yaml
spark:
  app_name: grocery-cleaning
  master: "local[*]"
dates:
  on_malformed: quarantine   # or: fail
dedup:
  normalize_dates_first: true
warehouse:
  enabled: false
  host: localhost
  port: 5432
  database: datawarehouse
  user: pipeline
reports:
  top_products_limit: 10
```
"""

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = "config/pipeline.yaml"


class SparkSettings(BaseModel):
    app_name: str = "grocery-cleaning"
    master: str = "local[*]"
    shuffle_partitions: int = Field(8, gt=0)


class DateSettings(BaseModel):
    on_malformed: Literal["quarantine", "fail"] = "quarantine"


class DedupSettings(BaseModel):
    # False restores the legacy order: dedup on raw date text, then parse
    normalize_dates_first: bool = True


class WarehouseSettings(BaseModel):
    enabled: bool = False
    host: str = "localhost"
    port: int = 5432
    database: str = "datawarehouse"
    user: str = "pipeline"
    password: str | None = None
    persist_raw: bool = True
    persist_staging: bool = True


class ReportSettings(BaseModel):
    top_products_limit: int = Field(10, gt=0)
    lifetime_value_limit: int = Field(50, gt=0)
    basket_size_limit: int = Field(10, gt=0)
    loyalty_limit: int = Field(10, gt=0)


class PipelineConfig(BaseModel):
    """Complete settings for one pipeline run."""

    spark: SparkSettings = Field(default_factory=SparkSettings)
    dates: DateSettings = Field(default_factory=DateSettings)
    dedup: DedupSettings = Field(default_factory=DedupSettings)
    warehouse: WarehouseSettings = Field(default_factory=WarehouseSettings)
    reports: ReportSettings = Field(default_factory=ReportSettings)
    log_level: str = "INFO"
    metrics_port: int | None = None


def _env_overrides() -> dict[str, Any]:
    warehouse: dict[str, Any] = {}
    if os.getenv("DB_HOST"):
        warehouse["host"] = os.environ["DB_HOST"]
    if os.getenv("DB_PORT"):
        warehouse["port"] = int(os.environ["DB_PORT"])
    if os.getenv("DB_NAME"):
        warehouse["database"] = os.environ["DB_NAME"]
    if os.getenv("DB_USER"):
        warehouse["user"] = os.environ["DB_USER"]
    if os.getenv("DB_PASSWORD"):
        warehouse["password"] = os.environ["DB_PASSWORD"]

    overrides: dict[str, Any] = {}
    if warehouse:
        overrides["warehouse"] = warehouse
    if os.getenv("LOG_LEVEL"):
        overrides["log_level"] = os.environ["LOG_LEVEL"]
    if os.getenv("METRICS_PORT"):
        overrides["metrics_port"] = int(os.environ["METRICS_PORT"])
    return overrides


def load_config(config_path: str | Path | None = None) -> PipelineConfig:
    """
    Load pipeline configuration.

    Args:
        config_path: Path to the YAML file. A missing file falls back to
            defaults; an explicitly given path must exist.

    Returns:
        PipelineConfig with environment overrides applied

    Raises:
        FileNotFoundError: If an explicit config_path does not exist
        ValueError: If the YAML top level is not a mapping
    """
    path = Path(config_path or DEFAULT_CONFIG_PATH)

    settings: dict[str, Any] = {}
    if path.exists():
        with open(path) as f:
            loaded = yaml.safe_load(f)
        if loaded is not None and not isinstance(loaded, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")
        settings = loaded or {}
    elif config_path is not None:
        raise FileNotFoundError(f"Pipeline configuration file not found: {config_path}")

    for section, values in _env_overrides().items():
        if isinstance(values, dict):
            settings[section] = {**settings.get(section, {}), **values}
        else:
            settings[section] = values

    return PipelineConfig.model_validate(settings)
