"""
Unit tests for pipeline configuration loading.
"""

import pytest
from pydantic import ValidationError

from grocery_pipeline.core.config import PipelineConfig, load_config

ENV_VARS = ["DB_HOST", "DB_PORT", "DB_NAME", "DB_USER", "DB_PASSWORD", "LOG_LEVEL", "METRICS_PORT"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = PipelineConfig()
    assert config.dates.on_malformed == "quarantine"
    assert config.dedup.normalize_dates_first is True
    assert config.warehouse.enabled is False
    assert config.reports.top_products_limit == 10


def test_missing_default_file_falls_back_to_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = load_config()
    assert config == PipelineConfig()


def test_explicit_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_loads_yaml(tmp_path):
    path = tmp_path / "pipeline.yaml"
    path.write_text(
        "dates:\n"
        "  on_malformed: fail\n"
        "dedup:\n"
        "  normalize_dates_first: false\n"
        "reports:\n"
        "  lifetime_value_limit: 5\n"
    )

    config = load_config(path)

    assert config.dates.on_malformed == "fail"
    assert config.dedup.normalize_dates_first is False
    assert config.reports.lifetime_value_limit == 5
    assert config.reports.top_products_limit == 10


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "pipeline.yaml"
    path.write_text("")
    assert load_config(path) == PipelineConfig()


def test_non_mapping_yaml_rejected(tmp_path):
    path = tmp_path / "pipeline.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
        load_config(path)


def test_invalid_malformed_date_policy_rejected(tmp_path):
    path = tmp_path / "pipeline.yaml"
    path.write_text("dates:\n  on_malformed: ignore\n")
    with pytest.raises(ValidationError):
        load_config(path)


def test_environment_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "pipeline.yaml"
    path.write_text("warehouse:\n  host: db.internal\n  database: sales\n")
    monkeypatch.setenv("DB_HOST", "localhost")
    monkeypatch.setenv("DB_PORT", "6543")
    monkeypatch.setenv("DB_PASSWORD", "secret")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    config = load_config(path)

    assert config.warehouse.host == "localhost"
    assert config.warehouse.port == 6543
    assert config.warehouse.database == "sales"
    assert config.warehouse.password == "secret"
    assert config.log_level == "DEBUG"


def test_repository_config_is_valid():
    from pathlib import Path

    path = Path(__file__).parents[2] / "config" / "pipeline.yaml"
    config = load_config(path)
    assert config.dates.on_malformed == "quarantine"
    assert config.spark.shuffle_partitions == 8
