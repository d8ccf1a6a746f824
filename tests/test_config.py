import pytest
from pydantic import ValidationError
from customer_analytics.config import ConfigError, PipelineConfig

ENV_VARS = [
    "CUSTOMER_SOURCE_PATH",
    "CUSTOMER_API_URL",
    "CUSTOMER_API_KEY",
    "CUSTOMER_SOURCE_NAME",
    "CUSTOMER_TABLE_NAME",
    "OUTPUT_DIR",
    "WEALTH_RANK_METHOD",
    "VALIDATION_FAIL_FAST",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    # empty .env so nothing leaks in from the working tree
    dotenv = tmp_path / ".env"
    dotenv.write_text("", encoding="utf-8")
    return str(dotenv)


def test_from_env_defaults(clean_env, monkeypatch):
    monkeypatch.setenv("CUSTOMER_SOURCE_PATH", "data/customer.csv")

    config = PipelineConfig.from_env(clean_env)

    assert config.source_path == "data/customer.csv"
    assert config.api_url is None
    assert config.source_name == "raw_data"
    assert config.table_name == "customer"
    assert config.output_dir == "target"
    assert config.rank_method == "rank"
    assert config.fail_fast is False
    assert config.log_level == "INFO"


def test_from_env_overrides(clean_env, monkeypatch):
    monkeypatch.setenv("CUSTOMER_API_URL", "https://warehouse.example.com/api")
    monkeypatch.setenv("WEALTH_RANK_METHOD", "Dense")
    monkeypatch.setenv("VALIDATION_FAIL_FAST", "yes")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = PipelineConfig.from_env(clean_env)

    assert config.api_url == "https://warehouse.example.com/api"
    assert config.rank_method == "dense"
    assert config.fail_fast is True
    assert config.log_level == "DEBUG"


def test_from_dotenv_file(clean_env):
    with open(clean_env, "w", encoding="utf-8") as fh:
        fh.write("CUSTOMER_SOURCE_PATH=from_dotenv.csv\n")

    config = PipelineConfig.from_env(clean_env)

    assert config.source_path == "from_dotenv.csv"


def test_missing_source_is_rejected(clean_env):
    with pytest.raises(ConfigError):
        PipelineConfig.from_env(clean_env)


def test_bad_rank_method_is_rejected(clean_env, monkeypatch):
    monkeypatch.setenv("CUSTOMER_SOURCE_PATH", "x.csv")
    monkeypatch.setenv("WEALTH_RANK_METHOD", "row_number")

    with pytest.raises(ConfigError):
        PipelineConfig.from_env(clean_env)


def test_direct_construction_requires_source():
    with pytest.raises(ValidationError):
        PipelineConfig()
