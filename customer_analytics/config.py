"""
Pipeline settings, read from the environment (and a .env file if present).

    CUSTOMER_SOURCE_PATH   CSV export of the raw customer table
    CUSTOMER_API_URL       base URL of the source API (used when no path is set)
    CUSTOMER_API_KEY       bearer token for the source API
    CUSTOMER_SOURCE_NAME   source name on the API (default: raw_data)
    CUSTOMER_TABLE_NAME    table name on the API (default: customer)
    OUTPUT_DIR             where model JSON files are written (default: target)
    WEALTH_RANK_METHOD     rank | dense (default: rank)
    VALIDATION_FAIL_FAST   stop at the first failing data test (default: false)
    LOG_LEVEL              default: INFO
"""

import os
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator, model_validator

TRUTHY = {"1", "true", "yes", "on"}


class ConfigError(Exception):
    pass


class PipelineConfig(BaseModel):
    source_path: Optional[str] = None
    api_url: Optional[str] = None
    api_key: Optional[str] = None
    source_name: str = "raw_data"
    table_name: str = "customer"
    output_dir: str = "target"
    rank_method: Literal["rank", "dense"] = "rank"
    fail_fast: bool = False
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def require_source(self):
        if not self.source_path and not self.api_url:
            raise ValueError("either source_path or api_url must be set")
        return self

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "PipelineConfig":
        load_dotenv(dotenv_path)
        env = os.environ
        try:
            return cls(
                source_path=env.get("CUSTOMER_SOURCE_PATH") or None,
                api_url=env.get("CUSTOMER_API_URL") or None,
                api_key=env.get("CUSTOMER_API_KEY") or None,
                source_name=env.get("CUSTOMER_SOURCE_NAME", "raw_data"),
                table_name=env.get("CUSTOMER_TABLE_NAME", "customer"),
                output_dir=env.get("OUTPUT_DIR", "target"),
                rank_method=env.get("WEALTH_RANK_METHOD", "rank").strip().lower(),
                fail_fast=env.get("VALIDATION_FAIL_FAST", "false").strip().lower() in TRUTHY,
                log_level=env.get("LOG_LEVEL", "INFO"),
            )
        except ValueError as exc:
            raise ConfigError(f"Invalid pipeline configuration: {exc}") from exc
