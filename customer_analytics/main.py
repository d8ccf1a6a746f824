"""
Coordinates the pipeline:
 1. Load raw customers (CSV export or source API)
 2. Build stg_customers and run its data tests
 3. Build dim_customers from the materialized staging rows and run its data tests
 4. Materialize both models to JSON
 5. Log a summary
"""

import sys
import logging
from typing import Dict, List, Optional

from customer_analytics.api_client import CustomerAPIClient, APIClientError
from customer_analytics.config import ConfigError, PipelineConfig
from customer_analytics.exporter import ModelExporter, ExportError
from customer_analytics.logging_utils import LOG_FORMAT
from customer_analytics.marts import CustomerMartBuilder
from customer_analytics.sources import SourceError, read_customers_csv
from customer_analytics.staging import CustomerStager
from customer_analytics.validation import DataTestError, ModelValidator


def _pipeline_logger(level: str) -> logging.Logger:
    logger = logging.getLogger("Pipeline")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, level, logging.INFO))
    return logger


def load_raw_customers(config: PipelineConfig, logger: logging.Logger) -> List[Dict]:
    if config.source_path:
        return read_customers_csv(config.source_path, logger=logger)
    client = CustomerAPIClient(
        base_url=config.api_url, api_key=config.api_key, logger=logger
    )
    return client.fetch_raw_customers(config.source_name, config.table_name)


def run_pipeline(
    config: PipelineConfig, logger: Optional[logging.Logger] = None
) -> Dict[str, List[Dict]]:
    """Run both models in dependency order and return their rows by model name."""
    logger = logger or _pipeline_logger(config.log_level)

    try:
        # 1. Source
        raw_customers = load_raw_customers(config, logger)
        logger.info("Loaded %d raw customers", len(raw_customers))

        validator = ModelValidator(fail_fast=config.fail_fast, logger=logger)
        exporter = ModelExporter(logger=logger)

        # 2. Staging
        stager = CustomerStager(logger=logger)
        stg_customers = stager.stage_customers(raw_customers)
        validator.validate(stager.MODEL_NAME, stg_customers).raise_for_failures()
        exporter.export_model(stager.MODEL_NAME, stg_customers, config.output_dir)

        # 3. Mart
        builder = CustomerMartBuilder(rank_method=config.rank_method, logger=logger)
        dim_customers = builder.build_dim_customers(stg_customers)
        validator.validate(
            builder.MODEL_NAME, dim_customers, parent_rows=stg_customers
        ).raise_for_failures()
        exporter.export_model(builder.MODEL_NAME, dim_customers, config.output_dir)

        # 4. Summary
        logger.info(
            "Summary: %s", exporter.generate_summary(builder.MODEL_NAME, dim_customers)
        )

    except (SourceError, APIClientError) as e:
        logger.error("Loading raw customers failed: %s", e)
        raise
    except DataTestError as e:
        logger.error("Data tests failed: %s", e)
        raise
    except ExportError as e:
        logger.error("Export failed: %s", e)
        raise
    except Exception as e:
        logger.exception("Unexpected pipeline error: %s", e)
        raise

    return {
        stager.MODEL_NAME: stg_customers,
        builder.MODEL_NAME: dim_customers,
    }


if __name__ == "__main__":
    try:
        run_pipeline(PipelineConfig.from_env())
    except ConfigError as e:
        print(e, file=sys.stderr)
        sys.exit(2)
    except Exception:
        # already logged by run_pipeline
        sys.exit(1)
