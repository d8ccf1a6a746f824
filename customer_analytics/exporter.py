"""
- Materialize a model's rows to {output_dir}/{model}.json
- Produce metadata: model name, row count, materialization timestamp (UTC ISO),
  label summary (balance_status, and customer_tier where present)
- Provide the summary as a dict for logging and tests
"""

from collections import Counter
from decimal import Decimal
from typing import Dict, List, Any, Optional
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from customer_analytics.logging_utils import default_logger

SUMMARY_COLUMNS = ("balance_status", "customer_tier")


class ExportError(Exception):
    # Raised when a model cannot be materialized.
    pass


def _json_default(value: Any) -> Any:
    # Decimals as strings so every digit survives a reload
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class ModelExporter:
    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or default_logger(self.__class__.__name__)

    def generate_summary(self, model: str, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        if rows is None:
            raise ExportError(f"rows for {model} are None")

        summary: Dict[str, Any] = {
            "model": model,
            "row_count": len(rows),
            "materialized_at": datetime.now(timezone.utc).isoformat(),
        }
        for column in SUMMARY_COLUMNS:
            if rows and column in rows[0]:
                summary[f"{column}_counts"] = dict(
                    Counter(row.get(column) for row in rows)
                )
        return summary

    def export_model(
        self, model: str, rows: List[Dict[str, Any]], output_dir: str
    ) -> Path:
        """
        Write rows plus metadata to {output_dir}/{model}.json, replacing any
        previous materialization.
        """
        metadata = self.generate_summary(model, rows)
        payload = {"metadata": metadata, "rows": rows}

        out_path = Path(output_dir) / f"{model}.json"
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
            with out_path.open("w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2, ensure_ascii=False, default=_json_default)
        except OSError as exc:
            self.logger.exception("Failed to materialize %s to %s", model, out_path)
            raise ExportError(f"Failed to write {out_path}: {exc}") from exc

        self.logger.info("Materialized %d rows of %s to %s", len(rows), model, out_path)
        return out_path
