"""
Post-transform data tests for the customer models.

Each check takes the materialized rows of a model and returns a TestResult.
ModelValidator runs the checks registered for a model in MODEL_TESTS and
either collects every result (default) or stops at the first failure
(fail_fast).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
import logging

from customer_analytics.logging_utils import default_logger
from customer_analytics.models import BALANCE_STATUSES, CUSTOMER_TIERS

SAMPLE_LIMIT = 5


class DataTestError(Exception):
    """Raised when one or more data tests fail."""

    def __init__(self, message: str, results: Optional[List["TestResult"]] = None):
        super().__init__(message)
        self.results = results or []

    def __str__(self) -> str:
        base = f"DataTestError: {self.args[0]}"
        for r in self.results:
            base += f"\n  - {r.describe()}"
        return base


@dataclass
class TestResult:
    name: str
    model: str
    column: Optional[str]
    failures: int
    sample: List[Any] = field(default_factory=list)

    __test__ = False  # not a pytest class

    @property
    def passed(self) -> bool:
        return self.failures == 0

    def describe(self) -> str:
        target = f"{self.model}.{self.column}" if self.column else self.model
        if self.passed:
            return f"PASS {self.name} on {target}"
        return f"FAIL {self.name} on {target}: {self.failures} failing row(s), sample={self.sample}"


@dataclass
class ValidationReport:
    model: str
    results: List[TestResult] = field(default_factory=list)

    @property
    def failed(self) -> List[TestResult]:
        return [r for r in self.results if not r.passed]

    @property
    def passed(self) -> bool:
        return not self.failed

    def raise_for_failures(self) -> None:
        if self.failed:
            raise DataTestError(
                f"{len(self.failed)} of {len(self.results)} data test(s) failed on {self.model}",
                results=self.failed,
            )


def check_not_null(rows: List[Dict], column: str, model: str = "") -> TestResult:
    bad = [i for i, row in enumerate(rows) if row.get(column) is None]
    return TestResult("not_null", model, column, len(bad), bad[:SAMPLE_LIMIT])


def check_unique(rows: List[Dict], column: str, model: str = "") -> TestResult:
    """
    Count rows whose non-null value appears more than once.
    Nulls are ignored, matching SQL uniqueness tests.
    """
    seen: Dict[Any, int] = {}
    for row in rows:
        value = row.get(column)
        if value is not None:
            seen[value] = seen.get(value, 0) + 1
    dupes = {v: n for v, n in seen.items() if n > 1}
    return TestResult(
        "unique", model, column, sum(dupes.values()), list(dupes)[:SAMPLE_LIMIT]
    )


def check_accepted_values(
    rows: List[Dict], column: str, values: Iterable[Any], model: str = ""
) -> TestResult:
    accepted = set(values)
    bad = [
        row.get(column)
        for row in rows
        if row.get(column) is not None and row.get(column) not in accepted
    ]
    return TestResult(
        "accepted_values", model, column, len(bad), sorted(set(map(str, bad)))[:SAMPLE_LIMIT]
    )


def check_row_count_matches(
    rows: List[Dict], parent_rows: List[Dict], model: str = ""
) -> TestResult:
    diff = abs(len(rows) - len(parent_rows))
    sample = [] if diff == 0 else [f"{len(rows)} rows vs {len(parent_rows)} upstream"]
    return TestResult("row_count_matches_parent", model, None, diff, sample)


# Declarative test set per model: (check name, column, extra argument)
MODEL_TESTS: Dict[str, List[tuple]] = {
    "stg_customers": [
        ("unique", "customer_id", None),
        ("not_null", "customer_id", None),
        ("not_null", "customer_name", None),
        ("accepted_values", "balance_status", BALANCE_STATUSES),
    ],
    "dim_customers": [
        ("unique", "customer_id", None),
        ("not_null", "customer_id", None),
        ("accepted_values", "balance_status", BALANCE_STATUSES),
        ("accepted_values", "customer_tier", CUSTOMER_TIERS),
        ("row_count_matches_parent", None, None),
    ],
}


class ModelValidator:
    def __init__(
        self,
        fail_fast: bool = False,
        tests: Optional[Dict[str, List[tuple]]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.fail_fast = fail_fast
        self.tests = tests if tests is not None else MODEL_TESTS
        self.logger = logger or default_logger(self.__class__.__name__)

    def validate(
        self,
        model: str,
        rows: List[Dict],
        parent_rows: Optional[List[Dict]] = None,
    ) -> ValidationReport:
        """
        Run every test registered for `model`.

        Collect-all mode returns a report with all results; fail-fast mode
        raises DataTestError on the first failing test.
        """
        if model not in self.tests:
            raise KeyError(f"No data tests registered for model {model!r}")

        report = ValidationReport(model=model)
        for name, column, arg in self.tests[model]:
            result = self._run_test(model, name, column, arg, rows, parent_rows)
            if result is None:
                continue
            report.results.append(result)

            if result.passed:
                self.logger.debug(result.describe())
                continue
            self.logger.warning(result.describe())
            if self.fail_fast:
                raise DataTestError(
                    f"data test {name} failed on {model}", results=[result]
                )

        self.logger.info(
            "Ran %d data test(s) on %s: %d failed",
            len(report.results),
            model,
            len(report.failed),
        )
        return report

    def _run_test(self, model, name, column, arg, rows, parent_rows):
        if name == "not_null":
            return check_not_null(rows, column, model)
        if name == "unique":
            return check_unique(rows, column, model)
        if name == "accepted_values":
            return check_accepted_values(rows, column, arg, model)
        if name == "row_count_matches_parent":
            if parent_rows is None:
                self.logger.warning(
                    "Skipping %s on %s: no upstream rows given", name, model
                )
                return None
            return check_row_count_matches(rows, parent_rows, model)
        raise ValueError(f"Unknown data test {name!r}")
