from typing import Dict, List, Optional
import logging
import time

import requests

from customer_analytics.logging_utils import default_logger
from customer_analytics.models import RawCustomer


class APIClientError(Exception):
    """Custom exception for source API errors."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        retries: int = 0,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.retries = retries

    def __str__(self) -> str:
        base = f"APIClientError: {self.args[0]}"
        if self.url:
            base += f" | URL: {self.url}"
        if self.status_code is not None:
            base += f" | Status: {self.status_code}"
        if self.retries:
            base += f" | Retries: {self.retries}"
        return base


class CustomerAPIClient:
    """
    Reads raw source tables from a paginated HTTP API.

    GET {base_url}/sources/{source}/{table}?page=N is expected to return
    {"data": [...rows...], "total_pages": n}.
    """

    DEFAULT_MAX_RETRIES = 3
    DEFAULT_BACKOFF = (1, 2, 4)  # seconds
    TIMEOUT = 10

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff: Optional[tuple] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.session = session or requests.Session()
        self.max_retries = max_retries
        self.backoff = backoff or self.DEFAULT_BACKOFF
        self.logger = logger or default_logger(self.__class__.__name__)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _backoff_seconds(self, attempt: int) -> int:
        return self.backoff[min(attempt - 1, len(self.backoff) - 1)]

    def _retry_after_seconds(self, resp: requests.Response, attempt: int) -> int:
        retry_after = resp.headers.get("Retry-After")
        if retry_after:
            try:
                return int(retry_after)
            except ValueError:
                pass
        return self._backoff_seconds(attempt)

    def _get_json(self, url: str, params: Dict) -> Dict:
        """GET with retry on network errors, 429 and 5xx; other 4xx fail at once."""
        last_error: Optional[APIClientError] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                resp = self.session.get(
                    url, params=params, headers=self._headers(), timeout=self.TIMEOUT
                )
            except requests.RequestException as exc:
                self.logger.warning(
                    "Network error on attempt %d for %s: %s", attempt, url, exc
                )
                last_error = APIClientError(
                    f"Network error: {exc}", url=url, retries=attempt
                )
                wait = self._backoff_seconds(attempt)
            else:
                status = resp.status_code
                if status == 200:
                    try:
                        return resp.json()
                    except ValueError:
                        raise APIClientError(
                            f"Invalid JSON from {url}",
                            url=url,
                            status_code=status,
                            retries=attempt,
                        )

                if 400 <= status < 500 and status != 429:
                    raise APIClientError(
                        f"Client error {status} for {url}: {resp.text}",
                        url=url,
                        status_code=status,
                        retries=attempt,
                    )

                if status == 429:
                    wait = self._retry_after_seconds(resp, attempt)
                    message = "429 Too Many Requests"
                elif status >= 500:
                    wait = self._backoff_seconds(attempt)
                    message = f"{status} server error"
                else:
                    wait = self._backoff_seconds(attempt)
                    message = f"Unexpected status {status}"
                self.logger.warning("%s on attempt %d for %s", message, attempt, url)
                last_error = APIClientError(
                    message, url=url, status_code=status, retries=attempt
                )

            if attempt < self.max_retries:
                self.logger.debug("Sleeping %ds before next attempt", wait)
                time.sleep(wait)

        raise APIClientError(
            f"Gave up after {self.max_retries} attempts: {last_error.args[0] if last_error else 'no response'}",
            url=url,
            status_code=last_error.status_code if last_error else None,
            retries=self.max_retries,
        )

    def fetch_source_table(self, source: str, table: str) -> List[Dict]:
        """Fetch every page of a source table and return the raw rows."""
        url = f"{self.base_url}/sources/{source}/{table}"

        first = self._get_json(url, {"page": 1})
        rows = list(first.get("data") or [])
        total_pages = int(first.get("total_pages") or 1)
        self.logger.info(
            "%s.%s: total_pages=%s, first_page_rows=%d",
            source,
            table,
            total_pages,
            len(rows),
        )

        for page in range(2, total_pages + 1):
            page_rows = list(self._get_json(url, {"page": page}).get("data") or [])
            self.logger.info("Fetched page %d with %d rows", page, len(page_rows))
            rows.extend(page_rows)

        return rows

    def fetch_raw_customers(
        self, source: str = "raw_data", table: str = "customer"
    ) -> List[Dict]:
        """Fetch the raw customer table, coercing each row through RawCustomer."""
        rows = self.fetch_source_table(source, table)
        customers = [RawCustomer.model_validate(row).model_dump() for row in rows]
        self.logger.info("Returning %d raw customers", len(customers))
        return customers
