import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, List, Optional
import logging

from customer_analytics.logging_utils import default_logger
from customer_analytics.models import RawCustomer, StagedCustomer


class CustomerStager:
    """Builds the stg_customers model from raw customer rows."""

    MODEL_NAME = "stg_customers"
    NON_DIGITS = re.compile(r"[^0-9]")
    CENTS = Decimal("0.01")

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or default_logger(self.__class__.__name__)

    def stage_customers(self, raw_customers: List[Dict]) -> List[Dict]:
        """
        Rename and normalize raw rows. One staged row per raw row, same order;
        nothing is filtered or deduplicated here.
        """
        staged = [self._clean_customer(raw) for raw in raw_customers]
        self.logger.info("Staged %d customers into %s", len(staged), self.MODEL_NAME)
        return staged

    def _clean_customer(self, raw) -> Dict:
        if not isinstance(raw, RawCustomer):
            raw = RawCustomer.model_validate(raw)

        balance = self._round_balance(raw.c_acctbal)

        staged = StagedCustomer(
            customer_id=raw.c_custkey,
            customer_name=raw.c_name.upper() if raw.c_name is not None else None,
            customer_address=raw.c_address,
            nation_id=raw.c_nationkey,
            cleaned_phone=self._clean_phone(raw.c_phone),
            account_balance=balance,
            market_segment=raw.c_mktsegment,
            comments=raw.c_comment,
            balance_status=self._balance_status(balance),
        )
        return staged.model_dump()

    def _clean_phone(self, phone: Optional[str]) -> Optional[str]:
        if phone is None:
            return None
        return self.NON_DIGITS.sub("", phone)

    def _round_balance(self, balance: Optional[Decimal]) -> Optional[Decimal]:
        # Half away from zero, like SQL ROUND on a decimal column.
        if balance is None:
            return None
        try:
            rounded = balance.quantize(self.CENTS, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            # too many digits to hold at 2 places
            self.logger.warning("Balance %s cannot be rounded to cents, using null", balance)
            return None
        if rounded.is_zero():
            # -0.004 rounds to -0.00
            return abs(rounded)
        return rounded

    def _balance_status(self, balance: Optional[Decimal]) -> str:
        # A null balance fails both comparisons and lands in the last branch.
        if balance is not None and balance > 0:
            return "Positive Balance"
        if balance is not None and balance == 0:
            return "Zero Balance"
        return "Negative Balance"
