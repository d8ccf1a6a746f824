from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from customer_analytics.logging_utils import default_logger
from customer_analytics.models import CUSTOMER_TIERS, DimCustomer


class MartError(Exception):
    # Raised when the mart builder is configured inconsistently.
    pass


class CustomerMartBuilder:
    """
    Builds the dim_customers model from staged rows.

    Windowed aggregates are computed in explicit passes: one grouping pass
    over market_segment for count/average, one sort for the global wealth
    rank. Every input row yields exactly one output row, in input order.
    """

    MODEL_NAME = "dim_customers"
    RANK_METHODS = ("rank", "dense")
    DEFAULT_TIER_THRESHOLDS: Tuple[Tuple[int, str], ...] = (
        (100, "Platinum"),
        (500, "Gold"),
        (1000, "Silver"),
    )
    FALLBACK_TIER = "Bronze"

    def __init__(
        self,
        rank_method: str = "rank",
        tier_thresholds: Optional[Sequence[Tuple[int, str]]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if rank_method not in self.RANK_METHODS:
            raise MartError(
                f"Unknown rank method {rank_method!r}, expected one of {self.RANK_METHODS}"
            )
        thresholds = tuple(tier_thresholds or self.DEFAULT_TIER_THRESHOLDS)
        limits = [limit for limit, _ in thresholds]
        if any(a >= b for a, b in zip(limits, limits[1:])):
            raise MartError(f"Tier thresholds must be strictly increasing: {limits}")
        unknown = [tier for _, tier in thresholds if tier not in CUSTOMER_TIERS]
        if unknown:
            raise MartError(f"Unknown customer tier label(s): {unknown}")

        self.rank_method = rank_method
        self.tier_thresholds = thresholds
        self.logger = logger or default_logger(self.__class__.__name__)

    def build_dim_customers(self, staged_customers: List[Dict]) -> List[Dict]:
        segment_stats = self._segment_stats(staged_customers)
        ranks = self._wealth_ranks(staged_customers)

        dim = []
        for idx, row in enumerate(staged_customers):
            count, avg = segment_stats[row.get("market_segment")]
            rank = ranks[idx]
            record = DimCustomer(
                customer_id=row.get("customer_id"),
                customer_name=row.get("customer_name"),
                customer_address=row.get("customer_address"),
                nation_id=row.get("nation_id"),
                account_balance=row.get("account_balance"),
                market_segment=row.get("market_segment"),
                balance_status=row["balance_status"],
                segment_count=count,
                avg_segment_balance=avg,
                wealth_rank=rank,
                customer_tier=self._tier_for_rank(rank),
            )
            dim.append(record.model_dump())

        self.logger.info(
            "Built %s: %d customers across %d segments (rank method=%s)",
            self.MODEL_NAME,
            len(dim),
            len(segment_stats),
            self.rank_method,
        )
        return dim

    def _segment_stats(
        self, rows: List[Dict]
    ) -> Dict[Optional[str], Tuple[int, Optional[Decimal]]]:
        """
        Map each market_segment (None included) to (row count, mean balance).
        Count covers every row; the mean skips null balances and is None
        when a segment has none.
        """
        counts: Dict[Optional[str], int] = defaultdict(int)
        totals: Dict[Optional[str], Decimal] = defaultdict(Decimal)
        non_null: Dict[Optional[str], int] = defaultdict(int)

        for row in rows:
            segment = row.get("market_segment")
            counts[segment] += 1
            balance = row.get("account_balance")
            if balance is not None:
                totals[segment] += balance
                non_null[segment] += 1

        stats = {}
        for segment, count in counts.items():
            n = non_null[segment]
            avg = totals[segment] / n if n else None
            stats[segment] = (count, avg)
        return stats

    def _wealth_ranks(self, rows: List[Dict]) -> List[int]:
        """
        Rank rows by balance descending, returned in input order.

        Ties share a rank. With "rank" the next distinct balance skips ahead
        (1, 1, 3); with "dense" it does not (1, 1, 2). Null balances sort
        after all others and tie with each other.
        """

        def sort_key(idx: int):
            balance = rows[idx].get("account_balance")
            return (balance is None, -balance if balance is not None else 0)

        order = sorted(range(len(rows)), key=sort_key)

        ranks = [0] * len(rows)
        prev_key = None
        current = 0
        for position, idx in enumerate(order, start=1):
            key = sort_key(idx)
            if key != prev_key:
                current = position if self.rank_method == "rank" else current + 1
                prev_key = key
            ranks[idx] = current
        return ranks

    def _tier_for_rank(self, rank: int) -> str:
        for limit, tier in self.tier_thresholds:
            if rank <= limit:
                return tier
        return self.FALLBACK_TIER
