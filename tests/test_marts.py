from decimal import Decimal

import pytest
from customer_analytics.marts import CustomerMartBuilder, MartError


@pytest.fixture
def builder():
    return CustomerMartBuilder()


def staged_row(customer_id, balance, segment="BUILDING", **overrides):
    bal = Decimal(balance) if balance is not None else None
    row = {
        "customer_id": customer_id,
        "customer_name": f"CUSTOMER#{customer_id:09d}",
        "customer_address": "somewhere",
        "nation_id": 1,
        "cleaned_phone": "111",
        "account_balance": bal,
        "market_segment": segment,
        "comments": "dropped in the mart",
        "balance_status": "Positive Balance",
    }
    row.update(overrides)
    return row


def test_segment_stats_example(builder):
    staged = [staged_row(1, "100"), staged_row(2, "200"), staged_row(3, "300")]
    dim = builder.build_dim_customers(staged)

    for row in dim:
        assert row["segment_count"] == 3
        assert row["avg_segment_balance"] == Decimal("200")


def test_segment_stats_are_partitioned(builder):
    staged = [
        staged_row(1, "10.00", "AUTOMOBILE"),
        staged_row(2, "20.00", "AUTOMOBILE"),
        staged_row(3, "500.50", "MACHINERY"),
        staged_row(4, "1.00", None),
        staged_row(5, "3.00", None),
    ]
    dim = {r["customer_id"]: r for r in builder.build_dim_customers(staged)}

    assert dim[1]["segment_count"] == 2
    assert dim[1]["avg_segment_balance"] == Decimal("15.00")
    assert dim[3]["segment_count"] == 1
    assert dim[3]["avg_segment_balance"] == Decimal("500.50")
    # null segment is its own partition
    assert dim[4]["segment_count"] == 2
    assert dim[5]["avg_segment_balance"] == Decimal("2.00")


def test_segment_average_skips_null_balances(builder):
    staged = [
        staged_row(1, "10", "HOUSEHOLD"),
        staged_row(2, None, "HOUSEHOLD"),
        staged_row(3, None, "FURNITURE"),
    ]
    dim = {r["customer_id"]: r for r in builder.build_dim_customers(staged)}

    assert dim[1]["segment_count"] == 2
    assert dim[2]["avg_segment_balance"] == Decimal("10")
    assert dim[3]["segment_count"] == 1
    assert dim[3]["avg_segment_balance"] is None


def test_mart_drops_comments_and_phone_and_keeps_cardinality(builder):
    staged = [staged_row(i, str(i)) for i in range(1, 8)]
    dim = builder.build_dim_customers(staged)

    assert len(dim) == len(staged)
    assert [r["customer_id"] for r in dim] == list(range(1, 8))
    assert "comments" not in dim[0]
    assert "cleaned_phone" not in dim[0]
    assert dim[0]["customer_address"] == "somewhere"
    assert dim[0]["nation_id"] == 1


def test_wealth_rank_orders_by_balance_descending(builder):
    staged = [staged_row(1, "50"), staged_row(2, "300"), staged_row(3, "-10")]
    dim = builder.build_dim_customers(staged)

    assert [r["wealth_rank"] for r in dim] == [2, 1, 3]


def test_standard_rank_skips_after_ties(builder):
    staged = [
        staged_row(1, "100"),
        staged_row(2, "100.00"),
        staged_row(3, "50"),
        staged_row(4, None),
        staged_row(5, None),
    ]
    dim = builder.build_dim_customers(staged)

    assert [r["wealth_rank"] for r in dim] == [1, 1, 3, 4, 4]


def test_dense_rank_has_no_gaps():
    builder = CustomerMartBuilder(rank_method="dense")
    staged = [
        staged_row(1, "100"),
        staged_row(2, "100"),
        staged_row(3, "50"),
        staged_row(4, None),
    ]
    dim = builder.build_dim_customers(staged)

    assert [r["wealth_rank"] for r in dim] == [1, 1, 2, 3]


@pytest.mark.parametrize(
    "rank,tier",
    [
        (1, "Platinum"),
        (100, "Platinum"),
        (101, "Gold"),
        (500, "Gold"),
        (501, "Silver"),
        (1000, "Silver"),
        (1001, "Bronze"),
        (50000, "Bronze"),
    ],
)
def test_tier_thresholds(builder, rank, tier):
    assert builder._tier_for_rank(rank) == tier


def test_tiers_consistent_with_ranks(builder):
    staged = [staged_row(i, str(i)) for i in range(1, 1201)]
    dim = builder.build_dim_customers(staged)

    tiers = {}
    for row in dim:
        tiers[row["customer_tier"]] = tiers.get(row["customer_tier"], 0) + 1
        assert row["customer_tier"] == builder._tier_for_rank(row["wealth_rank"])

    assert tiers == {"Platinum": 100, "Gold": 400, "Silver": 500, "Bronze": 200}
    richest = next(r for r in dim if r["customer_id"] == 1200)
    assert richest["wealth_rank"] == 1


def test_custom_thresholds():
    builder = CustomerMartBuilder(tier_thresholds=[(1, "Platinum"), (2, "Gold")])
    dim = builder.build_dim_customers(
        [staged_row(1, "3"), staged_row(2, "2"), staged_row(3, "1")]
    )

    assert [r["customer_tier"] for r in dim] == ["Platinum", "Gold", "Bronze"]


def test_empty_input(builder):
    assert builder.build_dim_customers([]) == []


@pytest.mark.parametrize(
    "kwargs",
    [
        {"rank_method": "row_number"},
        {"tier_thresholds": [(500, "Gold"), (100, "Platinum")]},
        {"tier_thresholds": [(100, "Diamond")]},
    ],
)
def test_invalid_configuration(kwargs):
    with pytest.raises(MartError):
        CustomerMartBuilder(**kwargs)
