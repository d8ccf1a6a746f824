"""
Defines Pydantic models for:
 - Raw customer records (straight from the source table)
 - Staged customer records (stg_customers)
 - Dimensional customer records (dim_customers)
Coerces malformed source values to None instead of rejecting the row.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional, Literal
from pydantic import BaseModel, field_validator

BalanceStatus = Literal["Positive Balance", "Zero Balance", "Negative Balance"]
CustomerTier = Literal["Platinum", "Gold", "Silver", "Bronze"]

BALANCE_STATUSES = ["Positive Balance", "Zero Balance", "Negative Balance"]
CUSTOMER_TIERS = ["Platinum", "Gold", "Silver", "Bronze"]

RAW_COLUMNS = [
    "c_custkey",
    "c_name",
    "c_address",
    "c_nationkey",
    "c_phone",
    "c_acctbal",
    "c_mktsegment",
    "c_comment",
]


class RawCustomer(BaseModel):
    # Schema for customer rows as stored in the raw source table.
    c_custkey: Optional[int] = None
    c_name: Optional[str] = None
    c_address: Optional[str] = None
    c_nationkey: Optional[int] = None
    c_phone: Optional[str] = None
    c_acctbal: Optional[Decimal] = None
    c_mktsegment: Optional[str] = None
    c_comment: Optional[str] = None

    @field_validator(
        "c_name", "c_address", "c_phone", "c_mktsegment", "c_comment", mode="before"
    )
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return None
        v = str(v)
        return v if v.strip() else None

    @field_validator("c_custkey", "c_nationkey", mode="before")
    @classmethod
    def coerce_int(cls, v):
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, int):
            return v
        try:
            return int(str(v).strip())
        except ValueError:
            return None

    @field_validator("c_acctbal", mode="before")
    @classmethod
    def coerce_decimal(cls, v):
        # floats go through str() so 0.1 stays 0.1
        if v is None or isinstance(v, bool):
            return None
        try:
            d = Decimal(str(v).strip())
        except InvalidOperation:
            return None
        return d if d.is_finite() else None


class StagedCustomer(BaseModel):
    # Row of the stg_customers model.
    customer_id: Optional[int] = None
    customer_name: Optional[str] = None
    customer_address: Optional[str] = None
    nation_id: Optional[int] = None
    cleaned_phone: Optional[str] = None
    account_balance: Optional[Decimal] = None
    market_segment: Optional[str] = None
    comments: Optional[str] = None
    balance_status: BalanceStatus


class DimCustomer(BaseModel):
    # Row of the dim_customers model: staged fields minus comments and phone, plus analytics.
    customer_id: Optional[int] = None
    customer_name: Optional[str] = None
    customer_address: Optional[str] = None
    nation_id: Optional[int] = None
    account_balance: Optional[Decimal] = None
    market_segment: Optional[str] = None
    balance_status: BalanceStatus

    segment_count: int
    avg_segment_balance: Optional[Decimal] = None
    wealth_rank: int
    customer_tier: CustomerTier
