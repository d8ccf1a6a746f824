import csv
import random
from pathlib import Path
from typing import Dict, List, Optional

from customer_analytics.models import RAW_COLUMNS

MARKET_SEGMENTS = ["AUTOMOBILE", "BUILDING", "FURNITURE", "HOUSEHOLD", "MACHINERY"]
NATION_COUNT = 25
COMMENT_WORDS = ["carefully", "final", "deposits", "furiously", "regular", "ideas", "quickly", "packages"]


def generate_raw_customers(num_records: int = 1500, seed: Optional[int] = None) -> List[Dict]:
    """Raw customer rows shaped like the TPC-H customer table."""
    rng = random.Random(seed)
    records = []
    for key in range(1, num_records + 1):
        nation = rng.randint(0, NATION_COUNT - 1)
        records.append(
            {
                "c_custkey": key,
                "c_name": f"Customer#{key:09d}",
                "c_address": "".join(rng.choice("abcdefghijklmnopqrstuvwxyz ,") for _ in range(20)).strip(),
                "c_nationkey": nation,
                "c_phone": f"{nation + 10}-{rng.randint(100, 999)}-{rng.randint(100, 999)}-{rng.randint(1000, 9999)}",
                "c_acctbal": round(rng.uniform(-999.99, 9999.99), 2),
                "c_mktsegment": rng.choice(MARKET_SEGMENTS),
                "c_comment": " ".join(rng.choice(COMMENT_WORDS) for _ in range(6)),
            }
        )
    return records


def write_customers_csv(rows: List[Dict], path: str) -> Path:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=RAW_COLUMNS)
        writer.writeheader()
        writer.writerows(rows)
    return out_path


if __name__ == "__main__":
    output_file = Path(__file__).parent.parent / "data" / "sample" / "customer.csv"
    write_customers_csv(generate_raw_customers(1500, seed=42), str(output_file))
    print(f"Generated CSV file at: {output_file}")
