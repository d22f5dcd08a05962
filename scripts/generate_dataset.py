"""
Sample Store Export Generator
Writes a pair of grocery transaction exports in the two store date encodings
"""

import random
import uuid
from datetime import date, timedelta
from pathlib import Path

import numpy as np
import polars as pl
from faker import Faker

fake = Faker()
random.seed(42)
np.random.seed(42)
Faker.seed(42)

OUTPUT_DIR = Path(__file__).parent.parent / "data" / "raw"
OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

CATEGORIES = ["produce", "dairy", "bakery", "meat", "beverages", "snacks", "frozen", "household"]
PAYMENTS = ["cash", "card", "mobile"]
HEADERS = {
    "customer_id": "Customer ID",
    "date": "Date",
    "time": "Time",
    "transaction_id": "Transaction ID",
    "product_name": "Product Name",
    "price": "Price",
    "quantity": "Quantity",
    "payment_method": "Payment Method",
    "category": "Category",
}

# ==========================================
# CATALOG
# ==========================================
def generate_catalog(n=60):
    print(f"📊 Generating {n:,} products...")

    names = set()
    while len(names) < n:
        names.add(f"{fake.word().title()} {random.choice(['Pack', 'Box', 'Bag', 'Jar', 'Bottle'])}")

    return pl.DataFrame({
        "product_name": sorted(names),
        "category": np.random.choice(CATEGORIES, n),
        "price": np.round(np.random.uniform(0.99, 25.0, n), 2),
    })

# ==========================================
# TRANSACTIONS
# ==========================================
def generate_store(n, catalog, customer_ids, start, days, date_format, name):
    print(f"📊 Generating {n:,} transactions for {name}...")

    picks = np.random.randint(0, catalog.height, n)
    offsets = np.random.randint(0, days, n)
    # Store opening hours, 07:00 to 21:59
    hours = np.random.choice(np.arange(7, 22), n)
    minutes = np.random.randint(0, 60, n)
    seconds = np.random.randint(0, 60, n)

    df = pl.DataFrame({
        "customer_id": np.random.choice(customer_ids, n),
        "date": [(start + timedelta(days=int(d))).strftime(date_format) for d in offsets],
        "time": [f"{h:02d}:{m:02d}:{s:02d}" for h, m, s in zip(hours, minutes, seconds)],
        "transaction_id": [str(uuid.uuid4()) for _ in range(n)],
        "product_name": catalog["product_name"].gather(picks),
        "price": catalog["price"].gather(picks),
        "quantity": np.random.randint(1, 6, n),
        "payment_method": np.random.choice(PAYMENTS, n, p=[0.25, 0.55, 0.20]),
        "category": catalog["category"].gather(picks),
    }).rename(HEADERS)

    path = OUTPUT_DIR / f"{name}.csv"
    df.write_csv(path)
    print(f"   ✅ {path.name}: {n:,} rows")
    return df

# ==========================================
# MAIN
# ==========================================
def main():
    print("=" * 60)
    print("🛒 Grocery Store Export Generator")
    print("=" * 60 + "\n")

    catalog = generate_catalog()
    customer_ids = [f"C{i:05d}" for i in range(1, 501)]
    start = date(2023, 1, 2)

    generate_store(6000, catalog, customer_ids, start, 182, "%m/%d/%Y", "store1")
    generate_store(6000, catalog, customer_ids, start, 182, "%d/%m/%Y", "store2")

    print(f"\n📁 Output: {OUTPUT_DIR}\n")


if __name__ == "__main__":
    main()
