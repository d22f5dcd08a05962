"""
Test Suite Configuration
"""
import logging
from datetime import date, time
from pathlib import Path
from typing import Callable, List

import pytest
import polars as pl
from structlog.stdlib import ProcessorFormatter

from grocery_analytics.config import Settings
from grocery_analytics.ingestion import DateFormat, SourceConfig

CSV_HEADER = "Customer ID,Date,Time,Transaction ID,Product Name,Price,Quantity,Payment Method,Category"


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(app_env="testing")


@pytest.fixture(autouse=True)
def detach_log_handlers():
    """Remove handlers installed by configure_logging once a test ends"""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, ProcessorFormatter):
            root.removeHandler(handler)
            handler.close()


@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[[str, List[str]], Path]:
    """Factory writing a store export with the standard header"""
    def _write(name: str, rows: List[str], header: str = CSV_HEADER) -> Path:
        path = tmp_path / f"{name}.csv"
        path.write_text("\n".join([header] + rows) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def store_files(write_csv) -> List[SourceConfig]:
    """Two small store exports, one per date encoding"""
    store1 = write_csv("store1", [
        "C1,06/01/2023,09:15:00,T1,Lettuce,9.81,1,cash,produce",
        "C1,06/11/2023,10:20:00,T2,Lettuce,16.28,2,card,produce",
        "C2,06/12/2023,14:05:30,T3,Milk,2.49,3,mobile,dairy",
        "C3,06/20/2023,18:45:00,T4,Bread,3.10,1,card,bakery",
    ])
    store2 = write_csv("store2", [
        "C1,24/06/2023,11:00:00,T5,Lettuce,19.02,4,card,produce",
        "C2,01/07/2023,14:30:00,T6,Milk,2.49,2,cash,dairy",
        "C4,03/07/2023,20:10:00,T7,Coffee,7.99,1,card,beverages",
    ])
    return [
        SourceConfig(store1, "store1", DateFormat.MONTH_DAY_YEAR),
        SourceConfig(store2, "store2", DateFormat.DAY_MONTH_YEAR),
    ]


def _make_transactions(rows: List[dict]) -> pl.DataFrame:
    """Build an ingested-shape frame from partial row dicts"""
    defaults = {
        "customer_id": "C1",
        "transaction_id": None,
        "date": date(2023, 6, 1),
        "time_of_day": time(12, 0),
        "product_name": "Lettuce",
        "unit_price": 1.0,
        "quantity": 1,
        "payment_method": "card",
        "category": "produce",
        "source": "store1",
    }
    records = []
    for i, row in enumerate(rows, start=1):
        record = {**defaults, **row}
        record["transaction_id"] = record["transaction_id"] or f"T{i}"
        record["source_row"] = i
        records.append(record)

    return pl.DataFrame(records, schema={
        "customer_id": pl.Utf8,
        "transaction_id": pl.Utf8,
        "date": pl.Date,
        "time_of_day": pl.Time,
        "product_name": pl.Utf8,
        "unit_price": pl.Float64,
        "quantity": pl.Int64,
        "payment_method": pl.Utf8,
        "category": pl.Utf8,
        "source": pl.Utf8,
        "source_row": pl.Int64,
    })


@pytest.fixture
def make_transactions() -> Callable[[List[dict]], pl.DataFrame]:
    """Factory building ingested-shape frames from partial rows"""
    return _make_transactions


@pytest.fixture
def sample_transactions_df() -> pl.DataFrame:
    """Ingested transactions across two weeks and several hours"""
    return _make_transactions([
        {"customer_id": "C1", "date": date(2023, 6, 1), "time_of_day": time(9, 15), "product_name": "Lettuce", "unit_price": 9.81, "quantity": 1},
        {"customer_id": "C1", "date": date(2023, 6, 11), "time_of_day": time(10, 20), "product_name": "Lettuce", "unit_price": 16.28, "quantity": 2},
        {"customer_id": "C2", "date": date(2023, 6, 12), "time_of_day": time(14, 5), "product_name": "Milk", "unit_price": 2.49, "quantity": 3},
        {"customer_id": "C1", "date": date(2023, 6, 24), "time_of_day": time(11, 0), "product_name": "Lettuce", "unit_price": 19.02, "quantity": 4},
        {"customer_id": "C2", "date": date(2023, 7, 1), "time_of_day": time(14, 30), "product_name": "Milk", "unit_price": 2.49, "quantity": 2},
        {"customer_id": "C3", "date": date(2023, 6, 20), "time_of_day": time(18, 45), "product_name": "Bread", "unit_price": 3.10, "quantity": 1},
        {"customer_id": "C1", "date": date(2023, 6, 12), "time_of_day": time(14, 50), "product_name": "Milk", "unit_price": 2.49, "quantity": 1},
    ])
