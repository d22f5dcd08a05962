"""
Transaction CSV Loader

Reads the per-store transaction exports into one unified record set.
Handles:
- Header mapping onto the canonical column names
- Strict date parsing under the format assigned to each source
- Time, price and quantity parsing
- Concatenation in source order
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union
import hashlib
import re

import polars as pl
import structlog

from grocery_analytics.config import Settings, get_settings
from grocery_analytics.exceptions import MalformedValueError, SchemaError

logger = structlog.get_logger(__name__)


class DateFormat(str, Enum):
    """Date encodings used by the store exports"""
    MONTH_DAY_YEAR = "month_day_year"
    DAY_MONTH_YEAR = "day_month_year"

    @property
    def pattern(self) -> str:
        """strptime pattern for this encoding"""
        return _DATE_PATTERNS[self]

    @property
    def shape(self) -> str:
        """Regex a value must match before it is handed to strptime"""
        return _DATE_SHAPES[self]


_DATE_PATTERNS: Dict[DateFormat, str] = {
    DateFormat.MONTH_DAY_YEAR: "%m/%d/%Y",
    DateFormat.DAY_MONTH_YEAR: "%d/%m/%Y",
}

# strptime's %Y also takes 2- and 5-digit years; both stores write four
_DATE_SHAPES: Dict[DateFormat, str] = {
    DateFormat.MONTH_DAY_YEAR: r"^\d{1,2}/\d{1,2}/\d{4}$",
    DateFormat.DAY_MONTH_YEAR: r"^\d{1,2}/\d{1,2}/\d{4}$",
}

# Currency symbols and thousands separators stripped from prices
CURRENCY_CHARS = r"[$€£¥,]"

# Whole cents only: digits past the second decimal must be zeros
PRICE_SHAPE = r"^[+-]?(\d+(\.\d{0,2}0*)?|\.\d{1,2}0*)$"


# Canonical record layout, in output order
CANONICAL_COLUMNS = [
    "customer_id",
    "transaction_id",
    "date",
    "time_of_day",
    "product_name",
    "unit_price",
    "quantity",
    "payment_method",
    "category",
]

# Normalized header text -> canonical column
COLUMN_ALIASES: Dict[str, str] = {
    "customer_id": "customer_id",
    "customer": "customer_id",
    "transaction_id": "transaction_id",
    "date": "date",
    "transaction_date": "date",
    "time": "time_of_day",
    "time_of_day": "time_of_day",
    "transaction_time": "time_of_day",
    "product_name": "product_name",
    "product": "product_name",
    "price": "unit_price",
    "unit_price": "unit_price",
    "quantity": "quantity",
    "qty": "quantity",
    "payment_method": "payment_method",
    "payment": "payment_method",
    "category": "category",
    "product_category": "category",
}


@dataclass
class SourceConfig:
    """Configuration for one store export"""
    file_path: Union[str, Path]
    source: str
    date_format: DateFormat
    time_format: str = "%H:%M:%S"
    delimiter: str = ","
    encoding: str = "utf8"
    null_values: List[str] = field(default_factory=lambda: ["", "NULL", "null", "None", "NA", "N/A"])


def normalize_header(name: str) -> str:
    """Lowercase a header and collapse any non-alphanumeric run to '_'"""
    return re.sub(r"[^a-z0-9]+", "_", name.strip().lower()).strip("_")


class TransactionLoader:
    """
    Loads store exports into a single polars DataFrame.

    Every source shares one 9-column schema but encodes dates its own way;
    the format is fixed per source and never sniffed per row.

    Example:
        loader = TransactionLoader()
        df = loader.load([
            SourceConfig("store1.csv", "store1", DateFormat.MONTH_DAY_YEAR),
            SourceConfig("store2.csv", "store2", DateFormat.DAY_MONTH_YEAR),
        ])
    """

    def _compute_file_hash(self, file_path: Path) -> str:
        """Compute MD5 hash of file for the audit log"""
        hash_md5 = hashlib.md5()
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(4096), b""):
                hash_md5.update(chunk)
        return hash_md5.hexdigest()

    def _read_csv(self, config: SourceConfig) -> pl.DataFrame:
        """Read every column as text; parsing happens column by column"""
        return pl.read_csv(
            config.file_path,
            separator=config.delimiter,
            encoding=config.encoding,
            null_values=config.null_values,
            infer_schema_length=0,
        )

    def _map_columns(self, df: pl.DataFrame, source: str) -> pl.DataFrame:
        """Rename source headers onto canonical columns"""
        rename = {}
        for column in df.columns:
            canonical = COLUMN_ALIASES.get(normalize_header(column))
            if canonical and canonical not in rename.values():
                rename[column] = canonical

        missing = [c for c in CANONICAL_COLUMNS if c not in rename.values()]
        if missing:
            raise SchemaError(source, missing)

        return df.rename(rename).select(CANONICAL_COLUMNS)

    def _trim_strings(self, df: pl.DataFrame) -> pl.DataFrame:
        """Trim whitespace from all text columns"""
        return df.with_columns(pl.col(pl.Utf8).str.strip_chars())

    def _parse_column(
        self,
        df: pl.DataFrame,
        column: str,
        parsed: pl.Expr,
        source: str,
        expected_format: Optional[str] = None,
    ) -> pl.DataFrame:
        """
        Replace a text column with its parsed form.

        A value present in the file but unparseable aborts the load; missing
        values stay null and are handled by the quality rules.
        """
        df = df.with_columns(parsed.alias("_parsed"))
        bad = df.filter(pl.col(column).is_not_null() & pl.col("_parsed").is_null())

        if bad.height > 0:
            first = bad.row(0, named=True)
            logger.error(
                "Malformed value in source",
                source=source,
                row=first["source_row"],
                column=column,
                raw_value=first[column],
                bad_rows=bad.height,
            )
            raise MalformedValueError(
                source=source,
                row=first["source_row"],
                column=column,
                raw_value=first[column],
                expected_format=expected_format,
            )

        return df.with_columns(pl.col("_parsed").alias(column)).drop("_parsed")

    def _parse_values(self, df: pl.DataFrame, config: SourceConfig) -> pl.DataFrame:
        """Parse date, time, price and quantity under the source's conventions"""
        date_pattern = config.date_format.pattern
        date_text = pl.col("date")

        df = self._parse_column(
            df,
            "date",
            pl.when(date_text.str.contains(config.date_format.shape))
            .then(date_text.str.strptime(pl.Date, date_pattern, strict=False)),
            config.source,
            expected_format=date_pattern,
        )
        df = self._parse_column(
            df,
            "time_of_day",
            pl.col("time_of_day").str.strptime(pl.Time, config.time_format, strict=False),
            config.source,
            expected_format=config.time_format,
        )
        price_text = pl.col("unit_price").str.replace_all(CURRENCY_CHARS, "")
        df = self._parse_column(
            df,
            "unit_price",
            pl.when(price_text.str.contains(PRICE_SHAPE))
            .then(price_text.cast(pl.Float64, strict=False)),
            config.source,
            expected_format="amount in whole cents",
        )
        df = self._parse_column(
            df,
            "quantity",
            pl.col("quantity").cast(pl.Int64, strict=False),
            config.source,
        )
        return df

    def read_source(self, config: SourceConfig) -> pl.DataFrame:
        """
        Read and normalize a single store export.

        Args:
            config: Source configuration

        Returns:
            DataFrame with canonical columns plus ``source`` and ``source_row``

        Raises:
            FileNotFoundError: If the file does not exist
            SchemaError: If a required column is missing
            MalformedValueError: If a date, time or number cannot be parsed
        """
        file_path = Path(config.file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        logger.info(
            "Reading source",
            source=config.source,
            file=str(file_path),
            date_format=config.date_format.value,
            file_hash=self._compute_file_hash(file_path),
        )

        df = self._read_csv(config)
        df = self._map_columns(df, config.source)
        df = self._trim_strings(df)

        # Row number within the file, header excluded
        df = df.with_row_index("source_row", offset=1).with_columns(
            pl.col("source_row").cast(pl.Int64)
        )
        df = self._parse_values(df, config)

        df = df.with_columns(pl.lit(config.source).alias("source")).select(
            CANONICAL_COLUMNS + ["source", "source_row"]
        )

        logger.info("Source loaded", source=config.source, rows=df.height)
        return df

    def load(self, sources: Sequence[SourceConfig]) -> pl.DataFrame:
        """
        Read every source and concatenate them in the given order.

        Row order within each source is preserved; rows of an earlier
        source precede rows of a later one.
        """
        if not sources:
            raise ValueError("At least one source is required")

        frames = [self.read_source(config) for config in sources]
        df = pl.concat(frames, how="vertical")

        logger.info(
            "Sources combined",
            sources=[c.source for c in sources],
            total_rows=df.height,
        )
        return df


def sources_from_settings(
    settings: Optional[Settings] = None,
    store1_path: Optional[str] = None,
    store2_path: Optional[str] = None,
) -> List[SourceConfig]:
    """Build the two store source configurations, with optional path overrides"""
    settings = settings or get_settings()
    src = settings.sources

    common = dict(
        time_format=src.time_format,
        delimiter=src.delimiter,
        encoding=src.encoding,
        null_values=list(src.null_values),
    )
    return [
        SourceConfig(store1_path or src.store1_path, "store1", DateFormat(src.store1_date_format), **common),
        SourceConfig(store2_path or src.store2_path, "store2", DateFormat(src.store2_date_format), **common),
    ]


def read_source(config: SourceConfig) -> pl.DataFrame:
    """Convenience function to read one store export"""
    return TransactionLoader().read_source(config)


def load_transactions(sources: Optional[Sequence[SourceConfig]] = None) -> pl.DataFrame:
    """
    Convenience function to build the unified transaction set.

    Args:
        sources: Source configurations; defaults to the two configured stores

    Returns:
        Unified transaction DataFrame
    """
    if sources is None:
        sources = sources_from_settings()
    return TransactionLoader().load(sources)
