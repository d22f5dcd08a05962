"""
Exceptions raised by the analytics pipeline.

Every failure is terminal for the run that hits it; nothing here is retried.
"""

from typing import Optional


class GroceryAnalyticsError(Exception):
    """Base class for all pipeline errors"""


class IngestionError(GroceryAnalyticsError):
    """A source file could not be read into the unified record set"""


class SchemaError(IngestionError):
    """A source file is missing one or more required columns"""

    def __init__(self, source: str, missing_columns: list):
        self.source = source
        self.missing_columns = list(missing_columns)
        super().__init__(
            f"Source '{source}' is missing required columns: {', '.join(self.missing_columns)}"
        )


class MalformedValueError(IngestionError):
    """A date or time string does not match the format assumed for its source"""

    def __init__(
        self,
        source: str,
        row: int,
        column: str,
        raw_value: str,
        expected_format: Optional[str] = None,
    ):
        self.source = source
        self.row = row
        self.column = column
        self.raw_value = raw_value
        self.expected_format = expected_format
        message = f"Source '{source}', row {row}: cannot parse {column} value {raw_value!r}"
        if expected_format:
            message += f" with format {expected_format!r}"
        super().__init__(message)


class PipelineError(GroceryAnalyticsError):
    """A pipeline stage failed; the original exception is chained"""

    def __init__(self, stage: str, message: str):
        self.stage = stage
        super().__init__(f"Stage '{stage}' failed: {message}")
