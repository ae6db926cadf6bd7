"""CSV export package."""

from coinue.export.compiler import (
    EXPORT_FILE_PATTERN,
    SECTION_ORDER,
    ExportCompiler,
)
from coinue.export.csv_format import SectionWriter, format_amount, format_percentage, format_setting

__all__ = [
    "EXPORT_FILE_PATTERN",
    "SECTION_ORDER",
    "ExportCompiler",
    "SectionWriter",
    "format_amount",
    "format_percentage",
    "format_setting",
]
