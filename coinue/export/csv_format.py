"""
CSV Formatting Helpers

Number, date and cell formatting shared by every export section, plus
SectionWriter, a thin wrapper around csv.writer that knows the export
layout (section headers, sub-table titles, placeholder rows).

All quoting is left to the csv module: a cell containing a comma, a
double quote, CR or LF is wrapped in double quotes with embedded quotes
doubled. Rows end in CRLF as in RFC 4180; CR and LF are both part of
the line terminator, so either one inside a cell forces quoting.
Reading an export back with csv.reader yields the original cell text.
"""

import csv
import io
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional

from pydantic import TypeAdapter


CENT = Decimal("0.01")

_ANY = TypeAdapter(Any)


def format_amount(value: Any) -> str:
    """Exactly two decimals, rounded half-up."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    quantized = value.quantize(CENT, rounding=ROUND_HALF_UP)
    if quantized == 0:
        quantized = abs(quantized)
    return str(quantized)


def format_percentage(value: Any) -> str:
    return f"{format_amount(value)}%"


def format_date(value: Optional[date], date_format: str) -> str:
    return value.strftime(date_format) if value else ""


def to_compact_json(value: Any) -> str:
    """Single-line JSON, used for opaque values that must fit in one cell."""
    return _ANY.dump_json(value).decode("utf-8")


def format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return to_compact_json(value)
    return str(value)


def format_setting(value: Any) -> str:
    """
    A settings value: finite numbers get two decimals like every other
    number in the export, anything else is a plain cell.
    """
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        number = value if isinstance(value, Decimal) else Decimal(str(value))
        if number.is_finite():
            return format_amount(number)
    return format_cell(value)


class SectionWriter:
    """
    Accumulates the text of one export document.

    Each section starts with `=== <name> ===` and ends with a blank
    line. Inside a section, sub-tables are separated by a blank line and
    introduced by a title row ("Bill records:").
    """

    def __init__(self, placeholder: str):
        self._placeholder = placeholder
        self._buffer = io.StringIO()
        self._writer = csv.writer(
            self._buffer,
            quoting=csv.QUOTE_MINIMAL,
            lineterminator="\r\n",
        )

    def header(self, name: str) -> None:
        self._writer.writerow([f"=== {name} ==="])

    def title(self, text: str) -> None:
        self._writer.writerow([text])

    def row(self, *cells: Any) -> None:
        self._writer.writerow([format_cell(cell) for cell in cells])

    def rows(self, rows: Iterable[Iterable[Any]]) -> None:
        for cells in rows:
            self.row(*cells)

    def blank(self) -> None:
        self._writer.writerow([])

    def placeholder(self, label: str) -> None:
        """The single row emitted for a section without data."""
        self.row(label, self._placeholder)

    def getvalue(self) -> str:
        return self._buffer.getvalue()
