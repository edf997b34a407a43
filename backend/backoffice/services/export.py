"""CSV export of admin tables."""

import csv
import datetime
import io
from typing import Any, Callable, Iterable, Optional

from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict

from backoffice.core.dates import parse_timestamp

CURRENCY_SYMBOLS = {"EUR": "€", "USD": "$", "GBP": "£"}


def format_date(value: Any) -> str:
    dt = parse_timestamp(value)
    return dt.date().isoformat() if dt else ""


def format_currency(value: Any, currency: str = "EUR") -> str:
    """French-style amount: `1 234,50 €`."""
    if value is None or value == "":
        return ""
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return str(value)
    sign = "-" if amount < 0 else ""
    whole, cents = f"{abs(amount):,.2f}".split(".")
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), currency.upper())
    return f"{sign}{whole.replace(',', ' ')},{cents} {symbol}"


def format_boolean(value: Any) -> str:
    return "Yes" if value else "No"


def lookup(row: dict[str, Any], key: str) -> Any:
    """Read `key` from a row; dotted keys walk embedded relations."""
    value: Any = row
    for part in key.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


class ExportColumn(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    key: str
    label: str
    formatter: Optional[Callable[[Any], str]] = None

    def render(self, row: dict[str, Any]) -> str:
        value = lookup(row, self.key)
        if self.formatter is not None:
            return self.formatter(value)
        return "" if value is None else str(value)


def text(key: str, label: str) -> ExportColumn:
    return ExportColumn(key=key, label=label)


def date(key: str, label: str = "Date") -> ExportColumn:
    return ExportColumn(key=key, label=label, formatter=format_date)


def currency(key: str, label: str = "Amount", code: str = "EUR") -> ExportColumn:
    return ExportColumn(key=key, label=label, formatter=lambda v: format_currency(v, code))


def boolean(key: str, label: str) -> ExportColumn:
    return ExportColumn(key=key, label=label, formatter=format_boolean)


def export_to_csv(
    rows: Iterable[dict[str, Any]],
    columns: list[ExportColumn],
    include_headers: bool = True,
) -> str:
    """Render rows as CSV text, every cell quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    if include_headers:
        writer.writerow([c.label for c in columns])
    for row in rows:
        writer.writerow([c.render(row) for c in columns])
    return buffer.getvalue()


def export_filename(name: str, today: Optional[datetime.date] = None) -> str:
    return f"{name}_export_{(today or datetime.date.today()).isoformat()}.csv"


def csv_response(name: str, rows: Iterable[dict[str, Any]], columns: list[ExportColumn]) -> StreamingResponse:
    """Stream `rows` as a CSV attachment (UTF-8 with BOM for spreadsheet apps)."""
    content = export_to_csv(rows, columns).encode("utf-8-sig")
    headers = {
        "Content-Disposition": f'attachment; filename="{export_filename(name)}"',
        "Content-Length": str(len(content)),
    }
    return StreamingResponse(io.BytesIO(content), media_type="text/csv; charset=utf-8", headers=headers)


USER_COLUMNS = [
    text("full_name", "Name"),
    text("email", "Email"),
    text("phone", "Phone"),
    text("role", "Role"),
    boolean("profile_validated", "Validated"),
    boolean("vip_subscription", "VIP"),
    boolean("account_locked", "Locked"),
    date("created_at", "Signed up"),
]

PROPERTY_COLUMNS = [
    text("title", "Title"),
    text("city", "City"),
    text("owner.full_name", "Owner"),
    currency("price_per_night", "Price per night"),
    text("validation_status", "Status"),
    date("validated_at", "Validated at"),
    date("created_at", "Created"),
]

PAYMENT_COLUMNS = [
    text("id", "ID"),
    currency("amount", "Amount"),
    text("status", "Status"),
    text("payment_type", "Type"),
    text("payer.email", "Payer"),
    text("payee.email", "Payee"),
    text("booking.property.title", "Property"),
    date("created_at", "Date"),
]

SERVICE_COLUMNS = [
    text("name", "Name"),
    text("category", "Category"),
    currency("base_price", "Base price"),
    boolean("is_active", "Active"),
    boolean("is_vip_only", "VIP only"),
    date("created_at", "Created"),
]
