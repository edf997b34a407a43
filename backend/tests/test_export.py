import datetime

from backoffice.services.export import (
    PAYMENT_COLUMNS,
    boolean,
    currency,
    date,
    export_filename,
    export_to_csv,
    format_currency,
    text,
)


def test_format_currency_french_style():
    assert format_currency(1234.5) == "1 234,50 €"
    assert format_currency(-12) == "-12,00 €"
    assert format_currency(9.999, "usd") == "10,00 $"
    assert format_currency(None) == ""
    assert format_currency("n/a") == "n/a"


def test_every_cell_is_quoted_and_escaped():
    rows = [{"name": 'Villa "Sun", Nice', "price": 80, "active": True, "created_at": "2024-03-01T10:00:00Z"}]
    columns = [text("name", "Name"), currency("price", "Price"), boolean("active", "Active"), date("created_at")]

    csv_text = export_to_csv(rows, columns)

    assert csv_text.splitlines() == [
        '"Name","Price","Active","Date"',
        '"Villa ""Sun"", Nice","80,00 €","Yes","2024-03-01"',
    ]


def test_headers_can_be_left_out():
    assert export_to_csv([{"a": None}], [text("a", "A")], include_headers=False) == '""\n'


def test_dotted_keys_read_relations():
    row = {"id": "pay-1", "amount": 10, "status": "paid", "payment_type": "booking",
           "created_at": "2024-01-01", "payer": {"email": "a@example.com"}, "booking": None}

    line = export_to_csv([row], PAYMENT_COLUMNS, include_headers=False)

    assert '"a@example.com"' in line
    assert line.count('""') == 2  # missing payee and property


def test_export_filename():
    assert export_filename("users", datetime.date(2024, 5, 4)) == "users_export_2024-05-04.csv"
