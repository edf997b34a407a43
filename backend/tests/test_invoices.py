from datetime import datetime, timezone

from backoffice.services.invoices import InvoicePDFGenerator, invoice_filename

PAYMENT = {
    "id": "pay-1",
    "amount": 240.5,
    "status": "paid",
    "payment_type": "booking",
    "created_at": "2024-06-01T09:30:00+00:00",
    "stripe_payment_intent_id": "pi_123",
    "payer": {"first_name": "Alice", "last_name": "Martin", "email": "alice@example.com"},
    "payee": {"full_name": "Olivia Owner"},
    "booking": {
        "check_in": "2024-07-01",
        "check_out": "2024-07-05",
        "property": {"title": "Seaside loft", "city": "Nice"},
    },
}


def test_invoice_is_a_pdf():
    pdf = InvoicePDFGenerator().generate_payment_invoice(PAYMENT)
    assert pdf.startswith(b"%PDF")


def test_invoice_without_relations_still_renders():
    pdf = InvoicePDFGenerator().generate_payment_invoice({"id": "pay-2", "amount": None, "status": "weird"})
    assert pdf.startswith(b"%PDF")


def test_booking_description_includes_stay():
    description = InvoicePDFGenerator()._describe(PAYMENT)
    assert description == "Booking: Seaside loft (01/07/2024 to 05/07/2024)"


def test_filename_prefers_processor_reference():
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert invoice_filename(PAYMENT, now) == f"facture-pi_123-{int(now.timestamp() * 1000)}.pdf"
    assert invoice_filename({"id": "pay-2"}, now).startswith("facture-pay-2-")
