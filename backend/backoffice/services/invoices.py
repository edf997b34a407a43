"""
Invoice PDF generation for payments.

Built with reportlab platypus, rendered into memory and streamed by the
payments router.
"""

import io
from datetime import datetime, timezone
from typing import Any, Optional

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from backoffice.core.dates import parse_timestamp
from backoffice.services.export import format_currency

PRIMARY = colors.HexColor("#1a1a2e")
MUTED = colors.HexColor("#666666")
RULE = colors.HexColor("#e0e0e0")

STATUS_LABELS = {
    "paid": "Paid",
    "succeeded": "Paid",
    "pending": "Pending",
    "processing": "Processing",
    "failed": "Failed",
    "refunded": "Refunded",
    "cancelled": "Cancelled",
}


def invoice_filename(payment: dict[str, Any], now: Optional[datetime] = None) -> str:
    reference = payment.get("stripe_payment_intent_id") or payment.get("id")
    epoch_ms = int((now or datetime.now(timezone.utc)).timestamp() * 1000)
    return f"facture-{reference}-{epoch_ms}.pdf"


def _party_name(party: Optional[dict[str, Any]]) -> str:
    if not party:
        return "N/A"
    if party.get("full_name"):
        return party["full_name"]
    name = " ".join(p for p in (party.get("first_name"), party.get("last_name")) if p)
    return name or party.get("email") or "N/A"


class InvoicePDFGenerator:
    """Generates payment invoices."""

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Add custom paragraph styles."""
        self.styles.add(ParagraphStyle(
            name='InvoiceTitle',
            parent=self.styles['Heading1'],
            fontSize=22,
            spaceAfter=6,
            textColor=PRIMARY,
        ))
        self.styles.add(ParagraphStyle(
            name='InvoiceMeta',
            parent=self.styles['Normal'],
            fontSize=9,
            textColor=MUTED,
            alignment=TA_RIGHT,
        ))
        self.styles.add(ParagraphStyle(
            name='SectionHeader',
            parent=self.styles['Heading2'],
            fontSize=12,
            spaceBefore=16,
            spaceAfter=6,
            textColor=PRIMARY,
        ))
        self.styles.add(ParagraphStyle(
            name='Footer',
            parent=self.styles['Normal'],
            fontSize=8,
            textColor=MUTED,
            alignment=TA_CENTER,
            spaceBefore=20,
        ))

    def generate_payment_invoice(self, payment: dict[str, Any]) -> bytes:
        """
        Generate the invoice PDF for one payment row (with payer/payee/booking relations).

        Returns:
            PDF bytes
        """
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=0.75*inch,
            leftMargin=0.75*inch,
            topMargin=0.75*inch,
            bottomMargin=0.75*inch,
            title=f"Invoice {payment.get('id', '')}",
        )

        currency = (payment.get("currency") or "EUR").upper()
        reference = payment.get("stripe_payment_intent_id") or f"inv-{str(payment.get('id', ''))[-8:]}"
        story = []

        # Header
        story.append(Paragraph("INVOICE", self.styles['InvoiceTitle']))
        story.append(Paragraph(f"Reference: {reference}", self.styles['InvoiceMeta']))
        story.append(Paragraph(f"Date: {self._format_date(payment.get('created_at'))}", self.styles['InvoiceMeta']))
        story.append(Spacer(1, 0.2*inch))
        story.append(HRFlowable(width="100%", thickness=1, color=RULE))

        # Parties
        payer = payment.get("payer") or {}
        payee = payment.get("payee") or {}
        parties = Table(
            [
                ["Billed to", "Paid to"],
                [_party_name(payer), _party_name(payee)],
                [payer.get("email") or "", payee.get("email") or ""],
            ],
            colWidths=[3.4*inch, 3.4*inch],
        )
        parties.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('TEXTCOLOR', (0, 0), (-1, 0), MUTED),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
        ]))
        story.append(Spacer(1, 0.15*inch))
        story.append(parties)

        # Details
        story.append(Paragraph("DETAILS", self.styles['SectionHeader']))
        lines = [["Description", "Amount"]]
        lines.append([self._describe(payment), format_currency(payment.get("amount"), currency)])
        if payment.get("refund_amount"):
            lines.append(["Refund", format_currency(-float(payment["refund_amount"]), currency)])

        details = Table(lines, colWidths=[5*inch, 1.8*inch])
        details.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('BACKGROUND', (0, 0), (-1, 0), PRIMARY),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
            ('GRID', (0, 0), (-1, -1), 0.5, RULE),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
            ('TOPPADDING', (0, 0), (-1, -1), 8),
        ]))
        story.append(details)

        # Totals
        total = float(payment.get("amount") or 0) - float(payment.get("refund_amount") or 0)
        totals = Table(
            [
                ["Status:", STATUS_LABELS.get(payment.get("status"), payment.get("status") or "N/A")],
                ["Processed:", self._format_date(payment.get("processed_at"))],
                ["Total:", format_currency(total, currency)],
            ],
            colWidths=[5*inch, 1.8*inch],
        )
        totals.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTNAME', (1, -1), (1, -1), 'Helvetica-Bold'),
            ('TEXTCOLOR', (0, 0), (0, -1), MUTED),
            ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
            ('LINEABOVE', (0, -1), (-1, -1), 1, PRIMARY),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
        ]))
        story.append(Spacer(1, 0.2*inch))
        story.append(totals)

        story.append(Spacer(1, 0.5*inch))
        story.append(HRFlowable(width="100%", thickness=1, color=RULE))
        story.append(Paragraph(
            f"Generated on {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')}",
            self.styles['Footer'],
        ))

        doc.build(story)
        buffer.seek(0)
        return buffer.read()

    def _describe(self, payment: dict[str, Any]) -> str:
        booking = payment.get("booking") or {}
        request = payment.get("service_request") or {}
        if booking:
            prop = booking.get("property") or {}
            title = prop.get("title") or "Property"
            stay = ""
            if booking.get("check_in") and booking.get("check_out"):
                stay = f" ({self._format_date(booking['check_in'])} to {self._format_date(booking['check_out'])})"
            return f"Booking: {title}{stay}"
        if request:
            service = request.get("service") or {}
            return f"Service: {service.get('name') or 'Service request'}"
        return (payment.get("payment_type") or "payment").replace("_", " ").capitalize()

    def _format_date(self, value: Any) -> str:
        dt = parse_timestamp(value)
        return dt.strftime("%d/%m/%Y") if dt else "N/A"


def get_invoice_generator() -> InvoicePDFGenerator:
    """Get invoice generator instance."""
    return InvoicePDFGenerator()
