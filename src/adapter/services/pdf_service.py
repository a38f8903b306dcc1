"""ReportLab PDF Generation Service Implementation

Implements invoice rendering using ReportLab library.
"""

from io import BytesIO
from decimal import Decimal
from xml.sax.saxutils import escape

from pydantic import BaseModel
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import (
    SimpleDocTemplate,
    Table,
    TableStyle,
    Paragraph,
    Spacer,
)

from src.app.services.pdf_service import PdfService
from src.domain.invoice import Invoice


class CompanyProfile(BaseModel):
    """Issuer identity printed on every invoice"""

    name: str = "My Company"
    address: str = ""
    reg_code: str = ""
    phone: str = ""
    email: str = ""
    bank: str = ""
    vat_note: str = "Not a VAT registered company"
    late_fee_note: str = "Late payment fee: 0.15% per day"


def _quantity(value: Decimal) -> str:
    text = f"{value:,.6f}"
    return text.rstrip("0").rstrip(".") if "." in text else text


class ReportLabPdfService(PdfService):
    """
    ReportLab implementation of PdfService

    Layout:
    - Company name header, PAID stamp when the invoice is paid
    - Bill-to block next to invoice number, dates and late fee note
    - Items table; the discount column only appears if any line has one
    - Total with VAT note, payment reference request, company footer
    """

    def __init__(self, company: CompanyProfile = None):
        self.company = company or CompanyProfile()

    def generate_invoice(self, invoice: Invoice) -> bytes:
        """
        Render an invoice PDF

        Args:
            invoice: Invoice entity with lines attached

        Returns:
            PDF document as bytes
        """
        company = self.company
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=20 * mm,
            leftMargin=20 * mm,
            topMargin=20 * mm,
            bottomMargin=20 * mm,
            title=f"Invoice {invoice.invoice_number}",
            author=company.name,
        )

        styles = getSampleStyleSheet()
        elements = []

        # Custom styles
        title_style = ParagraphStyle(
            "TitleStyle",
            parent=styles["Heading1"],
            fontSize=20,
            spaceAfter=6,
            textColor=colors.HexColor("#2C3E50"),
        )
        paid_style = ParagraphStyle(
            "PaidStyle",
            parent=styles["Heading2"],
            fontSize=16,
            textColor=colors.HexColor("#27AE60"),
            spaceAfter=6,
        )
        normal_style = ParagraphStyle(
            "NormalStyle",
            parent=styles["Normal"],
            fontSize=10,
        )
        bold_style = ParagraphStyle(
            "BoldStyle",
            parent=styles["Normal"],
            fontSize=10,
            fontName="Helvetica-Bold",
        )
        footer_style = ParagraphStyle(
            "FooterStyle",
            parent=styles["Normal"],
            fontSize=8,
            textColor=colors.HexColor("#7F8C8D"),
        )

        # Header
        elements.append(Paragraph(escape(company.name), title_style))
        if invoice.is_paid:
            elements.append(Paragraph("PAID", paid_style))
        elements.append(Spacer(1, 8 * mm))

        # Bill-to (left) and invoice details (right)
        bill_to = [
            Paragraph("Bill To:", bold_style),
            Paragraph(f"Client: {escape(invoice.buyer_name)}", normal_style),
            Paragraph(f"Address: {escape(invoice.client_address)}", normal_style),
            Paragraph(f"Reg. code: {escape(invoice.reg_code)}", normal_style),
        ]
        details = [
            Paragraph(f"Invoice No: {invoice.invoice_number}", bold_style),
            Paragraph(f"Invoice date: {invoice.invoice_date.isoformat()}", normal_style),
            Paragraph(f"Due date: {invoice.due_date.isoformat()}", normal_style),
            Paragraph(escape(company.late_fee_note), normal_style),
        ]
        header_table = Table([[bill_to, details]], colWidths=[95 * mm, 75 * mm])
        header_table.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
        elements.append(header_table)
        elements.append(Spacer(1, 10 * mm))

        # Line Items Table
        has_discount = any(line.discount_percent > 0 for line in invoice.lines)
        if has_discount:
            line_data = [["Description", "Unit Price", "Quantity", "Discount (%)", "Amount"]]
            col_widths = [70 * mm, 25 * mm, 20 * mm, 25 * mm, 30 * mm]
        else:
            line_data = [["Description", "Unit Price", "Quantity", "Amount"]]
            col_widths = [90 * mm, 25 * mm, 25 * mm, 30 * mm]

        for line in invoice.lines:
            row = [
                Paragraph(escape(line.description), normal_style),
                f"{line.unit_price:,.2f}",
                _quantity(line.quantity),
            ]
            if has_discount:
                row.append(f"{line.discount_percent:g}%" if line.discount_percent > 0 else "")
            row.append(f"{line.total:,.2f}")
            line_data.append(row)

        line_table = Table(line_data, colWidths=col_widths, repeatRows=1)
        line_table.setStyle(
            TableStyle(
                [
                    # Header row
                    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#2C3E50")),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, 0), 10),
                    ("ALIGN", (0, 0), (-1, 0), "CENTER"),
                    # Data rows
                    ("FONTSIZE", (0, 1), (-1, -1), 9),
                    ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                    # Grid
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#BDC3C7")),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                    ("TOPPADDING", (0, 0), (-1, -1), 6),
                    (
                        "ROWBACKGROUNDS",
                        (0, 1),
                        (-1, -1),
                        [colors.white, colors.HexColor("#F8F9F9")],
                    ),
                ]
            )
        )

        elements.append(line_table)
        elements.append(Spacer(1, 5 * mm))

        # Total
        total_data = [
            ["VAT:", company.vat_note],
            [f"Invoice total ({invoice.currency}):", f"{invoice.total_amount:,.2f}"],
        ]
        total_table = Table(total_data, colWidths=[110 * mm, 60 * mm])
        total_table.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 1), (-1, 1), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, 0), 9),
                    ("FONTSIZE", (0, 1), (-1, 1), 11),
                    ("ALIGN", (0, 0), (-1, -1), "RIGHT"),
                    ("LINEABOVE", (0, 1), (-1, 1), 1.5, colors.HexColor("#2C3E50")),
                    ("TOPPADDING", (0, 0), (-1, -1), 6),
                ]
            )
        )

        elements.append(total_table)
        elements.append(Spacer(1, 12 * mm))

        elements.append(
            Paragraph("Please include the invoice number in the payment reference.", normal_style)
        )
        elements.append(Spacer(1, 15 * mm))

        # Footer with company details
        footer_lines = [
            company.name,
            f"Reg. no {company.reg_code}" if company.reg_code else "",
            company.bank,
            company.address,
            f"Tel: {company.phone}" if company.phone else "",
            f"E-mail: {company.email}" if company.email else "",
        ]
        footer_text = " | ".join(escape(part) for part in footer_lines if part)
        elements.append(Paragraph(footer_text, footer_style))

        # Build PDF
        doc.build(elements)
        pdf_bytes = buffer.getvalue()
        buffer.close()

        return pdf_bytes
