"""Receipt PDF rendering with reportlab; the QR code encodes the payment reference."""

import io
import textwrap

import qrcode
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

LEFT = 50
RIGHT = A4[0] - 50
TOP = A4[1] - 60


def format_cfa(amount) -> str:
    return f"{float(amount):,.0f}".replace(",", " ")


def qr_png(data: str) -> bytes:
    buf = io.BytesIO()
    qrcode.make(data).save(buf)
    return buf.getvalue()


class _Writer:
    def __init__(self, pdf):
        self.pdf = pdf
        self.y = TOP

    def line(self, text, size=11, bold=False, center=False, gap=16):
        self.pdf.setFont("Helvetica-Bold" if bold else "Helvetica", size)
        if center:
            self.pdf.drawCentredString(A4[0] / 2, self.y, text)
        else:
            self.pdf.drawString(LEFT, self.y, text)
        self.y -= gap

    def section(self, title):
        self.y -= 6
        self.line(title, size=14, bold=True, gap=20)

    def rule(self):
        self.pdf.line(LEFT, self.y, RIGHT, self.y)
        self.y -= 20

    def wrapped(self, text, indent=20, width=90):
        for chunk in textwrap.wrap(text, width=width):
            self.pdf.setFont("Helvetica", 11)
            self.pdf.drawString(LEFT + indent, self.y, chunk)
            self.y -= 14


def render_receipt_pdf(*, transaction, receipt_number, issued_at) -> bytes:
    buf = io.BytesIO()
    pdf = canvas.Canvas(buf, pagesize=A4)
    pdf.setTitle(f"Receipt {receipt_number}")
    w = _Writer(pdf)

    w.line("PAYMENT RECEIPT", size=22, bold=True, center=True, gap=28)
    w.line(f"Receipt Number: {receipt_number}", size=10, center=True, gap=14)
    w.line(f"Date: {issued_at.strftime('%B %d, %Y')}", size=10, center=True, gap=24)
    w.rule()

    merchant = transaction.payment_link.user if transaction.payment_link else None
    if merchant is not None:
        w.section("Merchant Information")
        w.line(f"Name: {merchant.name}")
        w.line(f"Email: {merchant.email}")
        if merchant.phone:
            w.line(f"Phone: {merchant.phone}")

    link = transaction.payment_link
    if link is not None:
        product = link.product
        w.section("Product/Service Information")
        w.line(f"Product Title: {link.title or (product.name if product else 'N/A')}")
        description = link.description or (product.description if product else None)
        if description:
            w.line("Description:")
            w.wrapped(description)

    w.section("Customer Information")
    w.line(f"Name: {transaction.customer_name}")
    if transaction.customer_email:
        w.line(f"Email: {transaction.customer_email}")
    w.line(f"Phone: {transaction.customer_phone}")

    w.section("Payment Details")
    w.line(f"Date of Payment: {transaction.created_at.strftime('%B %d, %Y %H:%M')}")
    w.line(f"Payment Reference: {transaction.external_reference}")
    if transaction.provider_transaction_id:
        w.line(f"Provider Transaction ID: {transaction.provider_transaction_id}")
    w.line(f"Payment Method: {transaction.payment_provider}")

    w.y -= 10
    w.line(f"Amount Paid: {format_cfa(transaction.amount)} F CFA", size=16, bold=True, center=True, gap=30)
    w.rule()

    size = 130
    pdf.drawImage(
        ImageReader(io.BytesIO(qr_png(transaction.external_reference))),
        (A4[0] - size) / 2,
        w.y - size,
        width=size,
        height=size,
    )
    w.y -= size + 14
    w.line("Scan QR code for transaction verification", size=9, center=True, gap=22)
    w.line("Thank you for your payment!", size=8, center=True)

    pdf.showPage()
    pdf.save()
    return buf.getvalue()
