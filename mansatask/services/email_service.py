"""
Transactional emails sent through Flask-Mail.

These functions send synchronously; request code queues them through
``mansatask.tasks.email_tasks``.
"""

from flask import current_app, render_template_string
from flask_mail import Message

from mansatask.extensions import mail

PASSWORD_RESET_TEMPLATE = """
<h2>Reset your password</h2>
<p>Hello {{ name }},</p>
<p>We received a request to reset your MANSATASK password. The link below is valid for one hour.</p>
<p><a href="{{ reset_url }}">Reset password</a></p>
<p>If you did not request this, you can ignore this email.</p>
"""

PAYMENT_SUCCESS_TEMPLATE = """
<h2>Payment received</h2>
<p>Hello {{ customer_name }},</p>
<p>Your payment of <strong>{{ amount }} F CFA</strong> for <strong>{{ title }}</strong> was successful.</p>
<p>Reference: {{ reference }}<br>Receipt number: {{ receipt_number }}</p>
<p>Your receipt is attached to this email.</p>
"""

PAYMENT_FAILED_TEMPLATE = """
<h2>Payment failed</h2>
<p>Hello {{ customer_name }},</p>
<p>Your payment of <strong>{{ amount }} F CFA</strong> for <strong>{{ title }}</strong> could not be completed.</p>
<p>Reference: {{ reference }}</p>
{% if reason %}<p>Reason: {{ reason }}</p>{% endif %}
<p>You can try again from the payment page.</p>
"""


def format_amount(amount):
    return f"{float(amount):,.2f}"


def send_email(*, to, subject, html, attachments=None):
    msg = Message(subject=subject, recipients=[to], html=html)
    for filename, content_type, data in attachments or ():
        msg.attach(filename, content_type, data)

    mail.send(msg)
    current_app.logger.info(f"Email sent: {subject}", extra={"to": to})


def send_password_reset(*, to, name, reset_url):
    send_email(
        to=to,
        subject="Reset your MANSATASK password",
        html=render_template_string(PASSWORD_RESET_TEMPLATE, name=name, reset_url=reset_url),
    )


def send_payment_success(*, transaction, receipt=None, pdf_bytes=None):
    html = render_template_string(
        PAYMENT_SUCCESS_TEMPLATE,
        customer_name=transaction.customer_name,
        amount=format_amount(transaction.amount),
        title=transaction.payment_link.title if transaction.payment_link else "your purchase",
        reference=transaction.external_reference,
        receipt_number=receipt.receipt_number if receipt else "-",
    )
    attachments = []
    if receipt and pdf_bytes:
        attachments.append((f"receipt-{receipt.receipt_number}.pdf", "application/pdf", pdf_bytes))

    send_email(
        to=transaction.customer_email,
        subject="Payment successful - MANSATASK",
        html=html,
        attachments=attachments,
    )


def send_payment_failed(*, transaction):
    send_email(
        to=transaction.customer_email,
        subject="Payment failed - MANSATASK",
        html=render_template_string(
            PAYMENT_FAILED_TEMPLATE,
            customer_name=transaction.customer_name,
            amount=format_amount(transaction.amount),
            title=transaction.payment_link.title if transaction.payment_link else "your purchase",
            reference=transaction.external_reference,
            reason=transaction.failure_reason,
        ),
    )
