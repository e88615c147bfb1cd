"""HTML templates for transactional email, rendered with Jinja2."""

from __future__ import annotations

from jinja2 import DictLoader, Environment, select_autoescape

from app.services.money import format_money

_LAYOUT = """<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; color: #1f2937;">
  <h1 style="color: #0f766e;">{% block heading %}{% endblock %}</h1>
  {% block body %}{% endblock %}
  <p>Tawreed Logistics</p>
</body>
</html>
"""

_TEMPLATES = {
    "layout.html": _LAYOUT,
    "quote_ready.html": """{% extends "layout.html" %}
{% block heading %}Your quote is ready{% endblock %}
{% block body %}
<p>Hello {{ name }},</p>
<p>The quote for your shipment request {{ reference }} is ready for review.</p>
{% if total %}<p><strong>Total:</strong> {{ total }}</p>{% endif %}
<p><a href="{{ url }}">View quote</a></p>
{% endblock %}""",
    "status_update.html": """{% extends "layout.html" %}
{% block heading %}Shipment update{% endblock %}
{% block body %}
<p>Hello {{ name }},</p>
<p>Shipment {{ reference }} is now <strong>{{ status }}</strong>.</p>
<p><a href="{{ url }}">Track shipment</a></p>
{% endblock %}""",
    "request_approved.html": """{% extends "layout.html" %}
{% block heading %}Request approved{% endblock %}
{% block body %}
<p>Hello {{ name }},</p>
<p>Your request {{ reference }} has been approved.</p>
<p><a href="{{ url }}">Open dashboard</a></p>
{% endblock %}""",
    "document_uploaded.html": """{% extends "layout.html" %}
{% block heading %}New document{% endblock %}
{% block body %}
<p>Hello {{ name }},</p>
<p>A new document was uploaded for {{ reference }}.</p>
<p><a href="{{ url }}">View documents</a></p>
{% endblock %}""",
    "partner_payment.html": """{% extends "layout.html" %}
{% block heading %}Payment Confirmation Required{% endblock %}
{% block body %}
<p>Dear {{ name }},</p>
<p>A payment has been processed and is awaiting your confirmation.</p>
<ul>
  <li><strong>Payment Reference:</strong> {{ reference }}</li>
  <li><strong>Amount:</strong> {{ amount }}</li>
  <li><strong>Number of Invoices:</strong> {{ invoice_count }}</li>
</ul>
<p><a href="{{ url }}">Review Payment</a></p>
{% endblock %}""",
    "product_quote.html": """{% extends "layout.html" %}
{% block heading %}Your Quote for {{ product_name }}{% endblock %}
{% block body %}
<p>Hi {{ customer_name }},</p>
<p>Thanks for your request for <strong>{{ product_name }}</strong>. Here's your instant offer:</p>
<table cellpadding="8" style="border-collapse: collapse;">
  <tr><td>Quantity</td><td><strong>{{ quote.quantity }} units</strong></td></tr>
  <tr><td>Unit price</td><td><strong>{{ money(quote.unit_price, quote.currency) }}</strong></td></tr>
  <tr><td>Subtotal</td><td><strong>{{ money(quote.subtotal, quote.currency) }}</strong></td></tr>
  <tr><td>Shipping to {{ delivery_city }}</td><td><strong>{{ money(quote.shipping.total, quote.currency) }}</strong></td></tr>
  {% if quote.discount %}
  <tr><td>Discount ({{ quote.discount }})</td><td style="color: green;"><strong>-{{ money(quote.discount_amount, quote.currency) }}</strong></td></tr>
  {% endif %}
  <tr><td><strong>Estimated Total</strong></td><td><strong>{{ money(quote.total, quote.currency) }}</strong></td></tr>
</table>
<p><strong>Estimated Delivery:</strong> {{ quote.eta_days }} days after order confirmation</p>
<p><strong>Quote Reference:</strong> {{ quote_number }}<br><strong>Valid until:</strong> {{ valid_until }}</p>
{% endblock %}""",
    "invoice_ready.html": """{% extends "layout.html" %}
{% block heading %}Tax Invoice{% endblock %}
{% block body %}
<p>Dear {{ customer_name }},</p>
<p>Please find your tax invoice below.</p>
<table cellpadding="6" style="border-collapse: collapse;">
  <tr><td>Invoice Number</td><td>{{ invoice.invoice_number }}</td></tr>
  <tr><td>Date</td><td>{{ invoice.invoice_date }}</td></tr>
  {% if vatin %}<tr><td>Customer VATIN</td><td>{{ vatin }}</td></tr>{% endif %}
  {% if vendor_vatin %}<tr><td>Supplier VATIN</td><td>{{ vendor_vatin }}</td></tr>{% endif %}
</table>
{% if items %}
<table cellpadding="6" style="border-collapse: collapse; margin-top: 12px;">
  <tr><th align="left">Description</th><th>Qty</th><th align="right">Unit price</th><th align="right">Total</th></tr>
  {% for item in items %}
  <tr>
    <td>{{ item.description }}</td>
    <td align="center">{{ item.quantity }}</td>
    <td align="right">{{ money(item.unit_price, invoice.currency) }}</td>
    <td align="right">{{ money(item.total_price, invoice.currency) }}</td>
  </tr>
  {% endfor %}
</table>
{% endif %}
<ul>
  <li><strong>Subtotal:</strong> {{ money(invoice.subtotal, invoice.currency) }}</li>
  <li><strong>{{ tax_label }}:</strong> {{ money(invoice.tax_amount, invoice.currency) }}</li>
  <li><strong>Total Amount:</strong> {{ money(invoice.total_amount, invoice.currency) }}</li>
</ul>
{% if invoice.due_date %}<p>Due Date: {{ invoice.due_date }}</p>{% endif %}
<p>Thank you for your business!</p>
{% endblock %}""",
}

environment = Environment(
    loader=DictLoader(_TEMPLATES),
    autoescape=select_autoescape(default=True),
)
environment.globals["money"] = format_money


def render(template: str, **context) -> str:
    return environment.get_template(f"{template}.html").render(**context)
