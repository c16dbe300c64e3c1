from __future__ import annotations

import os
from typing import Any, Dict

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from phonestore.constants import PAYMENT_TYPES
from phonestore.utils.formatters import group_indian, order_date


def _inr(v: float) -> str:
    # Helvetica has no rupee glyph
    return f"Rs. {group_indian(v)}"


def generate_order_invoice_pdf(order: Dict[str, Any], export_dir: str, store_name: str = "") -> str:
    os.makedirs(export_dir, exist_ok=True)

    filename = f"invoice_{order['id']}.pdf"
    path = os.path.join(export_dir, filename)

    c = canvas.Canvas(path, pagesize=A4)
    w, h = A4

    y = h - 50
    c.setFont("Helvetica-Bold", 14)
    c.drawString(40, y, store_name or "INVOICE")
    y -= 20

    c.setFont("Helvetica", 10)
    c.drawString(40, y, f"Order: {order['id']}")
    y -= 14
    c.drawString(40, y, f"Date: {order_date(order['createdAt'])}")
    y -= 24

    c.setFont("Helvetica-Bold", 11)
    c.drawString(40, y, "Deliver to")
    y -= 16
    c.setFont("Helvetica", 10)
    c.drawString(40, y, order["customerName"])
    y -= 14
    c.drawString(40, y, f"Phone: {order['phone']}")
    y -= 14
    # long addresses wrap at ~90 chars
    address = order["address"]
    while address:
        c.drawString(40, y, address[:90])
        address = address[90:]
        y -= 14
    c.drawString(40, y, f"PIN Code: {order['pinCode']}")
    y -= 28

    # header
    c.setFont("Helvetica-Bold", 10)
    c.drawString(40, y, "Item")
    c.drawString(330, y, "Storage")
    c.drawRightString(550, y, "Price")
    y -= 10
    c.line(40, y, 550, y)
    y -= 16

    c.setFont("Helvetica", 10)
    item_name = order["productName"]
    if order.get("color"):
        item_name = f"{item_name} ({order['color']})"
    c.drawString(40, y, item_name[:50])
    c.drawString(330, y, order["storage"])
    c.drawRightString(550, y, _inr(order["fullPrice"]))
    y -= 10
    c.line(40, y, 550, y)
    y -= 18

    c.drawRightString(450, y, "Payment type:")
    c.drawRightString(550, y, PAYMENT_TYPES.get(order["paymentType"], order["paymentType"]))
    y -= 14
    c.drawRightString(450, y, "Paid:")
    c.drawRightString(550, y, _inr(order["paidAmount"]))
    y -= 18
    c.setFont("Helvetica-Bold", 12)
    c.drawRightString(450, y, "BALANCE DUE:")
    c.drawRightString(550, y, _inr(order["remainingBalance"]))

    c.save()
    return path
