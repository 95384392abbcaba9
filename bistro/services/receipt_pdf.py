from __future__ import annotations

import os
from datetime import datetime

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from bistro.config import settings
from bistro.constants import TAX_RATE
from bistro.orders.cart import Cart
from bistro.utils.formatters import money


def generate_receipt_pdf(cart: Cart) -> str:
    """Write the cart's current bill to export_dir and return the file path."""
    os.makedirs(settings.export_dir, exist_ok=True)

    totals = cart.totals
    created_at = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    path = os.path.join(settings.export_dir, f"receipt_{cart.id}.pdf")

    c = canvas.Canvas(path, pagesize=A4)
    w, h = A4

    y = h - 50
    c.setFont("Helvetica-Bold", 14)
    c.drawString(40, y, f"ORDER {cart.id[:8].upper()}")
    y -= 20

    c.setFont("Helvetica", 11)
    c.drawString(40, y, f"Date: {created_at}")
    y -= 16
    c.drawString(40, y, f"Items: {cart.total_items}")
    y -= 24

    # header
    c.setFont("Helvetica-Bold", 10)
    c.drawString(40, y, "Item")
    c.drawString(310, y, "Qty")
    c.drawString(360, y, "Price")
    c.drawString(440, y, "Total")
    y -= 10
    c.line(40, y, 550, y)
    y -= 16

    c.setFont("Helvetica", 10)
    for ln in cart.lines:
        c.drawString(40, y, ln.name[:45])
        c.drawRightString(340, y, str(ln.quantity))
        c.drawRightString(420, y, money(ln.unit_price))
        c.drawRightString(550, y, money(ln.line_total))
        y -= 14
        if y < 160:
            c.showPage()
            y = h - 50
            c.setFont("Helvetica", 10)

    y -= 10
    c.line(40, y, 550, y)
    y -= 18

    summary = [
        ("Subtotal", totals.subtotal),
        (f"Tax ({TAX_RATE * 100:.0f}%)", totals.tax_amount),
    ]
    if cart.discounts.manual_discount:
        summary.append(("Discount", -cart.discounts.manual_discount))
    if cart.discounts.coupon_discount:
        label = f"Coupon {cart.discounts.coupon_code}" if cart.discounts.coupon_code else "Coupon"
        summary.append((label, -cart.discounts.coupon_discount))
    summary.append(("Tip", totals.tip_amount))

    c.setFont("Helvetica", 10)
    for label, value in summary:
        c.drawString(360, y, label)
        c.drawRightString(550, y, money(value))
        y -= 14

    y -= 6
    c.setFont("Helvetica-Bold", 12)
    c.drawRightString(550, y, f"TOTAL: {money(totals.total)}")

    if cart.note:
        y -= 24
        c.setFont("Helvetica-Oblique", 9)
        c.drawString(40, y, f"Note: {cart.note[:90]}")

    c.save()
    return path
