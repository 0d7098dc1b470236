# Overview: Renders the work-order receipt projection to a one-page PDF.

from __future__ import annotations

import io

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.pdfgen import canvas


def _line_items(data: dict) -> list[tuple[str, str]]:
    car = data.get("car") or {}
    owner = data.get("owner")
    make_model = " ".join(part for part in (car.get("make"), car.get("model")) if part) or "N/A"
    return [
        ("Status", data.get("status") or ""),
        ("Date", data.get("created_at") or ""),
        ("Last update", data.get("updated_at") or ""),
        ("Client", owner["name"] if owner else "Unknown client"),
        ("DNI", (owner or {}).get("dni") or "-"),
        ("Vehicle", f"{make_model} ({car.get('year') or '-'})"),
        ("License plate", car.get("license_plate") or ""),
        ("VIN", car.get("vin") or ""),
        ("Mileage", f"{data.get('mileage_km')} km"),
        ("Performed by", data.get("performed_by") or "-"),
    ]


def _wrap(text: str, width: int = 90) -> list[str]:
    lines: list[str] = []
    for paragraph in (text or "").splitlines() or [""]:
        current = ""
        for word in paragraph.split():
            if current and len(current) + 1 + len(word) > width:
                lines.append(current)
                current = word
            else:
                current = f"{current} {word}".strip()
        lines.append(current)
    return lines


def render_receipt_pdf(data: dict, workshop_name: str) -> bytes:
    """Draw the receipt on an A4 page and return the PDF bytes."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    w, h = A4
    y = h - 2 * cm

    c.setFont("Helvetica-Bold", 16)
    c.drawString(2 * cm, y, workshop_name)
    y -= 0.9 * cm
    c.setFont("Helvetica-Bold", 13)
    c.drawString(2 * cm, y, f"Work order #{data.get('order_number')}")
    y -= 1.1 * cm

    c.setFont("Helvetica", 11)
    for label, value in _line_items(data):
        c.drawString(2 * cm, y, f"{label}:")
        c.drawString(6 * cm, y, str(value))
        y -= 0.7 * cm

    for title, body in (("Description", data.get("description")), ("Notes", data.get("notes"))):
        if not body:
            continue
        y -= 0.4 * cm
        c.setFont("Helvetica-Bold", 11)
        c.drawString(2 * cm, y, title)
        y -= 0.7 * cm
        c.setFont("Helvetica", 10)
        for line in _wrap(body):
            if y < 3 * cm:
                c.showPage()
                c.setFont("Helvetica", 10)
                y = h - 2 * cm
            c.drawString(2 * cm, y, line)
            y -= 0.55 * cm

    y -= 0.6 * cm
    c.setFont("Helvetica-Bold", 12)
    cost = data.get("cost")
    c.drawString(2 * cm, y, f"Total: {'$ ' + cost if cost is not None else 'to be determined'}")

    c.showPage()
    c.save()
    return buf.getvalue()
