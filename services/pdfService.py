import io
import logging

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from core.dates import format_short, now

logger = logging.getLogger(__name__)

EMPRESA = {
    "nombre": "Kansaco Petroquimica S.A",
    "cuit": "30-58610901-0",
    "direccion": "Magallanes 2031 Florencio Varela",
    "telefono": "4237-2636",
    "email": "info@kansaco.com",
}
IVA_RATE = 0.21
FORMA_PAGO = "Transferencia Bancaria"
VALIDEZ_DIAS = 15
DEFAULT_LOCALIDAD = "CABA, Buenos Aires"


def money(value):
    """$ 1.234,56"""
    text = f"{value:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return f"$ {text}"


def build_lines(items):
    lines = []
    for item in items or []:
        unit = item.get("unitPrice")
        unit = float(unit) if unit is not None else 0.0
        quantity = int(item.get("quantity") or 0)
        lines.append({
            "cantidad": quantity,
            "nombre": item.get("productName") or "Producto sin nombre",
            "presentacion": item.get("presentation") or "-",
            "precioUnitario": unit,
            "subtotal": round(unit * quantity, 2),
        })
    return lines


def totals(lines):
    subtotal = round(sum(line["subtotal"] for line in lines), 2)
    iva = round(subtotal * IVA_RATE, 2)
    return {"subtotal": subtotal, "iva": iva, "total": round(subtotal + iva, 2)}


def presupuesto_data(order_data, number, date=None):
    contact = order_data.get("contactInfo") or {}
    business = order_data.get("businessInfo") or {}
    lines = build_lines(order_data.get("items"))
    return {
        "numero": number,
        "fecha": format_short(date or now()),
        "empresa": EMPRESA,
        "cliente": {
            "nombre": contact.get("fullName", ""),
            "email": contact.get("email", ""),
            "telefono": contact.get("phone", ""),
            "direccion": contact.get("address", ""),
            "localidad": business.get("codigoPostal") or DEFAULT_LOCALIDAD,
            "cuit": business.get("cuit"),
            "razonSocial": business.get("razonSocial"),
            "situacionAfip": business.get("situacionAfip"),
        },
        "lineas": lines,
        "condiciones": {
            "formaPago": FORMA_PAGO,
            "validez": f"{VALIDEZ_DIAS} dias",
            "notas": order_data.get("notes") or "",
        },
        "totales": totals(lines),
    }


class _Writer:
    """Keeps the cursor and breaks pages for the presupuesto canvas."""

    def __init__(self, buf):
        self.c = canvas.Canvas(buf, pagesize=A4)
        self.width, self.height = A4
        self.x = 40
        self.y = self.height - 50

    def ensure(self, space):
        if self.y < space:
            self.c.showPage()
            self.y = self.height - 50

    def text(self, value, size=10, bold=False, x=None, step=14):
        self.ensure(60)
        self.c.setFont("Helvetica-Bold" if bold else "Helvetica", size)
        self.c.drawString(self.x if x is None else x, self.y, str(value))
        self.y -= step

    def right(self, value, x, size=10, bold=False):
        self.c.setFont("Helvetica-Bold" if bold else "Helvetica", size)
        self.c.drawRightString(x, self.y, str(value))

    def rule(self):
        self.c.line(self.x, self.y + 4, self.width - self.x, self.y + 4)
        self.y -= 8


def generate_presupuesto_pdf(order_data, number, date=None):
    data = presupuesto_data(order_data, number, date)
    buf = io.BytesIO()
    w = _Writer(buf)
    empresa, cliente = data["empresa"], data["cliente"]

    w.text(empresa["nombre"], size=16, bold=True, step=18)
    w.text(f"CUIT: {empresa['cuit']}  |  {empresa['direccion']}")
    w.text(f"Tel: {empresa['telefono']}  |  {empresa['email']}", step=24)

    w.text(f"PRESUPUESTO N° {data['numero']}", size=14, bold=True, step=16)
    w.text(f"Fecha: {data['fecha']}", step=22)

    w.text("CLIENTE", size=11, bold=True)
    w.text(f"Nombre: {cliente['nombre']}")
    w.text(f"Email: {cliente['email']}")
    w.text(f"Telefono: {cliente['telefono']}")
    w.text(f"Direccion: {cliente['direccion']}")
    w.text(f"Localidad: {cliente['localidad']}")
    if cliente["cuit"]:
        w.text(f"CUIT: {cliente['cuit']}")
    if cliente["razonSocial"]:
        w.text(f"Razon Social: {cliente['razonSocial']}")
    if cliente["situacionAfip"]:
        w.text(f"Situacion AFIP: {cliente['situacionAfip']}")
    w.y -= 10

    cols = {"cantidad": w.x, "producto": w.x + 50, "presentacion": w.x + 270, "unitario": 470, "subtotal": w.width - 40}
    w.c.setFont("Helvetica-Bold", 10)
    w.c.drawString(cols["cantidad"], w.y, "Cant.")
    w.c.drawString(cols["producto"], w.y, "Producto")
    w.c.drawString(cols["presentacion"], w.y, "Presentacion")
    w.right("P. Unitario", cols["unitario"], bold=True)
    w.right("Subtotal", cols["subtotal"], bold=True)
    w.y -= 14
    w.rule()

    for line in data["lineas"]:
        w.ensure(100)
        w.c.setFont("Helvetica", 9)
        w.c.drawString(cols["cantidad"], w.y, str(line["cantidad"]))
        w.c.drawString(cols["producto"], w.y, line["nombre"][:42])
        w.c.drawString(cols["presentacion"], w.y, line["presentacion"][:28])
        w.right(money(line["precioUnitario"]), cols["unitario"], size=9)
        w.right(money(line["subtotal"]), cols["subtotal"], size=9)
        w.y -= 14
    w.rule()

    tot = data["totales"]
    for label, value, bold in (
        ("Subtotal", tot["subtotal"], False),
        (f"IVA ({int(IVA_RATE * 100)}%)", tot["iva"], False),
        ("TOTAL", tot["total"], True),
    ):
        w.ensure(80)
        w.right(label, cols["unitario"], bold=bold)
        w.right(money(value), cols["subtotal"], bold=bold)
        w.y -= 14
    w.y -= 10

    cond = data["condiciones"]
    w.text("CONDICIONES", size=11, bold=True)
    w.text(f"Forma de pago: {cond['formaPago']}")
    w.text(f"Validez: {cond['validez']}")
    if cond["notas"]:
        w.text("Notas:")
        for note_line in str(cond["notas"]).splitlines()[:40]:
            w.text(note_line[:110], size=9, step=12)

    w.c.save()
    logger.debug("Generated presupuesto %s (%d lines)", number, len(data["lineas"]))
    return buf.getvalue()
