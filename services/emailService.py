import logging

from core.extensions import mail
from core.imports import Message, current_app, render_template
from services.pdfService import build_lines, totals

logger = logging.getLogger(__name__)

CUSTOMER_LABELS = {"CLIENTE_MAYORISTA": "Mayorista", "CLIENTE_MINORISTA": "Minorista"}


def customer_label(customer_type):
    return CUSTOMER_LABELS.get(customer_type, "Minorista")


def order_subject(order_data):
    full_name = order_data["contactInfo"]["fullName"]
    return f"Nuevo Pedido Web - {full_name} ({customer_label(order_data.get('customerType'))})"


def build_order_email_html(order_data):
    return render_template(
        "order_email.html",
        order=order_data,
        is_mayorista=order_data.get("customerType") == "CLIENTE_MAYORISTA",
    )


def build_order_email_text(order_data):
    is_mayorista = order_data.get("customerType") == "CLIENTE_MAYORISTA"
    contact = order_data["contactInfo"]
    lines = [
        "NUEVO PEDIDO WEB",
        f"Tipo de Cliente: {'MAYORISTA' if is_mayorista else 'MINORISTA'}",
        "",
        "DATOS DE CONTACTO:",
        f"  Nombre: {contact['fullName']}",
        f"  Email: {contact['email']}",
        f"  Teléfono: {contact['phone']}",
        f"  Dirección: {contact['address']}",
    ]

    business = order_data.get("businessInfo")
    if is_mayorista and business:
        lines += ["", "DATOS FISCALES:", f"  CUIT: {business['cuit']}"]
        if business.get("razonSocial"):
            lines.append(f"  Razón Social: {business['razonSocial']}")
        lines.append(f"  Situación AFIP: {business['situacionAfip']}")
        if business.get("codigoPostal"):
            lines.append(f"  Código Postal: {business['codigoPostal']}")

    lines += ["", "PRODUCTOS:"]
    for item in order_data.get("items") or []:
        presentation = f", Presentación: {item['presentation']}" if item.get("presentation") else ""
        lines.append(f"  - {item['productName']} (Cantidad: {item['quantity']}{presentation})")

    if order_data.get("notes"):
        lines += ["", "NOTAS:", f"  {order_data['notes']}"]
    return "\n".join(lines) + "\n"


def build_presupuesto_email_html(order_data, number, image_urls=None):
    lines = build_lines(order_data.get("items"))
    return render_template(
        "presupuesto_email.html",
        order=order_data,
        number=number,
        lines=lines,
        totals=totals(lines),
        image_urls=image_urls or {},
    )


def smtp_configured():
    cfg = current_app.config
    return bool(cfg.get("MAIL_USERNAME") and cfg.get("MAIL_PASSWORD"))


def send_email(recipients, subject, html, text=None, attachments=None):
    """Send through Flask-Mail. ``attachments`` is a list of ``(filename, content_type, bytes)``."""
    if not smtp_configured():
        logger.warning("SMTP credentials not configured, email '%s' not sent", subject)
        return False

    msg = Message(subject=subject, recipients=list(recipients))
    msg.html = html
    if text:
        msg.body = text
    for filename, content_type, data in attachments or []:
        msg.attach(filename, content_type, data)
    mail.send(msg)
    logger.info("Email '%s' sent to %s", subject, ", ".join(recipients))
    return True


def send_presupuesto_email(recipient, order_data, number, pdf_bytes, image_urls=None):
    subject = f"Nuevo Presupuesto #{number} - {order_data['contactInfo']['fullName']}"
    html = build_presupuesto_email_html(order_data, number, image_urls)
    return send_email(
        [recipient],
        subject,
        html,
        attachments=[(f"presupuesto-{number}.pdf", "application/pdf", pdf_bytes)],
    )
