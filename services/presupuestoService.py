"""Handler for ``generate-presupuesto`` requests arriving over RabbitMQ."""
import logging
import random

from core.dates import now
from core.errors import BadRequest
from core.imports import current_app
from models.productModels import ProductImage
from services import emailService, orderService, pdfService

logger = logging.getLogger(__name__)


def random_number():
    return f"{now().year}-{random.randint(0, 999):03d}"


def collect_image_urls(items):
    """productId -> image URLs, primary first, then by display order."""
    ids = {item.get("productId") for item in items or [] if item.get("productId") is not None}
    if not ids:
        return {}
    images = (
        ProductImage.query.filter(ProductImage.product_id.in_(ids))
        .order_by(ProductImage.product_id, ProductImage.is_primary.desc(), ProductImage.order.asc())
        .all()
    )
    urls = {}
    for image in images:
        urls.setdefault(image.product_id, []).append(image.image_url)
    return urls


def generate_presupuesto(data):
    try:
        contact = orderService.validate_contact_info(data.get("contactInfo"))
        order_data = {
            "customerType": data.get("customerType"),
            "contactInfo": contact,
            "businessInfo": data.get("businessInfo"),
            "items": orderService.validate_items(data.get("items")),
            "notes": data.get("notes"),
        }
        number = data.get("presupuestoNumber") or random_number()
        pdf = pdfService.generate_presupuesto_pdf(order_data, number)
        recipient = data.get("recipientEmail") or current_app.config.get("EMAIL_TO")
        sent = emailService.send_presupuesto_email(
            recipient, order_data, number, pdf, collect_image_urls(order_data["items"])
        )
    except BadRequest:
        raise
    except Exception as e:
        logger.exception("Error generating presupuesto")
        raise BadRequest(f"Error al generar presupuesto: {e}")

    logger.info("Presupuesto %s generated for order %s", number, data.get("orderId"))
    return {"success": True, "presupuestoNumber": number, "emailSent": sent}


HANDLERS = {"generate-presupuesto": generate_presupuesto}
